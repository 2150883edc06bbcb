"""Opt-in runtime checking of capslep's annotations.

Setting ``CAPSLEP_RUNTIME_TYPECHECK=1`` before the first ``import capslep``
puts every capslep submodule under a jaxtyping import hook, so each
annotated function checks its arguments and return value when called.
``CAPSLEP_TYPECHECKER`` names the checker (``beartype.beartype`` unless
set). Submodules already imported when the hook is installed stay
unchecked, which is why ``capslep/__init__.py`` calls
:func:`enable_runtime_typecheck` before importing anything else.
"""

from __future__ import annotations

import os
from typing import Any

_FALSE_VALUES = {"", "0", "false", "no", "off"}
_DEFAULT_CHECKER = "beartype.beartype"

_hook: Any = None


def _requested() -> bool:
    return os.getenv("CAPSLEP_RUNTIME_TYPECHECK", "0").strip().lower() not in _FALSE_VALUES


def _checker_name() -> str:
    return os.getenv("CAPSLEP_TYPECHECKER", "").strip() or _DEFAULT_CHECKER


def is_runtime_typecheck_active() -> bool:
    """Whether the import hook has been installed in this interpreter."""
    return _hook is not None


def enable_runtime_typecheck() -> bool:
    """Install the checking hook for ``capslep`` if the environment asks for it.

    Returns ``True`` when the hook is (or already was) installed.
    """
    global _hook

    if _hook is not None:
        return True
    if not _requested():
        return False

    from jaxtyping import install_import_hook

    _hook = install_import_hook("capslep", typechecker=_checker_name())
    return True


__all__ = ["enable_runtime_typecheck", "is_runtime_typecheck_active"]
