"""Guardrails for runtime type-check coverage.

Public callables in the capslep package must carry parameter and return
annotations, otherwise the opt-in jaxtyping+beartype hook silently skips them.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterator

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_ROOT = PROJECT_ROOT / "capslep"

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


def _missing_parts(node: FunctionNode) -> list[str]:
    args = node.args
    missing = [
        arg.arg
        for arg in args.posonlyargs + args.args + args.kwonlyargs
        if arg.annotation is None
    ]
    for star in (args.vararg, args.kwarg):
        if star is not None and star.annotation is None:
            missing.append(star.arg)
    if node.returns is None:
        missing.append("return")
    return missing


def _public_functions() -> Iterator[tuple[Path, FunctionNode]]:
    for path in sorted(PACKAGE_ROOT.rglob("*.py")):
        if path.name == "__init__.py":
            continue
        tree = ast.parse(path.read_text())
        for node in ast.walk(tree):
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and not (
                node.name.startswith("_")
            ):
                yield path, node


def test_package_has_public_functions() -> None:
    assert any(True for _ in _public_functions())


def test_all_non_private_callables_are_fully_annotated() -> None:
    problems = [
        f"- {path.relative_to(PROJECT_ROOT)}:{node.lineno} `{node.name}` "
        f"missing: {', '.join(parts)}"
        for path, node in _public_functions()
        if (parts := _missing_parts(node))
    ]
    if problems:
        raise AssertionError(
            "Found callables with incomplete type annotations. Annotate them so "
            "runtime type-checking stays comprehensive.\n" + "\n".join(problems)
        )
