"""Working precision for taper computations.

Concentration factors are compared against 0 and 1 at the 1e-8 level, so
the pipeline runs in float64. JAX defaults to float32; the switch below is
flipped once when the package is imported.
"""

import os
from typing import Union

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import ArrayLike

REAL_DTYPE = np.float64
INDEX_DTYPE = jnp.int64

# Scalars arrive as Python numbers or as NumPy scalars from loops over orders.
IntLike = Union[int, np.integer]
RealLike = Union[float, int, np.floating, np.integer]


def _double_precision_requested() -> bool:
    raw = os.getenv("CAPSLEP_ENABLE_X64", "1").strip().lower()
    return raw not in {"0", "false", "no", "off"}


def enable_double_precision() -> bool:
    """Turn on ``jax_enable_x64`` unless ``CAPSLEP_ENABLE_X64`` disables it."""

    if not _double_precision_requested():
        return False
    jax.config.update("jax_enable_x64", True)
    return True


def as_real(x: object) -> jnp.ndarray:
    """Convert a Python/NumPy/JAX value to a float64 JAX array."""
    return jnp.asarray(x, dtype=REAL_DTYPE)


__all__ = [
    "INDEX_DTYPE",
    "REAL_DTYPE",
    "ArrayLike",
    "IntLike",
    "RealLike",
    "as_real",
    "enable_double_precision",
]
