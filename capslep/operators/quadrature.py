"""Gauss-Legendre quadrature on an arbitrary interval."""

from __future__ import annotations

import math

import numpy as np
from numpy.polynomial.legendre import leggauss

from ..runtime.dtypes import REAL_DTYPE, IntLike, RealLike


def gauss_legendre_rule(
    lower: RealLike, upper: RealLike, count: IntLike
) -> tuple[np.ndarray, np.ndarray]:
    """Nodes and weights of the ``count``-point Gauss-Legendre rule on [lower, upper].

    The rule integrates polynomials of degree ``2 * count - 1`` exactly. Nodes
    are returned in increasing order.
    """

    n = int(count)
    if n < 1:
        raise ValueError("count must be >= 1")
    a = float(lower)
    b = float(upper)
    if not (math.isfinite(a) and math.isfinite(b)):
        raise ValueError("interval bounds must be finite")

    x, w = leggauss(n)
    half_width = 0.5 * (b - a)
    nodes = half_width * x + 0.5 * (b + a)
    weights = half_width * w
    return nodes.astype(REAL_DTYPE), weights.astype(REAL_DTYPE)


__all__ = ["gauss_legendre_rule"]
