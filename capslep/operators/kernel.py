"""Concentration kernels for a polar spherical cap.

Two matrices over the degrees ``l = |m|..lmax`` of a fixed order ``m`` are
provided:

- the space-concentration kernel ``D`` whose eigenvalues are the
  concentration factors,

      D[l, l'] = c_m * int_{cos theta0}^{1} Pbar_l^|m|(z) Pbar_l'^|m|(z) dz,

  with ``c_0 = 1/2`` and ``c_m = 1/4`` otherwise;

- the tridiagonal matrix ``T`` of Grünbaum et al. (1982) that commutes with
  ``D`` (Simons, Dahlen & Wieczorek 2006, SIAM Review), taken with the
  opposite overall sign so that larger eigenvalues of ``T`` belong to
  better concentrated eigenvectors:

      T[l, l]   = l (l + 1) cos(theta0)
      T[l, l+1] = [lmax (lmax + 2) - l (l + 2)]
                  * sqrt(((l + 1)^2 - m^2) / ((2l + 1)(2l + 3)))

``T`` shares the eigenvectors of ``D`` but its spectrum is well separated,
which is what makes its eigenvectors reliable when many concentration
factors sit at 0 or 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array

from ..runtime.dtypes import ArrayLike, IntLike, RealLike, as_real
from .legendre import legendre_order
from .quadrature import gauss_legendre_rule


@dataclass(frozen=True)
class DegreeRange:
    """Degrees ``lo..hi`` (inclusive) that carry coefficients for one order."""

    lo: int
    hi: int

    @classmethod
    def for_order(cls: "type[DegreeRange]", lmax: IntLike, m: IntLike) -> "DegreeRange":
        return cls(lo=abs(int(m)), hi=int(lmax))

    @property
    def size(self: "DegreeRange") -> int:
        return self.hi - self.lo + 1

    @property
    def rows(self: "DegreeRange") -> slice:
        """Rows of an ``(lmax+1)``-row coefficient array covered by the range."""
        return slice(self.lo, self.hi + 1)

    def degrees(self: "DegreeRange") -> np.ndarray:
        return np.arange(self.lo, self.hi + 1)


def concentration_scale(m: IntLike) -> float:
    """Factor mapping ``int Pbar^2 dz`` over the cap to a power fraction."""
    return 0.5 if int(m) == 0 else 0.25


def grunbaum_kernel(
    lmax: IntLike, m: IntLike, theta0: RealLike
) -> tuple[Array, Array]:
    """Diagonal and off-diagonal of the Grünbaum tridiagonal kernel.

    Returns
    -------
    tuple[Array, Array]
        ``(diagonal, off_diagonal)`` with shapes ``(n,)`` and ``(n - 1,)``
        where ``n = lmax + 1 - |m|``.
    """

    p = int(lmax)
    mm = abs(int(m))
    if p < 0:
        raise ValueError("lmax must be >= 0")
    if mm > p:
        raise ValueError("|m| must be <= lmax")

    ell = as_real(DegreeRange.for_order(p, mm).degrees())
    x = jnp.cos(as_real(theta0))
    diagonal = ell * (ell + 1.0) * x

    lo = ell[:-1]
    off_diagonal = (p * (p + 2.0) - lo * (lo + 2.0)) * jnp.sqrt(
        ((lo + 1.0) ** 2 - mm * mm) / ((2.0 * lo + 1.0) * (2.0 * lo + 3.0))
    )
    return diagonal, off_diagonal


def tridiagonal_to_dense(diagonal: ArrayLike, off_diagonal: ArrayLike) -> Array:
    """Expand a symmetric tridiagonal ``(d, e)`` pair into a dense matrix."""

    d = as_real(diagonal)
    e = as_real(off_diagonal)
    if e.shape[0] != max(d.shape[0] - 1, 0):
        raise ValueError("off_diagonal must have length len(diagonal) - 1")
    return jnp.diag(d) + jnp.diag(e, k=1) + jnp.diag(e, k=-1)


def concentration_matrix(lmax: IntLike, m: IntLike, theta0: RealLike) -> Array:
    """Dense space-concentration kernel ``D`` over degrees ``|m|..lmax``.

    The integrand is a polynomial of degree ``2 lmax`` in ``z``, so the
    ``lmax + 1`` point Gauss-Legendre rule integrates it exactly.
    """

    p = int(lmax)
    nodes, weights = gauss_legendre_rule(np.cos(float(theta0)), 1.0, p + 1)
    values = legendre_order(p, m, as_real(nodes))
    weighted = values * as_real(weights)[:, None]
    return concentration_scale(m) * (weighted.T @ values)


@runtime_checkable
class KernelBuilder(Protocol):
    """Produces the tridiagonal kernel whose eigenvectors are the tapers."""

    def __call__(self, lmax: int, m: int, theta0: float) -> tuple[Array, Array]:
        ...


@dataclass(frozen=True)
class GrunbaumKernel:
    """Default :class:`KernelBuilder` backed by :func:`grunbaum_kernel`."""

    def __call__(self, lmax: int, m: int, theta0: float) -> tuple[Array, Array]:
        return grunbaum_kernel(lmax, m, theta0)


__all__ = [
    "DegreeRange",
    "GrunbaumKernel",
    "KernelBuilder",
    "concentration_matrix",
    "concentration_scale",
    "grunbaum_kernel",
    "tridiagonal_to_dense",
]
