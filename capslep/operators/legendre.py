"""Geodesy-normalized associated Legendre functions.

The functions evaluated here are

    Pbar_l^m(z) = sqrt((2 - delta_m0) (2l + 1) (l - m)! / (l + m)!) P_l^m(z),

the normalization under which the real spherical harmonics
``Pbar_l^m(cos theta) {cos, sin}(m phi)`` have unit power (their square
integrated over the sphere and divided by 4 pi equals one). The
Condon-Shortley phase is excluded by default.

Values for all degrees ``0..lmax`` are returned in the packed, degree-major
layout addressed by :func:`plm_index`.

Recursion
---------
The sectoral terms are seeded with

    Pbar_0^0 = 1,  Pbar_1^1 = sqrt(3) u,
    Pbar_m^m = sqrt((2m + 1) / (2m)) u Pbar_{m-1}^{m-1},   m >= 2,

with ``u = sqrt(1 - z^2)``, followed by the upward recursion in degree

    Pbar_{m+1}^m = sqrt(2m + 3) z Pbar_m^m,
    Pbar_l^m = a_lm z Pbar_{l-1}^m - b_lm Pbar_{l-2}^m,

    a_lm = sqrt((2l - 1)(2l + 1) / ((l - m)(l + m))),
    b_lm = sqrt((2l + 1)(l + m - 1)(l - m - 1) / ((l - m)(l + m)(2l - 3))).

In double precision the seeds are scaled by 1e280 while recursing, so a
value is lost to underflow only when ``Pbar_m^m`` itself is below about
1e-588 (for example ``m >= 300`` at colatitudes under 0.01 rad); such values
come back as zero.
"""

from __future__ import annotations

from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array

from ..runtime.dtypes import INDEX_DTYPE, ArrayLike, IntLike, as_real

# In float64 the sectoral seeds are carried multiplied by 10^280 and scaled
# back once the column is complete, as SHTOOLS does in PlmBar. Without it
# Pbar_m^m ~ u^m underflows for large m near the poles.
_SEED_SCALE = 1.0e280


def _seed_scale(u: Array) -> float:
    return _SEED_SCALE if u.dtype == jnp.float64 else 1.0


def plm_size(lmax: IntLike) -> int:
    """Number of packed values for degrees ``0..lmax``: (lmax+1)(lmax+2)/2."""

    p = int(lmax)
    if p < 0:
        raise ValueError("lmax must be >= 0")
    return (p + 1) * (p + 2) // 2


def plm_index(ell: IntLike, m: IntLike) -> int:
    """Zero-based packed index of ``Pbar_ell^m`` for ``0 <= m <= ell``."""

    ll = int(ell)
    mm = int(m)
    if ll < 0:
        raise ValueError("ell must be >= 0")
    if mm < 0 or mm > ll:
        raise ValueError("m must satisfy 0 <= m <= ell")
    return ll * (ll + 1) // 2 + mm


def _sectoral(m: int, u: Array) -> Array:
    """Pbar_m^m(u), times the seed scale, for the sine of the colatitude ``u``."""

    pmm = jnp.full_like(u, _seed_scale(u))
    if m >= 1:
        pmm = jnp.sqrt(3.0) * u * pmm
    for k in range(2, m + 1):
        pmm = jnp.sqrt((2.0 * k + 1.0) / (2.0 * k)) * u * pmm
    return pmm


def _order_column(lmax: int, m: int, z: Array, u: Array) -> list[Array]:
    """Pbar_l^m(z) for l = m..lmax, as a list of arrays shaped like ``z``."""

    column = [_sectoral(m, u)]
    if lmax > m:
        column.append(jnp.sqrt(2.0 * m + 3.0) * z * column[0])
    for ell in range(m + 2, lmax + 1):
        a = np.sqrt((2.0 * ell - 1.0) * (2.0 * ell + 1.0) / ((ell - m) * (ell + m)))
        b = np.sqrt(
            (2.0 * ell + 1.0)
            * (ell + m - 1.0)
            * (ell - m - 1.0)
            / ((ell - m) * (ell + m) * (2.0 * ell - 3.0))
        )
        column.append(a * z * column[-1] - b * column[-2])
    scale = _seed_scale(u)
    return [values / scale for values in column]


@partial(jax.jit, static_argnames=("lmax", "m"))
def _legendre_order_jit(z: Array, *, lmax: int, m: int) -> Array:
    u = jnp.sqrt(jnp.maximum(1.0 - z * z, 0.0))
    return jnp.stack(_order_column(lmax, m, z, u), axis=-1)


def legendre_order(lmax: IntLike, m: IntLike, z: ArrayLike) -> Array:
    """Evaluate ``Pbar_l^|m|(z)`` for ``l = |m|..lmax``.

    Same values as ``legendre_normalized(lmax, z)[..., order_indices(lmax, m)]``
    without building the other orders of the packed table; the taper solver
    uses this path since it needs one order per call.

    Parameters
    ----------
    lmax : int
        Maximum degree.
    m : int
        Angular order; only ``|m|`` matters.
    z : array_like
        Cosine of the colatitude, any shape, values in [-1, 1].

    Returns
    -------
    Array
        Shape ``z.shape + (lmax + 1 - |m|,)``.
    """

    p = int(lmax)
    mm = abs(int(m))
    if p < 0:
        raise ValueError("lmax must be >= 0")
    if mm > p:
        raise ValueError("|m| must be <= lmax")
    return _legendre_order_jit(as_real(z), lmax=p, m=mm)


@partial(jax.jit, static_argnames=("lmax", "csphase"))
def _legendre_packed_jit(z: Array, *, lmax: int, csphase: int) -> Array:
    u = jnp.sqrt(jnp.maximum(1.0 - z * z, 0.0))
    packed = [None] * plm_size(lmax)
    for m in range(lmax + 1):
        sign = float(csphase) ** m
        for ell, values in enumerate(_order_column(lmax, m, z, u), start=m):
            packed[plm_index(ell, m)] = sign * values
    return jnp.stack(packed, axis=-1)


def legendre_normalized(lmax: IntLike, z: ArrayLike, csphase: int = 1) -> Array:
    """All geodesy-normalized Legendre functions up to ``lmax`` at ``z``.

    Parameters
    ----------
    lmax : int
        Maximum degree.
    z : array_like
        Cosine of the colatitude, any shape.
    csphase : int
        ``1`` excludes the Condon-Shortley phase ``(-1)^m``, ``-1`` includes it.

    Returns
    -------
    Array
        Shape ``z.shape + (plm_size(lmax),)``; entry ``plm_index(l, m)`` holds
        ``Pbar_l^m(z)``.
    """

    if csphase not in (1, -1):
        raise ValueError("csphase must be 1 or -1")
    return _legendre_packed_jit(as_real(z), lmax=int(lmax), csphase=int(csphase))


def order_indices(lmax: IntLike, m: IntLike) -> Array:
    """Packed indices of ``Pbar_l^|m|`` for ``l = |m|..lmax``."""

    mm = abs(int(m))
    return jnp.asarray(
        [plm_index(ell, mm) for ell in range(mm, int(lmax) + 1)], dtype=INDEX_DTYPE
    )


def synthesize_taper(
    coefficients: ArrayLike, m: IntLike, colatitude: ArrayLike
) -> Array:
    """Colatitude profile ``sum_l c_l Pbar_l^|m|(cos colatitude)`` of a taper.

    ``coefficients`` is a zero-padded column of length ``lmax + 1`` as
    produced by the taper solver; entries below degree ``|m|`` are ignored.
    Multiply by ``cos(m phi)`` (or ``sin(|m| phi)`` for negative ``m``) to get
    the full spherical function.
    """

    c = as_real(coefficients)
    if c.ndim != 1:
        raise ValueError("coefficients must be a 1D column")
    lmax = c.shape[0] - 1
    mm = abs(int(m))
    if mm > lmax:
        raise ValueError("|m| must be <= lmax")
    values = legendre_order(lmax, mm, jnp.cos(as_real(colatitude)))
    return values @ c[mm:]


__all__ = [
    "legendre_normalized",
    "legendre_order",
    "order_indices",
    "plm_index",
    "plm_size",
    "synthesize_taper",
]
