"""Symmetric tridiagonal eigen-decomposition.

Thin wrapper over :func:`scipy.linalg.eigh_tridiagonal`, which dispatches to
LAPACK's dedicated tridiagonal drivers (MRRR ``?stemr`` by default). Those
drivers return orthonormal eigenvectors even for tightly clustered spectra,
unlike a dense solver applied to the full concentration kernel.
"""

from __future__ import annotations

import numpy as np
from scipy.linalg import eigh_tridiagonal

from ..config import EigenDriver
from ..runtime.dtypes import REAL_DTYPE, ArrayLike


def eigh_symmetric_tridiagonal(
    diagonal: ArrayLike,
    off_diagonal: ArrayLike,
    driver: EigenDriver = "stemr",
) -> tuple[np.ndarray, np.ndarray]:
    """Eigenvalues and eigenvectors of a symmetric tridiagonal matrix.

    Parameters
    ----------
    diagonal : array_like
        Main diagonal, shape ``(n,)`` with ``n >= 1``.
    off_diagonal : array_like
        First super-diagonal, shape ``(n - 1,)``.
    driver : {"stemr", "stebz", "stev", "auto"}
        LAPACK driver passed to SciPy.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(eigenvalues, eigenvectors)``; eigenvalues in decreasing order and
        eigenvector ``k`` in column ``k``.
    """

    d = np.asarray(diagonal, dtype=REAL_DTYPE)
    e = np.asarray(off_diagonal, dtype=REAL_DTYPE)
    if d.ndim != 1 or d.shape[0] < 1:
        raise ValueError("diagonal must be a non-empty 1D array")
    if e.shape != (d.shape[0] - 1,):
        raise ValueError("off_diagonal must have length len(diagonal) - 1")

    if d.shape[0] == 1:
        return d.copy(), np.ones((1, 1), dtype=REAL_DTYPE)

    values, vectors = eigh_tridiagonal(d, e, lapack_driver=driver)
    # LAPACK returns ascending order.
    return values[::-1].copy(), vectors[:, ::-1].copy()


__all__ = ["eigh_symmetric_tridiagonal"]
