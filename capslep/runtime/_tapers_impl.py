"""Taper solver core: kernel -> eigenvectors -> quadrature eigenvalues.

The eigenvectors come from the Grünbaum tridiagonal kernel, whose
eigenvectors stay accurate when many concentration factors are equal to 0 or
1 at machine precision. The eigenvalues of that kernel are not concentration
factors, so the concentration of every eigenvector is recomputed from its
definition,

    lambda_j = c_m * int_{cos theta0}^{1} h_j(z)^2 dz,
    h_j(z)   = sum_{l=|m|}^{lmax} Pbar_l^|m|(z) v[l, j],

with an ``lmax + 1`` point Gauss-Legendre rule, which is exact because the
integrand is a polynomial of degree ``2 lmax``.

Everything here is scoped to a single call. Failures are raised as
:class:`~capslep.errors.TaperError` subclasses by :func:`solve_cap_tapers`
and packed into a :class:`~capslep.errors.TaperResult` by
:func:`run_cap_tapers`.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from scipy.linalg import LinAlgError

from ..config import TaperConfig
from ..errors import (
    AllocationError,
    DimensionError,
    KernelIOError,
    NumericalError,
    RangeError,
    TaperError,
    TaperResult,
)
from ..operators.kernel import (
    DegreeRange,
    GrunbaumKernel,
    KernelBuilder,
    concentration_scale,
)
from ..operators.legendre import legendre_order
from ..operators.quadrature import gauss_legendre_rule
from ..operators.tridiagonal import eigh_symmetric_tridiagonal
from .dtypes import REAL_DTYPE, IntLike, RealLike, as_real

logger = logging.getLogger(__name__)


def _check_buffer(buffer: Optional[np.ndarray], name: str) -> None:
    if buffer is None:
        return
    if not isinstance(buffer, np.ndarray):
        raise TypeError(f"{name} must be a numpy.ndarray, got {type(buffer).__name__}")
    if not buffer.flags.writeable:
        raise TypeError(f"{name} must be writeable")


def validate_problem(
    theta0: RealLike,
    lmax: IntLike,
    m: IntLike,
    tapers: Optional[np.ndarray] = None,
    eigenvalues: Optional[np.ndarray] = None,
) -> DegreeRange:
    """Check parameters and caller buffers before any work is done.

    Raises
    ------
    RangeError
        ``lmax < 0``, ``|m| > lmax`` or ``theta0`` outside ``(0, pi]``.
    DimensionError
        ``tapers`` smaller than ``(lmax+1, lmax+1)`` or ``eigenvalues``
        shorter than ``lmax+1``.
    """

    _check_buffer(tapers, "tapers")
    _check_buffer(eigenvalues, "eigenvalues")

    p = int(lmax)
    if p < 0:
        raise RangeError(f"LMAX must be >= 0. LMAX = {p}")
    size = p + 1

    if tapers is not None and (
        tapers.ndim != 2 or tapers.shape[0] < size or tapers.shape[1] < size
    ):
        raise DimensionError(
            f"TAPERS must be dimensioned as ({size}, {size}) where LMAX is {p}. "
            f"Input array is dimensioned as {tapers.shape}"
        )
    if eigenvalues is not None and (eigenvalues.ndim != 1 or eigenvalues.shape[0] < size):
        raise DimensionError(
            f"EIGENVALUES must be dimensioned as ({size},) where LMAX is {p}. "
            f"Input array is dimensioned as {eigenvalues.shape}"
        )

    mm = int(m)
    if abs(mm) > p:
        raise RangeError(f"|M| must be less than or equal to LMAX. M = {mm}, LMAX = {p}")

    theta = float(theta0)
    if not math.isfinite(theta) or theta <= 0.0 or theta > math.pi:
        raise RangeError(f"THETA0 must lie in (0, pi]. THETA0 = {theta}")

    return DegreeRange.for_order(p, mm)


def _allocate(shape: tuple[int, ...], name: str) -> np.ndarray:
    try:
        return np.zeros(shape, dtype=REAL_DTYPE)
    except MemoryError as exc:
        raise AllocationError(f"Problem allocating array {name} of shape {shape}") from exc


def quadrature_eigenvalues(
    eigenvectors: np.ndarray,
    degrees: DegreeRange,
    m: IntLike,
    theta0: RealLike,
) -> np.ndarray:
    """Concentration factor of every column of a zero-padded eigenvector array.

    ``eigenvectors`` has ``degrees.hi + 1`` rows; only rows ``degrees.rows``
    are read. The Legendre values are the order-``m`` columns of the packed
    table, evaluated directly by :func:`legendre_order`.
    """

    lmax = degrees.hi
    nodes, weights = gauss_legendre_rule(math.cos(float(theta0)), 1.0, lmax + 1)
    plm = legendre_order(lmax, m, as_real(nodes))
    h = plm @ as_real(eigenvectors[degrees.rows, :])
    values = as_real(weights) @ (h * h)
    return np.array(concentration_scale(m) * values, dtype=REAL_DTYPE)


def _enforce_concentration_order(
    eigenvectors: np.ndarray,
    eigenvalues: np.ndarray,
    n: int,
    config: TaperConfig,
) -> None:
    head = eigenvalues[:n]
    if not np.any(np.diff(head) > config.ordering_tolerance):
        return
    if not config.sort_by_concentration:
        logger.warning(
            "Recomputed concentration factors are not in decreasing order; "
            "columns left in eigensolver order"
        )
        return
    logger.warning(
        "Recomputed concentration factors are not in decreasing order; "
        "re-sorting %d columns",
        n,
    )
    perm = np.argsort(-head, kind="stable")
    eigenvalues[:n] = head[perm]
    eigenvectors[:, :n] = eigenvectors[:, perm]


def _apply_north_pole_sign(eigenvectors: np.ndarray) -> None:
    # Pbar_l^0(1) = sqrt(2l + 1)
    pole = np.sqrt(2.0 * np.arange(eigenvectors.shape[0]) + 1.0)
    values = pole @ eigenvectors
    eigenvectors *= np.where(values < 0.0, -1.0, 1.0)


def _write_output(
    work: np.ndarray, buffer: Optional[np.ndarray]
) -> np.ndarray:
    if buffer is None:
        return work
    buffer[...] = 0.0
    buffer[tuple(slice(0, k) for k in work.shape)] = work
    return buffer


def _check_kernel(diagonal: np.ndarray, off_diagonal: np.ndarray, n: int) -> None:
    if diagonal.shape != (n,) or off_diagonal.shape != (n - 1,):
        raise DimensionError(
            f"Kernel builder returned diagonals of shape {diagonal.shape} and "
            f"{off_diagonal.shape}; expected ({n},) and ({n - 1},)"
        )
    if not (np.all(np.isfinite(diagonal)) and np.all(np.isfinite(off_diagonal))):
        raise NumericalError("Kernel builder returned non-finite entries")


def _collaborator_error(stage: str, exc: BaseException) -> TaperError:
    if isinstance(exc, MemoryError):
        return AllocationError(f"Problem allocating memory during {stage}")
    if isinstance(exc, OSError):
        return KernelIOError(f"{stage} failed: {exc}")
    return NumericalError(f"{stage} failed: {type(exc).__name__}: {exc}")


def solve_cap_tapers(
    theta0: RealLike,
    lmax: IntLike,
    m: IntLike,
    *,
    tapers: Optional[np.ndarray] = None,
    eigenvalues: Optional[np.ndarray] = None,
    shannon: bool = True,
    config: Optional[TaperConfig] = None,
    kernel_builder: Optional[KernelBuilder] = None,
) -> TaperResult:
    """Compute the tapers of a polar cap for a single angular order.

    Raises :class:`~capslep.errors.TaperError` subclasses on invalid input
    and when the kernel builder, eigensolver or quadrature fails: memory
    errors become :class:`AllocationError`, ``OSError`` becomes
    :class:`KernelIOError`, and LAPACK or value errors become
    :class:`NumericalError`. Caller buffers are only written after the
    computation has succeeded.
    """

    cfg = TaperConfig() if config is None else config
    builder = GrunbaumKernel() if kernel_builder is None else kernel_builder

    degrees = validate_problem(theta0, lmax, m, tapers, eigenvalues)
    p = degrees.hi
    mm = int(m)
    n = degrees.size
    logger.debug(
        "Cap tapers: theta0=%.6g lmax=%d m=%d n=%d driver=%s",
        float(theta0),
        p,
        mm,
        n,
        cfg.eigen_driver,
    )

    evec = _allocate((p + 1, p + 1), "EVEC")

    stage = "kernel construction"
    try:
        diagonal, off_diagonal = builder(p, mm, float(theta0))
        diagonal = np.asarray(diagonal, dtype=REAL_DTYPE)
        off_diagonal = np.asarray(off_diagonal, dtype=REAL_DTYPE)
        _check_kernel(diagonal, off_diagonal, n)

        stage = "eigen-decomposition"
        _, block = eigh_symmetric_tridiagonal(diagonal, off_diagonal, cfg.eigen_driver)
        evec[degrees.rows, :n] = block

        stage = "quadrature"
        eval_work = quadrature_eigenvalues(evec, degrees, mm, theta0)
    except TaperError:
        raise
    except (MemoryError, OSError, LinAlgError, ValueError, ArithmeticError) as exc:
        raise _collaborator_error(stage, exc) from exc

    _enforce_concentration_order(evec, eval_work, n, cfg)

    shannon_number = float(np.sum(eval_work)) if shannon else None

    if mm == 0:
        _apply_north_pole_sign(evec)

    logger.debug("Cap tapers done: shannon=%s", shannon_number)
    return TaperResult(
        tapers=_write_output(evec, tapers),
        eigenvalues=_write_output(eval_work, eigenvalues),
        shannon=shannon_number,
    )


def run_cap_tapers(
    theta0: RealLike,
    lmax: IntLike,
    m: IntLike,
    *,
    tapers: Optional[np.ndarray] = None,
    eigenvalues: Optional[np.ndarray] = None,
    shannon: bool = True,
    config: Optional[TaperConfig] = None,
    kernel_builder: Optional[KernelBuilder] = None,
) -> TaperResult:
    """Like :func:`solve_cap_tapers`, but failures are returned as a result."""

    try:
        return solve_cap_tapers(
            theta0,
            lmax,
            m,
            tapers=tapers,
            eigenvalues=eigenvalues,
            shannon=shannon,
            config=config,
            kernel_builder=kernel_builder,
        )
    except TaperError as exc:
        logger.error("Cap taper computation failed (status %d): %s", int(exc.status), exc)
        return TaperResult.failure(exc)


def cap_shannon_number(theta0: RealLike, lmax: IntLike) -> float:
    """Shannon number of the cap summed over all orders ``-lmax..lmax``.

    Equals ``(lmax + 1)^2 (1 - cos theta0) / 2``, the trace of the
    full-bandwidth concentration kernel.
    """

    p = int(lmax)
    if p < 0:
        raise RangeError(f"LMAX must be >= 0. LMAX = {p}")
    return (p + 1) ** 2 * (1.0 - math.cos(float(theta0))) / 2.0


__all__ = [
    "cap_shannon_number",
    "quadrature_eigenvalues",
    "run_cap_tapers",
    "solve_cap_tapers",
    "validate_problem",
]
