"""Public API, configuration and error-mode coverage."""

import numpy as np
import pytest
from scipy.linalg import LinAlgError

from capslep import (
    AllocationError,
    CapTaperSolver,
    DimensionError,
    ErrorMode,
    KernelIOError,
    NumericalError,
    RangeError,
    TaperConfig,
    TaperStatus,
    compute_cap_tapers,
)
from capslep.operators.kernel import grunbaum_kernel
from capslep.runtime import _tapers_impl


def _sentinel_buffers(tapers_shape, eig_len, fill=7.0):
    return np.full(tapers_shape, fill), np.full(eig_len, fill)


def test_config_defaults_and_string_error_mode() -> None:
    cfg = TaperConfig()
    assert cfg.error_mode is ErrorMode.RAISE
    assert cfg.eigen_driver == "stemr"
    assert cfg.sort_by_concentration is True

    assert TaperConfig(error_mode="STATUS").error_mode is ErrorMode.STATUS


@pytest.mark.parametrize(
    "kwargs",
    [
        {"eigen_driver": "dsyev"},
        {"ordering_tolerance": -1.0},
        {"ordering_tolerance": float("nan")},
        {"error_mode": "abort-ish"},
    ],
)
def test_config_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        TaperConfig(**kwargs)


def test_solver_overrides_build_config() -> None:
    solver = CapTaperSolver(error_mode="status", eigen_driver="stebz")
    assert solver.error_mode is ErrorMode.STATUS
    assert solver.config.eigen_driver == "stebz"


def test_writes_into_caller_buffers() -> None:
    lmax = 6
    tapers, eigenvalues = _sentinel_buffers((lmax + 3, lmax + 2), lmax + 4, fill=5.0)

    result = compute_cap_tapers(0.7, lmax, 2, tapers=tapers, eigenvalues=eigenvalues)
    fresh = compute_cap_tapers(0.7, lmax, 2)

    assert result.tapers is tapers
    assert result.eigenvalues is eigenvalues
    assert np.allclose(tapers[: lmax + 1, : lmax + 1], fresh.tapers)
    assert np.all(tapers[lmax + 1 :, :] == 0.0)
    assert np.all(tapers[:, lmax + 1 :] == 0.0)
    assert np.allclose(eigenvalues[: lmax + 1], fresh.eigenvalues)
    assert np.all(eigenvalues[lmax + 1 :] == 0.0)


def test_shannon_is_optional() -> None:
    result = compute_cap_tapers(0.7, 5, 0, shannon=False)
    assert result.shannon is None
    assert result.ok


def test_undersized_tapers_raise_dimension_error() -> None:
    lmax = 5
    tapers, eigenvalues = _sentinel_buffers((lmax, lmax), lmax + 1)
    with pytest.raises(DimensionError):
        compute_cap_tapers(0.5, lmax, 0, tapers=tapers, eigenvalues=eigenvalues)
    assert np.all(tapers == 7.0)
    assert np.all(eigenvalues == 7.0)


def test_undersized_tapers_report_status_one() -> None:
    lmax = 5
    tapers, eigenvalues = _sentinel_buffers((lmax, lmax), lmax + 1)
    result = compute_cap_tapers(
        0.5, lmax, 0, tapers=tapers, eigenvalues=eigenvalues, error_mode="status"
    )

    assert result.status == 1
    assert result.status is TaperStatus.DIMENSION
    assert isinstance(result.error, DimensionError)
    assert result.tapers is None and result.eigenvalues is None
    assert np.all(tapers == 7.0)
    assert np.all(eigenvalues == 7.0)


def test_short_eigenvalue_buffer_is_a_dimension_error() -> None:
    result = compute_cap_tapers(
        0.5, 5, 0, eigenvalues=np.zeros(5), error_mode=ErrorMode.STATUS
    )
    assert result.status is TaperStatus.DIMENSION


@pytest.mark.parametrize("m", [6, -6])
def test_order_above_bandwidth_is_a_range_error(m: int) -> None:
    lmax = 5
    tapers, eigenvalues = _sentinel_buffers((lmax + 1, lmax + 1), lmax + 1)

    with pytest.raises(RangeError):
        compute_cap_tapers(0.5, lmax, m, tapers=tapers, eigenvalues=eigenvalues)

    result = compute_cap_tapers(
        0.5, lmax, m, tapers=tapers, eigenvalues=eigenvalues, error_mode="status"
    )
    assert result.status == 2
    assert np.all(tapers == 7.0)
    assert np.all(eigenvalues == 7.0)


@pytest.mark.parametrize(
    ("theta0", "lmax"),
    [(0.0, 4), (-0.1, 4), (np.pi + 1e-6, 4), (float("nan"), 4), (0.5, -1)],
)
def test_invalid_parameters_are_range_errors(theta0: float, lmax: int) -> None:
    with pytest.raises(RangeError):
        compute_cap_tapers(theta0, lmax, 0)


def test_non_numpy_buffers_are_rejected() -> None:
    with pytest.raises(TypeError):
        compute_cap_tapers(0.5, 2, 0, tapers=[[0.0] * 3] * 3)

    frozen = np.zeros((3, 3))
    frozen.flags.writeable = False
    with pytest.raises(TypeError):
        compute_cap_tapers(0.5, 2, 0, tapers=frozen)


def test_allocation_failure_maps_to_status_three(monkeypatch) -> None:
    def _no_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(_tapers_impl.np, "zeros", _no_memory)
    result = CapTaperSolver(error_mode="status").compute(0.5, 4, 0)

    assert result.status is TaperStatus.ALLOCATION
    assert isinstance(result.error, AllocationError)
    assert isinstance(result.error, MemoryError)


def test_kernel_builder_failure_propagates_verbatim() -> None:
    def _missing_kernel(lmax: int, m: int, theta0: float):
        raise KernelIOError("kernel file not found")

    solver = CapTaperSolver(kernel_builder=_missing_kernel)
    with pytest.raises(KernelIOError, match="kernel file not found"):
        solver.compute(0.5, 4, 0)

    status_solver = CapTaperSolver(error_mode="status", kernel_builder=_missing_kernel)
    result = status_solver.compute(0.5, 4, 0)
    assert result.status is TaperStatus.IO


def test_wrongly_sized_kernel_is_a_dimension_error() -> None:
    def _too_small(lmax: int, m: int, theta0: float):
        return grunbaum_kernel(lmax - 1, m, theta0)

    with pytest.raises(DimensionError):
        CapTaperSolver(kernel_builder=_too_small).compute(0.5, 4, 0)


def test_unsorted_solver_order_is_resorted_by_concentration(caplog) -> None:
    def _ascending(lmax: int, m: int, theta0: float):
        d, e = grunbaum_kernel(lmax, m, theta0)
        return -d, -e

    reference = compute_cap_tapers(0.8, 6, 0)
    with caplog.at_level("WARNING", logger="capslep"):
        result = CapTaperSolver(kernel_builder=_ascending).compute(0.8, 6, 0)

    assert "re-sorting" in caplog.text
    assert np.allclose(result.eigenvalues, reference.eigenvalues, atol=1e-12)
    assert np.allclose(result.tapers, reference.tapers, atol=1e-8)


def test_unsorted_solver_order_can_be_kept(caplog) -> None:
    def _ascending(lmax: int, m: int, theta0: float):
        d, e = grunbaum_kernel(lmax, m, theta0)
        return -d, -e

    solver = CapTaperSolver(sort_by_concentration=False, kernel_builder=_ascending)
    with caplog.at_level("WARNING", logger="capslep"):
        result = solver.compute(0.8, 6, 0)

    assert "eigensolver order" in caplog.text
    assert np.all(np.diff(result.eigenvalues) >= -1e-12)


def test_default_order_needs_no_resorting(caplog) -> None:
    with caplog.at_level("WARNING", logger="capslep"):
        compute_cap_tapers(0.6, 20, 0)
        compute_cap_tapers(0.6, 20, 7)
    assert not [r for r in caplog.records if r.name.startswith("capslep")]


@pytest.mark.parametrize("driver", ["stebz", "stev", "auto"])
def test_eigen_drivers_agree(driver: str) -> None:
    reference = compute_cap_tapers(1.0, 12, 1)
    result = compute_cap_tapers(1.0, 12, 1, eigen_driver=driver)
    assert np.allclose(result.eigenvalues, reference.eigenvalues, atol=1e-10)
    assert np.allclose(
        np.abs(result.tapers), np.abs(reference.tapers), atol=1e-8
    )


def test_eigensolver_memory_error_maps_to_status_three(monkeypatch) -> None:
    def _out_of_workspace(*args, **kwargs):
        raise MemoryError("LAPACK workspace")

    monkeypatch.setattr(_tapers_impl, "eigh_symmetric_tridiagonal", _out_of_workspace)
    tapers, eigenvalues = _sentinel_buffers((5, 5), 5)
    result = CapTaperSolver(error_mode="status").compute(
        0.5, 4, 0, tapers=tapers, eigenvalues=eigenvalues
    )

    assert result.status is TaperStatus.ALLOCATION
    assert isinstance(result.error, AllocationError)
    assert "eigen-decomposition" in str(result.error)
    assert np.all(tapers == 7.0)
    assert np.all(eigenvalues == 7.0)

    with pytest.raises(AllocationError):
        CapTaperSolver().compute(0.5, 4, 0)


def test_quadrature_memory_error_maps_to_status_three(monkeypatch) -> None:
    def _out_of_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(_tapers_impl, "legendre_order", _out_of_memory)
    result = compute_cap_tapers(0.5, 4, 2, error_mode="status")

    assert result.status is TaperStatus.ALLOCATION


def test_non_finite_kernel_reports_numerical_status() -> None:
    def _nan_kernel(lmax: int, m: int, theta0: float):
        d, e = grunbaum_kernel(lmax, m, theta0)
        return np.full(d.shape, np.nan), np.asarray(e)

    result = CapTaperSolver(error_mode="status", kernel_builder=_nan_kernel).compute(
        0.5, 4, 0
    )
    assert result.status is TaperStatus.NUMERICAL
    assert int(result.status) == 5
    assert isinstance(result.error, NumericalError)
    assert result.tapers is None

    with pytest.raises(NumericalError, match="non-finite"):
        CapTaperSolver(kernel_builder=_nan_kernel).compute(0.5, 4, 0)


def test_lapack_failure_reports_numerical_status(monkeypatch) -> None:
    def _no_convergence(*args, **kwargs):
        raise LinAlgError("eigenvalues did not converge")

    monkeypatch.setattr(_tapers_impl, "eigh_symmetric_tridiagonal", _no_convergence)
    result = compute_cap_tapers(0.5, 4, 1, error_mode="status")

    assert result.status is TaperStatus.NUMERICAL
    assert isinstance(result.error.__cause__, LinAlgError)


def test_kernel_builder_os_error_reports_io_status() -> None:
    def _unreadable(lmax: int, m: int, theta0: float):
        raise FileNotFoundError("kernel.npz")

    result = CapTaperSolver(error_mode="status", kernel_builder=_unreadable).compute(
        0.5, 4, 0
    )
    assert result.status is TaperStatus.IO
    assert isinstance(result.error, KernelIOError)


def test_mismatched_kernel_diagonals_are_a_dimension_error() -> None:
    def _short_off_diagonal(lmax: int, m: int, theta0: float):
        d, e = grunbaum_kernel(lmax, m, theta0)
        return d, e[:-1]

    result = CapTaperSolver(
        error_mode="status", kernel_builder=_short_off_diagonal
    ).compute(0.5, 4, 0)
    assert result.status is TaperStatus.DIMENSION


def test_numpy_integer_orders_are_accepted() -> None:
    reference = compute_cap_tapers(0.7, 8, 3)
    result = compute_cap_tapers(np.float64(0.7), np.int64(8), np.int64(3))
    assert np.allclose(result.eigenvalues, reference.eigenvalues)
