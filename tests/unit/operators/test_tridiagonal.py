import numpy as np
import pytest

from capslep.operators.tridiagonal import eigh_symmetric_tridiagonal


def _dense(d: np.ndarray, e: np.ndarray) -> np.ndarray:
    return np.diag(d) + np.diag(e, 1) + np.diag(e, -1)


@pytest.mark.parametrize("driver", ["stemr", "stebz", "stev", "auto"])
def test_matches_dense_solver_in_decreasing_order(driver: str) -> None:
    rng = np.random.default_rng(3)
    d = rng.normal(size=8)
    e = rng.normal(size=7)

    values, vectors = eigh_symmetric_tridiagonal(d, e, driver)

    assert np.all(np.diff(values) < 0.0)
    assert np.allclose(values, np.linalg.eigvalsh(_dense(d, e))[::-1])
    assert np.allclose(vectors.T @ vectors, np.eye(8), atol=1e-12)
    assert np.allclose(_dense(d, e) @ vectors, vectors * values, atol=1e-10)


def test_single_element_matrix() -> None:
    values, vectors = eigh_symmetric_tridiagonal(np.array([2.5]), np.array([]))
    assert np.array_equal(values, [2.5])
    assert np.array_equal(vectors, [[1.0]])


def test_rejects_mismatched_off_diagonal() -> None:
    with pytest.raises(ValueError):
        _ = eigh_symmetric_tridiagonal(np.zeros(3), np.zeros(3))
    with pytest.raises(ValueError):
        _ = eigh_symmetric_tridiagonal(np.zeros(0), np.zeros(0))
