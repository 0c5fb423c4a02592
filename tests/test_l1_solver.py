import numpy as np
import pytest
from scipy import sparse

from sfmgraph.l1_solver import L1Solver, L1SolverError, L1SolverOptions


def _tight_options():
    return L1SolverOptions(
        max_num_iterations=10000, absolute_tolerance=1e-10, relative_tolerance=1e-10
    )


def _problem():
    rng = np.random.default_rng(3)
    a = rng.normal(size=(20, 3))
    x_true = np.array([1.5, -2.0, 0.5])
    return a, x_true, a @ x_true


def test_default_options():
    options = L1SolverOptions()
    assert options.max_num_iterations == 1000
    assert options.rho == 1.0
    assert options.absolute_tolerance == 1e-4
    assert options.relative_tolerance == 1e-2


def test_exact_system_is_recovered():
    a, x_true, b = _problem()
    x = L1Solver(_tight_options(), a).solve(b)
    np.testing.assert_allclose(x, x_true, atol=1e-4)


def test_single_outlier_is_ignored():
    a, x_true, b = _problem()
    b = b.copy()
    b[5] += 50.0
    x = L1Solver(_tight_options(), a).solve(b)
    np.testing.assert_allclose(x, x_true, atol=1e-3)
    least_squares = np.linalg.lstsq(a, b, rcond=None)[0]
    assert np.linalg.norm(x - x_true) < np.linalg.norm(least_squares - x_true)


def test_sparse_matrix_matches_dense():
    a, x_true, b = _problem()
    x_dense = L1Solver(_tight_options(), a).solve(b)
    x_sparse = L1Solver(_tight_options(), sparse.csr_matrix(a)).solve(b)
    np.testing.assert_allclose(x_sparse, x_dense, atol=1e-6)


def test_zero_iterations_returns_zeros():
    a, _, b = _problem()
    x = L1Solver(L1SolverOptions(max_num_iterations=0), a).solve(b)
    np.testing.assert_array_equal(x, np.zeros(3))


def test_rhs_length_mismatch_raises():
    a, _, b = _problem()
    with pytest.raises(ValueError):
        L1Solver(L1SolverOptions(), a).solve(b[:-1])


def test_singular_dense_matrix_raises():
    a = np.array([[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])
    with pytest.raises(L1SolverError):
        L1Solver(L1SolverOptions(), a)


def test_singular_sparse_matrix_raises():
    a = sparse.csr_matrix(np.array([[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]]))
    with pytest.raises(L1SolverError):
        L1Solver(L1SolverOptions(), a)