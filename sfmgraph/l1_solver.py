"""Least absolute deviations (min ||A x - b||_1) by ADMM."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy import linalg, sparse
from scipy.sparse.linalg import splu


class L1SolverError(RuntimeError):
    """The normal equations of the problem cannot be solved."""


@dataclass
class L1SolverOptions:
    max_num_iterations: int = 1000
    # Augmented Lagrangian parameter.
    rho: float = 1.0
    # Over-relaxation parameter, typically between 1.0 and 1.8.
    alpha: float = 1.0
    absolute_tolerance: float = 1e-4
    relative_tolerance: float = 1e-2


def _shrinkage(vec: np.ndarray, kappa: float) -> np.ndarray:
    return np.maximum(0.0, vec - kappa) - np.maximum(0.0, -vec - kappa)


class L1Solver:
    """ADMM solver for a fixed matrix A; dense arrays and scipy sparse matrices."""

    def __init__(self, options: L1SolverOptions, matrix) -> None:
        self.options = options
        if sparse.issparse(matrix):
            self._a = sparse.csc_matrix(matrix, dtype=float)
            normal = (self._a.T @ self._a).tocsc()
            try:
                factor = splu(normal)
            except RuntimeError as exc:
                raise L1SolverError(
                    "could not factorise the sparse normal equations"
                ) from exc
            self._solve_normal = factor.solve
        else:
            self._a = np.atleast_2d(np.asarray(matrix, dtype=float))
            try:
                factor = linalg.cho_factor(self._a.T @ self._a)
            except linalg.LinAlgError as exc:
                raise L1SolverError(
                    "could not factorise the normal equations with Cholesky"
                ) from exc
            self._solve_normal = lambda rhs: linalg.cho_solve(factor, rhs)

    def solve(self, rhs) -> np.ndarray:
        """Return x approximately minimising ||A x - rhs||_1."""
        a = self._a
        opts = self.options
        rows, cols = a.shape
        b = np.asarray(rhs, dtype=float).reshape(-1)
        if b.shape[0] != rows:
            raise ValueError(f"rhs has length {b.shape[0]}, expected {rows}")

        x = np.zeros(cols)
        z = np.zeros(rows)
        u = np.zeros(rows)

        rhs_norm = np.linalg.norm(b)
        primal_abs_eps = math.sqrt(rows) * opts.absolute_tolerance
        dual_abs_eps = math.sqrt(cols) * opts.absolute_tolerance

        for _ in range(opts.max_num_iterations):
            x = np.asarray(self._solve_normal(a.T @ (b + z - u))).reshape(-1)
            if not np.all(np.isfinite(x)):
                raise L1SolverError("linear solve produced non-finite values")

            a_times_x = np.asarray(a @ x).reshape(-1)
            ax_hat = opts.alpha * a_times_x + (1.0 - opts.alpha) * (z + b)

            z_old = z
            z = _shrinkage(ax_hat - b + u, 1.0 / opts.rho)
            u = u + ax_hat - z - b

            r_norm = np.linalg.norm(a_times_x - z - b)
            s_norm = np.linalg.norm(-opts.rho * (a.T @ (z - z_old)))
            max_norm = max(np.linalg.norm(a_times_x), np.linalg.norm(z), rhs_norm)
            primal_eps = primal_abs_eps + opts.relative_tolerance * max_norm
            dual_eps = dual_abs_eps + opts.relative_tolerance * np.linalg.norm(
                opts.rho * (a.T @ u)
            )
            if r_norm < primal_eps and s_norm < dual_eps:
                break
        return x