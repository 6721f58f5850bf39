"""
Non-linear Refinement of Epipolar Matrices

Refines homographies and fundamental/essential matrices by minimizing a
residual function with SciPy's least-squares solver. The residual function is
chosen once when the refiner is created.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np
from scipy.optimize import least_squares

from ..data_models import AssociatedPair
from .fundamental import enforce_constraints
from .homography import apply_homography, pairs_to_arrays, to_homogeneous


class EpipolarError(Enum):
    """Error metric minimized when refining an epipolar matrix."""
    SIMPLE = 'SIMPLE'
    SAMPSON = 'SAMPSON'


def homography_transfer_residuals(h: np.ndarray, p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """Difference between the observed and transferred points in the second view."""
    H = h.reshape(3, 3)
    return (apply_homography(H, p1) - p2).ravel()


def homography_sampson_residuals(h: np.ndarray, p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """First order approximation of the geometric error in both views."""
    H = h.reshape(3, 3)
    x1 = to_homogeneous(p1)
    u, v = p2[:, 0], p2[:, 1]

    h1 = x1 @ H[0]
    h2 = x1 @ H[1]
    h3 = x1 @ H[2]

    e_u = u * h3 - h1
    e_v = v * h3 - h2

    # jacobian of (e_u, e_v) with respect to (x, y, u, v)
    ju = np.stack([u * H[2, 0] - H[0, 0], u * H[2, 1] - H[0, 1], h3, np.zeros_like(h3)], axis=1)
    jv = np.stack([v * H[2, 0] - H[1, 0], v * H[2, 1] - H[1, 1], np.zeros_like(h3), h3], axis=1)

    a = np.sum(ju * ju, axis=1)
    b = np.sum(ju * jv, axis=1)
    c = np.sum(jv * jv, axis=1)

    # whiten the error with the cholesky factor of J*J'
    l11 = np.sqrt(a)
    l21 = b / l11
    l22 = np.sqrt(np.maximum(c - l21 * l21, 1e-300))
    r1 = e_u / l11
    r2 = (e_v - l21 * r1) / l22
    return np.concatenate([r1, r2])


def fundamental_simple_residuals(f: np.ndarray, p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """Algebraic error x2' * F * x1."""
    F = f.reshape(3, 3) / np.linalg.norm(f)
    x1 = to_homogeneous(p1)
    x2 = to_homogeneous(p2)
    return np.sum((x2 @ F) * x1, axis=1)


def fundamental_sampson_residuals(f: np.ndarray, p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """Algebraic error divided by the norm of its gradient."""
    F = f.reshape(3, 3) / np.linalg.norm(f)
    x1 = to_homogeneous(p1)
    x2 = to_homogeneous(p2)
    Fx1 = x1 @ F.T
    Ftx2 = x2 @ F
    error = np.sum(x2 * Fx1, axis=1)
    denom = Fx1[:, 0] ** 2 + Fx1[:, 1] ** 2 + Ftx2[:, 0] ** 2 + Ftx2[:, 1] ** 2
    return error / np.sqrt(np.maximum(denom, 1e-300))


ResidualFunction = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


class LeastSquaresEpipolar:
    """Refines a 3x3 matrix by minimizing a residual function over associated pairs."""

    def __init__(self, tol: float, max_iterations: int, residuals: ResidualFunction,
                 enforce_rank: bool = False):
        """
        Args:
            tol: Tolerance for convergence. Try 1e-8
            max_iterations: Maximum number of iterations it will perform. Try 100 or more.
            residuals: Function computing residuals from the flattened matrix and the points
            enforce_rank: Project the result onto rank 2 matrices
        """
        if tol <= 0:
            raise ValueError("Tolerance must be positive")
        if max_iterations < 1:
            raise ValueError("max_iterations must be positive")

        self.tol = tol
        self.max_iterations = max_iterations
        self.residuals = residuals
        self.enforce_rank = enforce_rank
        self.refined: Optional[np.ndarray] = None
        self.logger = logging.getLogger(__name__)

    def process(self, initial: np.ndarray, pairs: List[AssociatedPair]) -> bool:
        """
        Refine the initial estimate.

        Returns:
            True if the solver converged
        """
        self.refined = None
        p1, p2 = pairs_to_arrays(pairs)
        x0 = np.asarray(initial, dtype=np.float64).ravel()
        x0 = x0 / np.linalg.norm(x0)

        num_residuals = len(self.residuals(x0, p1, p2))
        method = 'lm' if num_residuals >= len(x0) else 'trf'

        result = least_squares(
            self.residuals, x0, args=(p1, p2), method=method,
            xtol=self.tol, ftol=self.tol, max_nfev=self.max_iterations * (len(x0) + 1)
        )
        if result.status <= 0:
            self.logger.debug(f"Refinement failed: {result.message}")
            return False

        refined = result.x.reshape(3, 3)
        if self.enforce_rank:
            refined = enforce_constraints(refined, True)
        self.refined = refined / np.linalg.norm(refined)

        self.logger.debug(f"Refinement finished after {result.nfev} evaluations, cost={result.cost:.3e}")
        return True

    def get_refined(self) -> Optional[np.ndarray]:
        return self.refined
