"""
Linear Fundamental / Essential Matrix Estimation

Implements the normalized 8-point algorithm and the 7-point algorithm. When
estimating an essential matrix the observations must be in normalized image
coordinates, a fundamental matrix works directly on pixels.
"""

from typing import List, Optional

import numpy as np

from ..data_models import AssociatedPair
from .homography import apply_homography, normalization_matrix, pairs_to_arrays


def enforce_constraints(F: np.ndarray, is_fundamental: bool) -> np.ndarray:
    """Project onto the closest rank 2 matrix, with equal singular values for essential matrices."""
    u, s, vt = np.linalg.svd(F)
    if is_fundamental:
        s = np.array([s[0], s[1], 0.0])
    else:
        s = np.array([1.0, 1.0, 0.0])
    return u @ np.diag(s) @ vt


def _design_matrix(p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    x1, y1 = p1[:, 0], p1[:, 1]
    x2, y2 = p2[:, 0], p2[:, 1]
    ones = np.ones(len(p1))
    return np.column_stack([x2 * x1, x2 * y1, x2, y2 * x1, y2 * y1, y2, x1, y1, ones])


class FundamentalLinear:
    """Linear estimator for fundamental and essential matrices, x2' * F * x1 = 0."""

    def __init__(self, is_fundamental: bool, min_points: int):
        """
        Args:
            is_fundamental: True if observations are in pixels, false if they are normalized.
            min_points: Which algorithm to use, 7 or 8.
        """
        if min_points not in (7, 8):
            raise ValueError(f"Only 7 and 8 point algorithms are supported, not {min_points}")
        self.is_fundamental = is_fundamental
        self.min_points = min_points
        self.solutions: List[np.ndarray] = []

    def process(self, pairs: List[AssociatedPair]) -> bool:
        """
        Estimate the matrix.

        Returns:
            True if at least one solution was found
        """
        self.solutions = []
        if len(pairs) < self.min_points:
            return False

        p1, p2 = pairs_to_arrays(pairs)
        N1 = normalization_matrix(p1)
        N2 = normalization_matrix(p2)
        A = _design_matrix(apply_homography(N1, p1), apply_homography(N2, p2))

        _, _, vt = np.linalg.svd(A, full_matrices=True)

        if self.min_points == 8 and len(pairs) >= 8:
            candidates = [vt[-1].reshape(3, 3)]
        else:
            candidates = self._seven_point(vt[-1].reshape(3, 3), vt[-2].reshape(3, 3))

        for F in candidates:
            F = N2.T @ F @ N1
            F = enforce_constraints(F, self.is_fundamental)
            self.solutions.append(F / np.linalg.norm(F))

        return len(self.solutions) > 0

    @staticmethod
    def _seven_point(F1: np.ndarray, F2: np.ndarray) -> List[np.ndarray]:
        """Solve det(a*F1 + (1-a)*F2) = 0 for the real roots a."""
        samples = np.array([-1.0, 0.0, 1.0, 2.0])
        dets = [np.linalg.det(a * F1 + (1 - a) * F2) for a in samples]
        coefficients = np.polyfit(samples, dets, 3)

        roots = np.roots(coefficients)
        real = roots[np.abs(roots.imag) < 1e-8].real
        return [a * F1 + (1 - a) * F2 for a in real]

    def get_model(self) -> Optional[np.ndarray]:
        """First solution, None if nothing was found."""
        return self.solutions[0] if self.solutions else None

    def get_solutions(self) -> List[np.ndarray]:
        return self.solutions
