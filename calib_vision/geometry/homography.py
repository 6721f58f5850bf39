"""
Linear Homography Estimation

Direct linear transform from four or more point correspondences, with
optional Hartley normalization for numerical stability.
"""

from typing import List, Optional, Tuple

import numpy as np

from ..data_models import AssociatedPair


def pairs_to_arrays(pairs: List[AssociatedPair]) -> Tuple[np.ndarray, np.ndarray]:
    """Stack the observations into two Nx2 arrays."""
    p1 = np.array([p.p1 for p in pairs], dtype=np.float64).reshape(-1, 2)
    p2 = np.array([p.p2 for p in pairs], dtype=np.float64).reshape(-1, 2)
    return p1, p2


def normalization_matrix(points: np.ndarray) -> np.ndarray:
    """
    Similarity transform which moves the points to zero mean and scales them
    so the average coordinate magnitude is one along each axis.
    """
    mean = points.mean(axis=0)
    std = points.std(axis=0)
    std[std == 0] = 1.0
    return np.array([
        [1.0 / std[0], 0, -mean[0] / std[0]],
        [0, 1.0 / std[1], -mean[1] / std[1]],
        [0, 0, 1]
    ])


def to_homogeneous(points: np.ndarray) -> np.ndarray:
    return np.hstack([points, np.ones((len(points), 1))])


def apply_homography(H: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Transform Nx2 points by a homography."""
    mapped = to_homogeneous(points) @ H.T
    return mapped[:, :2] / mapped[:, 2:3]


class HomographyLinear4:
    """Estimates a homography from four or more associated pairs."""

    min_points = 4

    def __init__(self, normalize: bool = True):
        """
        Args:
            normalize: Normalize the input points before solving. Recommended for pixel coordinates.
        """
        self.normalize = normalize
        self.model: Optional[np.ndarray] = None

    def process(self, pairs: List[AssociatedPair]) -> bool:
        """
        Estimate the homography mapping p1 onto p2.

        Returns:
            True if a solution was found
        """
        self.model = None
        if len(pairs) < self.min_points:
            return False

        p1, p2 = pairs_to_arrays(pairs)
        if self.normalize:
            N1 = normalization_matrix(p1)
            N2 = normalization_matrix(p2)
            p1 = apply_homography(N1, p1)
            p2 = apply_homography(N2, p2)

        A = np.zeros((2 * len(p1), 9))
        for i, ((x, y), (u, v)) in enumerate(zip(p1, p2)):
            A[2 * i] = [-x, -y, -1, 0, 0, 0, u * x, u * y, u]
            A[2 * i + 1] = [0, 0, 0, -x, -y, -1, v * x, v * y, v]

        _, s, vt = np.linalg.svd(A)
        # a second null vector means the points are degenerate
        if len(s) >= 8 and s[7] < 1e-12 * max(s[0], 1.0):
            return False

        H = vt[-1].reshape(3, 3)
        if self.normalize:
            H = np.linalg.inv(N2) @ H @ N1

        self.model = H / np.linalg.norm(H)
        return True

    def get_model(self) -> Optional[np.ndarray]:
        return self.model
