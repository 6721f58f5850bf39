"""
Perspective-n-Point with EPnP

Estimates the pose of a calibrated camera from four or more 3D points and
their observations in normalized image coordinates.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from ..data_models import PoseEstimate


class EfficientPnP:
    """EPnP pose estimator with optional Levenberg-Marquardt refinement."""

    min_points = 4

    def __init__(self, num_iterations: int = 0):
        """
        Args:
            num_iterations: If more than zero then non-linear optimization is done. Try 10
        """
        if num_iterations < 0:
            raise ValueError("num_iterations must be non-negative")
        self.num_iterations = num_iterations
        self.logger = logging.getLogger(__name__)

    def process(self, world_points: np.ndarray, observations: np.ndarray) -> Optional[PoseEstimate]:
        """
        Estimate the pose.

        Args:
            world_points: Nx3 points in the world frame
            observations: Nx2 observations in normalized image coordinates

        Returns:
            Pose of the world frame relative to the camera, None if it failed
        """
        world = np.asarray(world_points, dtype=np.float64).reshape(-1, 3)
        image = np.asarray(observations, dtype=np.float64).reshape(-1, 2)
        if len(world) != len(image):
            raise ValueError("Must have the same number of world points and observations")
        if len(world) < self.min_points:
            return None

        camera_matrix = np.eye(3)
        dist_coeffs = np.zeros(4)

        ok, rvec, tvec = cv2.solvePnP(world, image, camera_matrix, dist_coeffs, flags=cv2.SOLVEPNP_EPNP)
        if not ok:
            self.logger.debug("EPnP failed")
            return None

        if self.num_iterations > 0:
            criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_COUNT, self.num_iterations, 1e-12)
            rvec, tvec = cv2.solvePnPRefineLM(world, image, camera_matrix, dist_coeffs, rvec, tvec,
                                              criteria=criteria)

        rotation, _ = cv2.Rodrigues(rvec)
        return PoseEstimate(rotation_matrix=rotation, translation_vector=tvec.ravel())
