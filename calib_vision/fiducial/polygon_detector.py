"""
Convex Quadrilateral Detector

Finds convex four sided polygons in a binary mask using OpenCV contours. Only
the outer contour of each blob is considered and polygons touching the image
border are discarded since they are likely to be partially visible.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from ..utils.config_manager import ConfigManager


class ConvexQuadDetector:
    """Detects candidate squares in a binary image."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize the quadrilateral detector.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        polygon_config = self.config.get_polygon_params()

        self.min_side_length = polygon_config.get('min_side_length', 10)
        self.max_area_fraction = polygon_config.get('max_area_fraction', 0.25)
        self.approx_epsilon = polygon_config.get('approx_epsilon', 0.05)

        self.found: List[np.ndarray] = []

        self.logger.info(f"Quad detector initialized: min_side={self.min_side_length} pixels")

    def process(self, image: np.ndarray, binary: np.ndarray) -> None:
        """
        Detect quadrilaterals.

        Args:
            image: Original image, only its size is used
            binary: Binary mask where the squares are non-zero
        """
        self.found = []
        height, width = binary.shape[:2]
        max_area = self.max_area_fraction * width * height

        contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        for contour in contours:
            perimeter = cv2.arcLength(contour, True)
            if perimeter < 4 * self.min_side_length:
                continue

            approx = cv2.approxPolyDP(contour, self.approx_epsilon * perimeter, True)
            if len(approx) != 4 or not cv2.isContourConvex(approx):
                continue

            corners = approx.reshape(4, 2).astype(np.float64)
            if np.any(corners <= 0) or np.any(corners[:, 0] >= width - 1) or np.any(corners[:, 1] >= height - 1):
                continue

            sides = np.linalg.norm(np.roll(corners, -1, axis=0) - corners, axis=1)
            if sides.min() < self.min_side_length:
                continue
            if cv2.contourArea(approx) > max_area:
                continue

            self.found.append(corners)

        self.logger.debug(f"Detected {len(self.found)} quadrilaterals from {len(contours)} contours")

    def get_found(self) -> List[np.ndarray]:
        return self.found
