"""
Detection Visualization

Draws detected calibration points on top of the input image.
"""

import cv2
import numpy as np


def draw_calibration_points(image: np.ndarray, points: np.ndarray, rows: int, cols: int) -> np.ndarray:
    """
    Draw the calibration points and connect them in row-major order.

    Args:
        image: Greyscale or BGR image
        points: Nx2 calibration points, row-major
        rows: Number of point rows
        cols: Number of point columns

    Returns:
        BGR image with the points drawn on it
    """
    if len(image.shape) == 2:
        canvas = cv2.cvtColor(np.clip(image, 0, 255).astype(np.uint8), cv2.COLOR_GRAY2BGR)
    else:
        canvas = image.copy()

    if len(points) != rows * cols:
        raise ValueError(f"Expected {rows * cols} points, found {len(points)}")

    pixels = np.round(points).astype(np.int32)
    for row in range(rows):
        line = pixels[row * cols:(row + 1) * cols]
        cv2.polylines(canvas, [line.reshape(-1, 1, 2)], False, (255, 128, 0), 1)

    for i, (x, y) in enumerate(pixels):
        # first point is green so the orientation is visible
        color = (0, 255, 0) if i == 0 else (0, 0, 255)
        cv2.circle(canvas, (int(x), int(y)), 3, color, -1)

    return canvas
