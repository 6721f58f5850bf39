"""
Pytest configuration and fixtures for calibration vision tests.
"""

import pytest
import numpy as np
import cv2

from calib_vision.utils.config_manager import ConfigManager


class PrecomputedPolygons:
    """Polygon detector which returns a fixed list of polygons."""

    def __init__(self, polygons):
        self.polygons = polygons
        self.calls = 0

    def process(self, image, binary):
        self.calls += 1

    def get_found(self):
        return self.polygons


class RecordingBinarizer:
    """Binarizer which only records the buffers it was given."""

    def __init__(self):
        self.buffers = []

    def process(self, image, binary):
        self.buffers.append(binary)


def make_grid_polygons(rows, cols, square=30.0, space=30.0, center=(300.0, 300.0),
                       angle=0.0, mirror=False, frame_width=600.0, shuffle_seed=None):
    """
    Corners of a grid of squares, rotated about its center.

    Returns:
        List of 4x2 arrays in row-major order of the untransformed grid
    """
    period = square + space
    width = cols * period - space
    height = rows * period - space

    theta = np.radians(angle)
    R = np.array([[np.cos(theta), -np.sin(theta)],
                  [np.sin(theta), np.cos(theta)]])
    rng = np.random.default_rng(shuffle_seed) if shuffle_seed is not None else None

    polygons = []
    for row in range(rows):
        for col in range(cols):
            x0 = col * period - width / 2
            y0 = row * period - height / 2
            corners = np.array([[x0, y0], [x0 + square, y0],
                                [x0 + square, y0 + square], [x0, y0 + square]])
            corners = corners @ R.T + np.asarray(center)
            if mirror:
                corners[:, 0] = frame_width - corners[:, 0]
            if rng is not None:
                corners = np.roll(corners, rng.integers(4), axis=0)
                if rng.integers(2):
                    corners = corners[::-1]
            polygons.append(corners)
    return polygons


def draw_square_grid(rows, cols, square=30, space=30, origin=(60, 60), shape=(400, 400)):
    """White image with a grid of black squares whose top-left corner is at origin."""
    image = np.full(shape, 255, dtype=np.uint8)
    period = square + space
    for row in range(rows):
        for col in range(cols):
            x0 = origin[0] + col * period
            y0 = origin[1] + row * period
            cv2.rectangle(image, (x0, y0), (x0 + square - 1, y0 + square - 1), 0, -1)
    return image


@pytest.fixture
def config_manager():
    """Fixture providing a configuration manager instance."""
    return ConfigManager()


@pytest.fixture
def grid_polygons():
    """Fixture providing the synthetic grid polygon factory."""
    return make_grid_polygons


@pytest.fixture
def square_grid_image():
    """Fixture providing the synthetic target image factory."""
    return draw_square_grid


@pytest.fixture
def polygon_source():
    """Fixture providing a factory for fixed polygon detectors."""
    return PrecomputedPolygons


@pytest.fixture
def recording_binarizer():
    """Fixture providing a binarizer which does nothing."""
    return RecordingBinarizer()


@pytest.fixture
def random_image():
    """Fixture providing a seeded random image factory."""
    def factory(shape, dtype, low=0, high=255, seed=0):
        rng = np.random.default_rng(seed)
        if np.issubdtype(np.dtype(dtype), np.floating):
            return rng.uniform(low, high, shape).astype(dtype)
        return rng.integers(low, high, shape).astype(dtype)
    return factory
