"""
Binarization Adapters

Converts a greyscale image into a binary mask where the dark squares of the
target are 1 and everything else is 0. Each binarizer writes into a mask
owned by the caller.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from ..utils.config_manager import ConfigManager


def _as_uint8(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.dtype == np.uint8:
        return image
    return np.clip(image, 0, 255).astype(np.uint8)


def _write(binary: np.ndarray, mask: np.ndarray) -> None:
    if binary.shape != mask.shape:
        raise ValueError(f"Binary image must have shape {mask.shape}, found {binary.shape}")
    binary[...] = mask


class GlobalThresholdBinarizer:
    """Pixels at or below a fixed threshold are foreground."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def process(self, image: np.ndarray, binary: np.ndarray) -> None:
        if len(image.shape) == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        _write(binary, (image <= self.threshold).astype(np.uint8))


class OtsuBinarizer:
    """Global threshold selected with Otsu's method."""

    def process(self, image: np.ndarray, binary: np.ndarray) -> None:
        gray = _as_uint8(image)
        _, mask = cv2.threshold(gray, 0, 1, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
        _write(binary, mask)


class AdaptiveBinarizer:
    """Threshold computed from the local mean around each pixel."""

    def __init__(self, block_size: int = 31, offset: float = 5):
        if block_size < 3 or block_size % 2 == 0:
            raise ValueError("block_size must be odd and at least 3")
        self.block_size = block_size
        self.offset = offset

    def process(self, image: np.ndarray, binary: np.ndarray) -> None:
        gray = _as_uint8(image)
        mask = cv2.adaptiveThreshold(
            gray, 1, cv2.ADAPTIVE_THRESH_MEAN_C, cv2.THRESH_BINARY_INV,
            self.block_size, self.offset
        )
        _write(binary, mask)


def create_binarizer(config_manager: Optional[ConfigManager] = None):
    """
    Create the binarizer selected in the configuration.

    Args:
        config_manager: Configuration manager instance

    Returns:
        Binarizer with a process(image, binary) method
    """
    config = config_manager or ConfigManager()
    params = config.get_binarization_params()
    method = params.get('method', 'otsu')

    if method == 'global':
        binarizer = GlobalThresholdBinarizer(params.get('threshold', 100))
    elif method == 'otsu':
        binarizer = OtsuBinarizer()
    elif method == 'adaptive':
        binarizer = AdaptiveBinarizer(params.get('block_size', 31), params.get('offset', 5))
    else:
        raise ValueError(f"Unknown binarization method: {method}")

    logging.getLogger(__name__).debug(f"Created {type(binarizer).__name__}")
    return binarizer
