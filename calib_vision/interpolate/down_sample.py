"""
Convolve and Down Sample

Down samples an image after convolving a kernel across it. Only the pixels
which survive the down sampling are convolved, which is much cheaper than
blurring the whole image first. This is typically done when constructing a
Gaussian image pyramid.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..filter.convolve import accumulator_type, check_image, divide, store
from ..filter.kernel import Kernel1D, gaussian_kernel
from ..utils.config_manager import ConfigManager


def down_sample_shape(shape: Tuple[int, int], skip: int) -> Tuple[int, int]:
    """Shape of an image down sampled by sampling every `skip` pixels."""
    if skip < 1:
        raise ValueError("skip must be at least 1")
    height, width = shape
    return (-(-height // skip), -(-width // skip))


def _sampled_pass(kernel: Kernel1D, src: np.ndarray, skip: int) -> np.ndarray:
    """
    Normalized convolution along the rows of src, evaluated only at every
    skip-th column. Weights outside the image are dropped and the rest are
    renormalized.
    """
    length = src.shape[1]
    centers = np.arange(0, length, skip)
    weights = kernel.data.astype(src.dtype)

    total = np.zeros((src.shape[0], len(centers)), dtype=src.dtype)
    norm = np.zeros(len(centers), dtype=src.dtype)
    for i in range(kernel.width):
        index = centers - kernel.offset + i
        valid = (index >= 0) & (index < length)
        total[:, valid] += weights[i] * src[:, index[valid]]
        norm[valid] += weights[i]

    return divide(total, norm)


def down_sample(kernel: Kernel1D, original: np.ndarray, down_sampled: np.ndarray, skip: int) -> None:
    """
    Down samples an image by convolving the specified kernel across the original image and sampling
    every "skip" pixels.

    Each output pixel has the value convolve_normalized_sparse() gives at (x*skip, y*skip). The
    horizontal pass is only computed on the sampled columns and the vertical pass only on the
    sampled rows.

    Args:
        kernel: 1D blur convolution kernel, applied along both axes
        original: Image being down sampled. Not modified.
        down_sampled: The output down sampled image. Modified.
        skip: How many rows/columns should be skipped.
    """
    check_image(original)
    expected = down_sample_shape(original.shape, skip)
    if down_sampled.shape != expected:
        raise ValueError(
            f"Down sampled image must have shape {expected}, found {down_sampled.shape}"
        )

    columns = _sampled_pass(kernel, original.astype(accumulator_type(kernel, original)), skip)
    rows = _sampled_pass(kernel, columns.T.astype(accumulator_type(kernel, columns)), skip)
    down_sampled[...] = store(rows.T, down_sampled.dtype)


class ImagePyramid:
    """Gaussian image pyramid built from sparse convolve-and-down-sample steps."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize image pyramid.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        pyramid_config = self.config.get_pyramid_params()

        self.scale = pyramid_config.get('scale', 2)
        self.sigma = pyramid_config.get('sigma', 1.0)
        self.radius = pyramid_config.get('radius', 2)
        self.min_size = pyramid_config.get('min_size', 16)

        self.levels: List[np.ndarray] = []

        self.logger.info(f"Image pyramid initialized: scale={self.scale}, sigma={self.sigma}")

    def process(self, image: np.ndarray) -> List[np.ndarray]:
        """
        Build the pyramid. The first layer is the input image itself.

        Args:
            image: Single band input image

        Returns:
            List of layers, each smaller than the previous one
        """
        check_image(image)
        kernel = gaussian_kernel(self.sigma, self.radius,
                                 integer=np.issubdtype(image.dtype, np.integer))

        self.levels = [image]
        current = image
        while self.scale > 1:
            shape = down_sample_shape(current.shape, self.scale)
            if min(shape) < self.min_size:
                break
            layer = np.empty(shape, dtype=image.dtype)
            down_sample(kernel, current, layer, self.scale)
            self.levels.append(layer)
            current = layer

        self.logger.debug(f"Built pyramid with {len(self.levels)} layers from {image.shape}")
        return self.levels
