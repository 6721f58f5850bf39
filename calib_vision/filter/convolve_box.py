"""
Box Convolution

Convolves a kernel which is composed entirely of ones across an image. The
interior is computed from cumulative sums, so the cost does not depend on
the kernel size. Pixels outside the image are treated as zero.
"""

import numpy as np

from .convolve import check_same_shape, store


# (input type, output type) combinations which can hold the box sum
SUPPORTED_PAIRS = {
    (np.dtype(np.float32), np.dtype(np.float32)),
    (np.dtype(np.uint8), np.dtype(np.int16)),
    (np.dtype(np.uint8), np.dtype(np.int32)),
    (np.dtype(np.int16), np.dtype(np.int16)),
}


def _check_arguments(input: np.ndarray, output: np.ndarray, radius: int) -> None:
    check_same_shape(input, output)
    if input.ndim != 2:
        raise ValueError(f"Expected a single band image, found shape {input.shape}")
    if (input.dtype, output.dtype) not in SUPPORTED_PAIRS:
        raise ValueError(f"Unsupported image types: {input.dtype} -> {output.dtype}")
    if radius < 0:
        raise ValueError("Box radius must be non-negative")


def _horizontal(input: np.ndarray, output: np.ndarray, radius: int, include_border: bool) -> None:
    height, width = input.shape
    acc_type = np.float64 if np.issubdtype(input.dtype, np.floating) else np.int64

    # zero column in front so window sums are differences of the cumulative sum
    cumulative = np.zeros((height, width + 1), dtype=acc_type)
    cumulative[:, 1:] = np.cumsum(input, axis=1, dtype=acc_type)

    x = np.arange(width)
    lower = np.clip(x - radius, 0, width)
    upper = np.clip(x + radius + 1, 0, width)
    sums = store(cumulative[:, upper] - cumulative[:, lower], output.dtype)

    # columns where the box leaves the image are always written, zero extended
    border = (x < radius) | (x >= width - radius)
    output[:, border] = sums[:, border]

    # the first and last rows of the interior columns are optional
    rows = slice(None) if include_border else slice(radius, max(radius, height - radius))
    interior = ~border
    output[rows, interior] = sums[rows, interior]


def horizontal(input: np.ndarray, output: np.ndarray, radius: int, include_border: bool = True) -> None:
    """
    Performs a horizontal 1D convolution of a box kernel across the image

    Args:
        input: The original image. Not modified.
        output: Where the resulting image is written to. Modified.
        radius: Kernel radius, the box is 2*radius + 1 wide
        include_border: Should the top and bottom rows be processed? Border columns
            are always written.
    """
    _check_arguments(input, output, radius)
    _horizontal(input, output, radius, include_border)


def vertical(input: np.ndarray, output: np.ndarray, radius: int, include_border: bool = True) -> None:
    """
    Performs a vertical 1D convolution of a box kernel across the image

    Args:
        input: The original image. Not modified.
        output: Where the resulting image is written to. Modified.
        radius: Kernel radius, the box is 2*radius + 1 tall
        include_border: Should the left and right columns be processed? Border rows
            are always written.
    """
    _check_arguments(input, output, radius)
    _horizontal(input.T, output.T, radius, include_border)
