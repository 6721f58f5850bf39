"""
Normalized Separable Convolution

Applies 1D kernels along the rows or columns of single band images. Pixels
where the kernel lies entirely inside the image take the fast vectorized
interior path. Pixels along the image border are optional and are computed
by renormalizing the kernel over the samples which lie inside the image.
"""

from typing import Optional

import numpy as np

from .kernel import Kernel1D, gaussian_kernel


SUPPORTED_TYPES = (np.uint8, np.int16, np.int32, np.float32, np.float64)


def check_same_shape(input: np.ndarray, output: np.ndarray) -> None:
    """Fail fast if the two images don't have the same dimensions."""
    if input.shape != output.shape:
        raise ValueError(
            f"Input and output images must have same dimensions: {input.shape} != {output.shape}"
        )


def check_image(image: np.ndarray) -> None:
    if image.ndim != 2:
        raise ValueError(f"Expected a single band image, found shape {image.shape}")
    if image.dtype.type not in SUPPORTED_TYPES:
        raise ValueError(f"Unsupported image type: {image.dtype}")


def accumulator_type(kernel: Kernel1D, image: np.ndarray):
    """Integer sums for integer kernels over integer images, floats otherwise."""
    if kernel.is_integer and np.issubdtype(image.dtype, np.integer):
        return np.int64
    return np.float64


def store(values: np.ndarray, dtype) -> np.ndarray:
    """
    Convert computed values into the storage type of the output image.

    Floats are kept as is. Integers are clamped to the range of the type.
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.floating):
        return values.astype(dtype)
    info = np.iinfo(dtype)
    return np.clip(values, info.min, info.max).astype(dtype)


def divide(total, divisor):
    """Divide by the kernel weight. Integer results are truncated toward zero."""
    if np.issubdtype(np.asarray(total).dtype, np.integer):
        return np.sign(total) * (np.abs(total) // divisor)
    return total / divisor


def _horizontal(kernel: Kernel1D, input: np.ndarray, output: np.ndarray,
                include_border: bool) -> None:
    height, width = input.shape
    n = kernel.width
    offset = kernel.offset
    acc_type = accumulator_type(kernel, input)
    weights = kernel.data.astype(acc_type)
    src = input.astype(acc_type)

    # interior, kernel is entirely inside the image
    interior = width - n + 1
    if interior > 0:
        total = np.zeros((height, interior), dtype=acc_type)
        for i in range(n):
            total += weights[i] * src[:, i:i + interior]
        output[:, offset:offset + interior] = store(divide(total, weights.sum()), output.dtype)

    if not include_border:
        return

    for x in range(width):
        if 0 <= x - offset and x - offset + n <= width:
            continue
        start = max(0, offset - x)
        end = min(n, width - x + offset)
        if start >= end:
            continue
        cols = src[:, x - offset + start:x - offset + end]
        total = cols @ weights[start:end]
        output[:, x] = store(divide(total, weights[start:end].sum()), output.dtype)


def horizontal(kernel: Kernel1D, input: np.ndarray, output: np.ndarray,
               include_border: bool = True) -> None:
    """
    Convolves a 1D kernel horizontally across the image.

    Args:
        kernel: The kernel being convolved
        input: The original image. Not modified.
        output: Where the resulting image is written to. Modified.
        include_border: Should the left and right border columns be processed?
    """
    check_same_shape(input, output)
    check_image(input)
    _horizontal(kernel, input, output, include_border)


def vertical(kernel: Kernel1D, input: np.ndarray, output: np.ndarray,
             include_border: bool = True) -> None:
    """
    Convolves a 1D kernel vertically across the image.

    Args:
        kernel: The kernel being convolved
        input: The original image. Not modified.
        output: Where the resulting image is written to. Modified.
        include_border: Should the top and bottom border rows be processed?
    """
    check_same_shape(input, output)
    check_image(input)
    # transposed views share memory with output
    _horizontal(kernel, input.T, output.T, include_border)


def convolve_normalized_sparse(horizontal_kernel: Kernel1D, vertical_kernel: Kernel1D,
                               image: np.ndarray, x: int, y: int):
    """
    Value of the normalized separable convolution at a single pixel.

    The horizontal pass is evaluated only on the rows the vertical kernel
    touches, then the vertical pass combines them.

    Args:
        horizontal_kernel: Kernel applied along the rows
        vertical_kernel: Kernel applied along the columns
        image: Input image. Not modified.
        x: Column of the pixel
        y: Row of the pixel

    Returns:
        Convolved value, a float for float images and an int otherwise
    """
    height, width = image.shape

    acc_h = accumulator_type(horizontal_kernel, image)
    h_weights = horizontal_kernel.data.astype(acc_h)
    x0 = max(0, x - horizontal_kernel.offset)
    x1 = min(width, x - horizontal_kernel.offset + horizontal_kernel.width)
    k0 = x0 - (x - horizontal_kernel.offset)
    h_weights = h_weights[k0:k0 + (x1 - x0)]

    y0 = max(0, y - vertical_kernel.offset)
    y1 = min(height, y - vertical_kernel.offset + vertical_kernel.width)
    patch = image[y0:y1, x0:x1].astype(acc_h)
    storage = divide(patch @ h_weights, h_weights.sum())

    acc_v = accumulator_type(vertical_kernel, storage)
    v_weights = vertical_kernel.data.astype(acc_v)
    k0 = y0 - (y - vertical_kernel.offset)
    v_weights = v_weights[k0:k0 + (y1 - y0)]
    value = divide(storage.astype(acc_v) @ v_weights, v_weights.sum())

    if np.issubdtype(np.asarray(value).dtype, np.integer):
        return int(value)
    return float(value)


def blur_gaussian(image: np.ndarray, sigma: Optional[float] = None,
                  radius: Optional[int] = None,
                  output: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Separable Gaussian blur with normalized borders.

    Integer images are blurred with an integer kernel and the intermediate
    horizontal pass is stored with the image's own type.

    Args:
        image: Input image. Not modified.
        sigma: Gaussian standard deviation
        radius: Kernel radius
        output: Optional pre-allocated output image

    Returns:
        The blurred image
    """
    check_image(image)
    if output is None:
        output = np.empty_like(image)
    check_same_shape(image, output)

    kernel = gaussian_kernel(sigma, radius, integer=np.issubdtype(image.dtype, np.integer))
    storage = np.empty_like(image)
    horizontal(kernel, image, storage, True)
    vertical(kernel, storage, output, True)
    return output
