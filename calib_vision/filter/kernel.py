"""
1D Convolution Kernels

Factory functions for the box and Gaussian kernels used by the separable
convolution and down-sampling routines.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class Kernel1D:
    """A 1D kernel. Element `offset` is aligned with the pixel being computed."""
    data: np.ndarray
    offset: int

    def __post_init__(self):
        if self.data.ndim != 1 or len(self.data) == 0:
            raise ValueError("Kernel data must be a non-empty 1D array")
        if not 0 <= self.offset < len(self.data):
            raise ValueError(f"Kernel offset {self.offset} outside of width {len(self.data)}")

    @property
    def width(self) -> int:
        return len(self.data)

    @property
    def radius(self) -> int:
        """Largest distance from the offset to either end of the kernel."""
        return max(self.offset, self.width - self.offset - 1)

    @property
    def is_integer(self) -> bool:
        return np.issubdtype(self.data.dtype, np.integer)

    def compute_sum(self):
        return self.data.sum()


def radius_for_sigma(sigma: float) -> int:
    """Kernel radius which captures most of a Gaussian's mass."""
    return max(1, int(math.ceil(sigma * 3)))


def sigma_for_radius(radius: int) -> float:
    """Gaussian standard deviation appropriate for a kernel radius."""
    return (radius * 2 + 1) / 5.0


def box_kernel(radius: int, integer: bool = False) -> Kernel1D:
    """
    Create a kernel composed entirely of ones.

    Args:
        radius: Kernel radius, width is 2*radius + 1
        integer: Create an int32 kernel instead of float32

    Returns:
        Box kernel
    """
    if radius < 0:
        raise ValueError("Kernel radius must be non-negative")

    dtype = np.int32 if integer else np.float32
    return Kernel1D(np.ones(radius * 2 + 1, dtype=dtype), radius)


def gaussian_kernel(sigma: Optional[float] = None, radius: Optional[int] = None,
                    integer: bool = False) -> Kernel1D:
    """
    Create a 1D Gaussian kernel.

    Float kernels sum to one. Integer kernels are scaled so the smallest
    weight is one and then rounded.

    Args:
        sigma: Standard deviation. Computed from the radius if None.
        radius: Kernel radius. Computed from sigma if None.
        integer: Create an int32 kernel instead of float32

    Returns:
        Gaussian kernel
    """
    if sigma is None and radius is None:
        raise ValueError("Must specify sigma, radius or both")
    if sigma is None:
        sigma = sigma_for_radius(radius)
    elif radius is None:
        radius = radius_for_sigma(sigma)
    if sigma <= 0:
        raise ValueError("Sigma must be positive")
    if radius < 0:
        raise ValueError("Kernel radius must be non-negative")

    x = np.arange(-radius, radius + 1, dtype=np.float64)
    weights = np.exp(-(x * x) / (2.0 * sigma * sigma))

    if integer:
        weights = np.round(weights / weights.min()).astype(np.int32)
        return Kernel1D(weights, radius)

    weights /= weights.sum()
    return Kernel1D(weights.astype(np.float32), radius)
