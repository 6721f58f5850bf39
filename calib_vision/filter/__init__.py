"""
Image Filtering Module

Separable convolution with box and Gaussian kernels.
"""

from . import convolve, convolve_box
from .kernel import Kernel1D, box_kernel, gaussian_kernel
from .convolve import blur_gaussian, convolve_normalized_sparse

__all__ = [
    'convolve', 'convolve_box', 'Kernel1D', 'box_kernel', 'gaussian_kernel',
    'blur_gaussian', 'convolve_normalized_sparse'
]
