"""
Interpolation Module

Sparse convolve-and-down-sample and image pyramids.
"""

from .down_sample import down_sample, down_sample_shape, ImagePyramid

__all__ = ['down_sample', 'down_sample_shape', 'ImagePyramid']
