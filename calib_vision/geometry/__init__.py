"""
Epipolar Geometry Module

Homography, fundamental/essential matrix and PnP estimation.
"""

from . import epipolar_factory
from .refine import EpipolarError
from .homography import HomographyLinear4
from .fundamental import FundamentalLinear
from .pnp import EfficientPnP

__all__ = ['epipolar_factory', 'EpipolarError', 'HomographyLinear4', 'FundamentalLinear', 'EfficientPnP']
