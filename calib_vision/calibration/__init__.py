"""
Camera Calibration Module

Calibration target description and linear radial distortion estimation.
"""

from .grid_target import SquareGridTarget
from .radial_distortion import EstimateRadialDistortionLinear

__all__ = ['SquareGridTarget', 'EstimateRadialDistortionLinear']
