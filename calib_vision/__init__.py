"""
Calibration Vision Toolkit

Numeric computer vision utilities used around camera calibration.

This package implements:
- Separable box and Gaussian convolution with a border/interior switch
- Sparse convolve-and-down-sample and Gaussian image pyramids
- Square grid fiducial detection for camera calibration
- Homography, fundamental/essential matrix and PnP estimation
- Linear radial distortion estimation
"""

__version__ = "1.0.0"
__author__ = "Calibration Vision Team"

from .fiducial import SquareGridDetector, SquaresIntoClusters, ClustersIntoGrids
from .interpolate import ImagePyramid, down_sample
from .calibration import SquareGridTarget, EstimateRadialDistortionLinear
from .geometry import EpipolarError, epipolar_factory
from .data_models import (
    SquareNode, SquareEdge, SquareGrid, CalibrationPoints,
    AssociatedPair, PoseEstimate, RadialDistortionResult
)

__all__ = [
    # Fiducial
    'SquareGridDetector', 'SquaresIntoClusters', 'ClustersIntoGrids',
    # Interpolation
    'ImagePyramid', 'down_sample',
    # Calibration
    'SquareGridTarget', 'EstimateRadialDistortionLinear',
    # Geometry
    'EpipolarError', 'epipolar_factory',
    # Data Models
    'SquareNode', 'SquareEdge', 'SquareGrid', 'CalibrationPoints',
    'AssociatedPair', 'PoseEstimate', 'RadialDistortionResult'
]
