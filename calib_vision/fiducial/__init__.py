"""
Square Grid Fiducial Module

Detects square grid calibration targets: binarization, square detection,
clustering, grid assembly and canonical ordering.
"""

from .binarization import GlobalThresholdBinarizer, OtsuBinarizer, AdaptiveBinarizer, create_binarizer
from .polygon_detector import ConvexQuadDetector
from .squares_into_clusters import SquaresIntoClusters, SquareGraph
from .clusters_into_grids import ClustersIntoGrids
from .square_grid_detector import SquareGridDetector

__all__ = [
    'GlobalThresholdBinarizer', 'OtsuBinarizer', 'AdaptiveBinarizer', 'create_binarizer',
    'ConvexQuadDetector', 'SquaresIntoClusters', 'SquareGraph', 'ClustersIntoGrids',
    'SquareGridDetector'
]
