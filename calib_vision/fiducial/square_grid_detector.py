"""
Square Grid Fiducial Detector

Detects a square grid calibration target and returns the corner points of
each square. The target is a grid of equally sized black squares separated by
white space whose width is specified as a ratio of the square size. The entire
grid must be visible.

Returned points are ordered counter-clockwise in image coordinates, which
appears clockwise on screen. There are always at least two solutions to the
ordering, so the orientation where index 0 is closest to the image origin is
selected.
"""

import logging
from typing import Optional

import numpy as np

from ..data_models import CalibrationPoints, SquareGrid
from ..utils.config_manager import ConfigManager
from . import square_grid_tools as tools
from .binarization import create_binarizer
from .clusters_into_grids import ClustersIntoGrids
from .polygon_detector import ConvexQuadDetector
from .squares_into_clusters import SquaresIntoClusters


class SquareGridDetector:
    """Finds a square grid target and extracts its calibration points."""

    def __init__(self, num_rows: int, num_cols: int, space_to_square_ratio: float,
                 binarizer, polygon_detector, max_neighbors: int = 6, **cluster_options):
        """
        Configure the detector.

        Args:
            num_rows: Number of black squares in the grid rows
            num_cols: Number of black squares in the grid columns
            space_to_square_ratio: Ratio of spacing between the squares and the squares width
            binarizer: Converts the input image into a binary image, process(image, binary)
            polygon_detector: Detects the squares, process(image, binary) and get_found()
            max_neighbors: Number of nearest squares considered when connecting squares
            **cluster_options: Tolerances passed on to SquaresIntoClusters
        """
        if num_rows < 1 or num_cols < 1:
            raise ValueError("Grid must have at least one row and one column")

        self.num_rows = num_rows
        self.num_cols = num_cols
        self.binarizer = binarizer
        self.polygon_detector = polygon_detector
        self.logger = logging.getLogger(__name__)

        self.squares_to_clusters = SquaresIntoClusters(space_to_square_ratio, max_neighbors, **cluster_options)
        self.clusters_to_grids = ClustersIntoGrids(num_rows * num_cols)

        # storage for the binary image, reused between calls
        self.binary = np.zeros((1, 1), dtype=np.uint8)

        # output results. Grid of calibration points in row-major order
        self.calibration_points = np.empty((0, 2), dtype=np.float64)
        self.calib_rows = 0
        self.calib_cols = 0

        self.logger.info(f"Square grid detector initialized: {num_rows}x{num_cols} squares")

    @classmethod
    def from_config(cls, config_manager: Optional[ConfigManager] = None) -> 'SquareGridDetector':
        """
        Create a detector with the default binarizer and polygon detector.

        Args:
            config_manager: Configuration manager instance
        """
        config = config_manager or ConfigManager()
        grid_config = config.get_grid_params()

        return cls(
            grid_config.get('num_rows', 4),
            grid_config.get('num_cols', 3),
            grid_config.get('space_to_square_ratio', 1.0),
            create_binarizer(config),
            ConvexQuadDetector(config),
            max_neighbors=grid_config.get('max_neighbors', 6),
            distance_tolerance=grid_config.get('distance_tolerance', 0.25),
            size_ratio_tolerance=grid_config.get('size_ratio_tolerance', 0.5),
            parallel_tolerance=grid_config.get('parallel_tolerance', 25.0),
        )

    def process(self, image: np.ndarray) -> bool:
        """
        Process the image and detect the calibration target.

        Points from a previous call are always discarded, even when nothing is found.

        Args:
            image: Input greyscale image

        Returns:
            True if a calibration target was found and False if not
        """
        self._clear_results()

        shape = image.shape[:2]
        if self.binary.shape != shape:
            self.binary = np.zeros(shape, dtype=np.uint8)

        self.binarizer.process(image, self.binary)
        self.polygon_detector.process(image, self.binary)
        found = self.polygon_detector.get_found()

        clusters = self.squares_to_clusters.process(found)
        grids = self.clusters_to_grids.process(self.squares_to_clusters.graph, clusters)

        match = self._select_match(grids)
        if match is None:
            self.logger.debug(f"No {self.num_rows}x{self.num_cols} grid among {len(grids)} grids")
            return False

        if tools.check_flip(match):
            match = tools.flip_rows(match)
        match = tools.put_into_canonical(match)
        ordered = tools.order_square_corners(match)
        if ordered is None:
            self.logger.debug("Failed to order square corners")
            return False

        self._extract_calibration_points(ordered)
        return True

    def _select_match(self, grids) -> Optional[SquareGrid]:
        """Grid with the expected shape and the largest size."""
        match = None
        match_size = 0.0
        for grid in grids:
            if grid.columns != self.num_cols or grid.rows != self.num_rows:
                if grid.columns == self.num_rows and grid.rows == self.num_cols:
                    grid = tools.transpose(grid)
                else:
                    continue

            size = tools.compute_size(grid)
            if size > match_size:
                match_size = size
                match = grid
        return match

    def _clear_results(self) -> None:
        self.calibration_points = np.empty((0, 2), dtype=np.float64)
        self.calib_rows = 0
        self.calib_cols = 0

    def _extract_calibration_points(self, grid: SquareGrid) -> None:
        """Extracts the calibration points from the corners of a fully ordered grid."""
        points = []
        for row in range(grid.rows):
            row0 = []
            row1 = []
            for col in range(grid.columns):
                corners = grid.get(row, col).corners
                row0 += [corners[0], corners[1]]
                row1 += [corners[3], corners[2]]
            points += row0
            points += row1

        self.calibration_points = np.array(points, dtype=np.float64)
        self.calib_rows = grid.rows * 2
        self.calib_cols = grid.columns * 2

    def get_calibration_points(self) -> np.ndarray:
        return self.calibration_points

    def get_calibration_rows(self) -> int:
        return self.calib_rows

    def get_calibration_cols(self) -> int:
        return self.calib_cols

    def get_result(self) -> CalibrationPoints:
        """Calibration points together with their grid shape."""
        return CalibrationPoints(self.calibration_points, self.calib_rows, self.calib_cols)
