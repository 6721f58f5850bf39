"""
Square Grid Calibration Target

Physical description of a square grid target and the layout of its
calibration points on the target plane.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class SquareGridTarget:
    """Grid of black squares separated by white space."""
    num_rows: int
    num_cols: int
    square_width: float
    space_width: float

    def __post_init__(self):
        if self.num_rows < 1 or self.num_cols < 1:
            raise ValueError("Target must have at least one row and one column")
        if self.square_width <= 0 or self.space_width < 0:
            raise ValueError("Square width must be positive and space width non-negative")

    @property
    def point_rows(self) -> int:
        return self.num_rows * 2

    @property
    def point_cols(self) -> int:
        return self.num_cols * 2

    def layout(self) -> np.ndarray:
        """
        Location of every square corner on the target plane.

        Points are row-major in the same order the detector returns them. The
        y-axis increases with the row index.

        Returns:
            (4*rows*cols)x2 array
        """
        period = self.square_width + self.space_width
        xs = []
        for col in range(self.num_cols):
            xs += [col * period, col * period + self.square_width]
        ys = []
        for row in range(self.num_rows):
            ys += [row * period, row * period + self.square_width]

        grid_x, grid_y = np.meshgrid(np.array(xs), np.array(ys))
        return np.column_stack([grid_x.ravel(), grid_y.ravel()])
