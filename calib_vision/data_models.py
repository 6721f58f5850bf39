"""
Data Models for the Calibration Vision Toolkit

Defines the data structures shared by the fiducial detector, the geometry
algorithms and the calibration estimators.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np


@dataclass
class SquareEdge:
    """Connection between two adjacent squares in a SquareGraph."""
    a: int  # handle of the first node
    b: int  # handle of the second node
    side_a: int  # side of node a the edge is attached to
    side_b: int  # side of node b the edge is attached to
    distance: float  # distance between the two centers

    def other(self, node: int) -> int:
        """Handle of the node on the opposite end of the edge."""
        return self.b if node == self.a else self.a

    def side_of(self, node: int) -> int:
        """Side index the edge occupies on the given node."""
        return self.side_a if node == self.a else self.side_b


@dataclass
class SquareNode:
    """A detected square: ordered corners, geometry summary and edge slots."""
    corners: np.ndarray  # 4x2 corners, side i goes from corner i to corner i+1
    center: np.ndarray  # 2 element center point
    largest_side: float
    edges: List[Optional[int]] = field(default_factory=lambda: [None] * 4)

    def num_edges(self) -> int:
        return sum(1 for e in self.edges if e is not None)


@dataclass
class SquareGrid:
    """Rectangular arrangement of squares stored in row-major order."""
    nodes: Tuple[SquareNode, ...]
    rows: int
    columns: int

    def __post_init__(self):
        if self.rows * self.columns != len(self.nodes):
            raise ValueError(
                f"Grid of {self.rows}x{self.columns} can't hold {len(self.nodes)} squares"
            )

    def get(self, row: int, col: int) -> SquareNode:
        return self.nodes[row * self.columns + col]


@dataclass
class CalibrationPoints:
    """Calibration points extracted from a grid, row-major."""
    points: np.ndarray  # Nx2 array
    rows: int
    cols: int


@dataclass
class AssociatedPair:
    """The same feature observed in two views."""
    p1: np.ndarray  # observation in the first view
    p2: np.ndarray  # observation in the second view


@dataclass
class PoseEstimate:
    """Rigid body transform from the world frame into the camera frame."""
    rotation_matrix: np.ndarray  # 3x3
    translation_vector: np.ndarray  # 3 element vector


@dataclass
class RadialDistortionResult:
    """Radial distortion coefficients and fit quality."""
    coefficients: np.ndarray
    rms_residual: float  # pixels
    num_observations: int
