"""
Square Grid Tools

Functions for putting a square grid into its canonical orientation. Every
function returns a new grid and leaves its argument unmodified.

Canonical means the column direction followed by the row direction turns
clockwise on screen, the square at (0,0) is the one closest to the image
origin and every square's corners are ordered top-left, top-right,
bottom-right, bottom-left relative to the grid.
"""

import dataclasses
from typing import Optional, Tuple

import numpy as np

from ..data_models import SquareGrid, SquareNode


def _cross(u: np.ndarray, v: np.ndarray) -> float:
    return float(u[0] * v[1] - u[1] * v[0])


def _rearrange(grid: SquareGrid, rows: int, columns: int, source) -> SquareGrid:
    """Build a grid where element (row, col) is grid.get(*source(row, col))."""
    nodes = tuple(grid.get(*source(r, c)) for r in range(rows) for c in range(columns))
    return SquareGrid(nodes, rows, columns)


def transpose(grid: SquareGrid) -> SquareGrid:
    """Swap rows and columns."""
    return _rearrange(grid, grid.columns, grid.rows, lambda r, c: (c, r))


def flip_rows(grid: SquareGrid) -> SquareGrid:
    """Reverse the order of the rows."""
    return _rearrange(grid, grid.rows, grid.columns, lambda r, c: (grid.rows - 1 - r, c))


def rotate_180(grid: SquareGrid) -> SquareGrid:
    return _rearrange(grid, grid.rows, grid.columns,
                      lambda r, c: (grid.rows - 1 - r, grid.columns - 1 - c))


def rotate_cw(grid: SquareGrid) -> SquareGrid:
    """Rotate the index space a quarter turn. Rows and columns are swapped."""
    return _rearrange(grid, grid.columns, grid.rows, lambda r, c: (grid.rows - 1 - c, r))


def compute_size(grid: SquareGrid) -> float:
    """Sum of the perimeters of all the squares in the grid."""
    total = 0.0
    for node in grid.nodes:
        sides = np.roll(node.corners, -1, axis=0) - node.corners
        total += float(np.linalg.norm(sides, axis=1).sum())
    return total


def grid_directions(grid: SquareGrid) -> Tuple[np.ndarray, np.ndarray]:
    """
    Unit vectors pointing along increasing column and increasing row indexes.

    A grid with a single row or column only has one measurable direction.
    The other is chosen perpendicular to it so the pair turns clockwise on
    screen. A single square takes its column direction from its own top and
    bottom sides.
    """
    u = v = None
    if grid.columns > 1:
        u = grid.get(0, grid.columns - 1).center - grid.get(0, 0).center
        u = u / np.linalg.norm(u)
    if grid.rows > 1:
        v = grid.get(grid.rows - 1, 0).center - grid.get(0, 0).center
        v = v / np.linalg.norm(v)

    if u is None and v is None:
        corners = grid.nodes[0].corners
        u = (corners[1] - corners[0]) + (corners[2] - corners[3])
        u = u / np.linalg.norm(u)
    if v is None:
        v = np.array([-u[1], u[0]])
    elif u is None:
        u = np.array([v[1], -v[0]])
    return u, v


def check_flip(grid: SquareGrid) -> bool:
    """
    True if the grid is mirrored, i.e. the column and row directions turn
    counter-clockwise on screen. Grids with a single row or column are never
    mirrored.
    """
    if grid.rows < 2 or grid.columns < 2:
        return False
    u, v = grid_directions(grid)
    return _cross(u, v) < 0


def put_into_canonical(grid: SquareGrid) -> SquareGrid:
    """
    Select the orientation where the square at (0,0) is closest to the origin.

    Only rotations are considered, so handedness is preserved. Non-square
    grids can be rotated by half a turn, square grids by any quarter turn.
    """
    candidates = [grid, rotate_180(grid)]
    if grid.rows == grid.columns:
        quarter = rotate_cw(grid)
        candidates += [quarter, rotate_180(quarter)]

    return min(candidates, key=lambda g: float(np.linalg.norm(g.get(0, 0).center)))


def _order_corners(node: SquareNode, u: np.ndarray, v: np.ndarray) -> Optional[np.ndarray]:
    relative = node.corners - node.center
    a = relative @ u
    b = relative @ v

    order = np.argsort(np.arctan2(b, a))
    a = a[order]
    b = b[order]

    # top-left, top-right, bottom-right, bottom-left
    if not (a[0] < 0 and b[0] < 0 and a[1] > 0 and b[1] < 0
            and a[2] > 0 and b[2] > 0 and a[3] < 0 and b[3] > 0):
        return None

    # must be convex in the grid frame
    for i in range(4):
        j = (i + 1) % 4
        k = (i + 2) % 4
        turn = (a[j] - a[i]) * (b[k] - b[j]) - (b[j] - b[i]) * (a[k] - a[j])
        if turn <= 0:
            return None

    return node.corners[order]


def order_square_corners(grid: SquareGrid) -> Optional[SquareGrid]:
    """
    Order the corners of every square relative to the grid.

    Returns:
        New grid with reordered corners, or None if a square is degenerate
    """
    u, v = grid_directions(grid)

    nodes = []
    for node in grid.nodes:
        corners = _order_corners(node, u, v)
        if corners is None:
            return None
        nodes.append(dataclasses.replace(node, corners=corners, edges=list(node.edges)))

    return SquareGrid(tuple(nodes), grid.rows, grid.columns)
