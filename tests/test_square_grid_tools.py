"""
Tests for square grid orientation tools
"""

import pytest
import numpy as np

from calib_vision.data_models import SquareGrid
from calib_vision.fiducial import square_grid_tools as tools
from calib_vision.fiducial.squares_into_clusters import create_node


def build_grid(polygons, rows, columns):
    return SquareGrid(tuple(create_node(p) for p in polygons), rows, columns)


def centers(grid):
    return np.array([node.center for node in grid.nodes])


class TestSquareGridTools:
    """Test suite for grid transforms and canonical ordering."""

    @pytest.fixture
    def grid(self, grid_polygons):
        """2x3 grid in its canonical layout."""
        return build_grid(grid_polygons(2, 3), 2, 3)

    def test_transpose(self, grid):
        transposed = tools.transpose(grid)

        assert (transposed.rows, transposed.columns) == (3, 2)
        for row in range(2):
            for col in range(3):
                assert transposed.get(col, row) is grid.get(row, col)
        # the argument is left untouched
        assert (grid.rows, grid.columns) == (2, 3)

    def test_flip_rows(self, grid):
        flipped = tools.flip_rows(grid)

        assert flipped.get(0, 0) is grid.get(1, 0)
        assert flipped.get(1, 2) is grid.get(0, 2)

    def test_check_flip(self, grid):
        assert not tools.check_flip(grid)
        assert tools.check_flip(tools.flip_rows(grid))
        assert tools.check_flip(tools.transpose(grid))

    def test_rotations_preserve_handedness(self, grid):
        assert not tools.check_flip(tools.rotate_cw(grid))
        assert not tools.check_flip(tools.rotate_180(grid))
        assert tools.rotate_180(grid).get(0, 0) is grid.get(1, 2)

    def test_single_row_never_flips(self, grid_polygons):
        line = build_grid(grid_polygons(1, 4), 1, 4)
        assert not tools.check_flip(line)

    def test_compute_size(self, grid):
        # six squares with 30 pixel sides
        assert tools.compute_size(grid) == pytest.approx(6 * 120)

    def test_put_into_canonical(self, grid):
        canonical = tools.put_into_canonical(tools.rotate_180(grid))

        assert canonical.get(0, 0) is grid.get(0, 0)
        assert np.allclose(centers(canonical), centers(grid))

    def test_put_into_canonical_square_grid(self, grid_polygons):
        grid = build_grid(grid_polygons(3, 3), 3, 3)

        for rotated in [tools.rotate_cw(grid), tools.rotate_180(grid),
                        tools.rotate_cw(tools.rotate_180(grid))]:
            canonical = tools.put_into_canonical(rotated)
            assert canonical.get(0, 0) is grid.get(0, 0)
            assert canonical.get(0, 1) is grid.get(0, 1)

    def test_order_square_corners(self, grid):
        ordered = tools.order_square_corners(grid)

        for original, node in zip(grid.nodes, ordered.nodes):
            x0, y0 = original.corners.min(axis=0)
            x1, y1 = original.corners.max(axis=0)
            expected = [[x0, y0], [x1, y0], [x1, y1], [x0, y1]]
            assert np.allclose(node.corners, expected)

    def test_order_square_corners_rotated_grid(self, grid_polygons):
        grid = build_grid(grid_polygons(2, 3, angle=90), 2, 3)

        ordered = tools.order_square_corners(grid)

        u, v = tools.grid_directions(grid)
        for node in ordered.nodes:
            relative = node.corners - node.center
            # top-left is behind both grid directions
            assert relative[0] @ u < 0 and relative[0] @ v < 0
            assert relative[2] @ u > 0 and relative[2] @ v > 0

    def test_order_square_corners_degenerate(self, grid):
        diamond = create_node([[15, 0], [30, 15], [15, 30], [0, 15]])
        nodes = list(grid.nodes)
        nodes[4] = diamond

        assert tools.order_square_corners(SquareGrid(tuple(nodes), 2, 3)) is None

    def test_grid_directions_single_square(self, grid_polygons):
        single = build_grid(grid_polygons(1, 1), 1, 1)

        u, v = tools.grid_directions(single)

        assert np.allclose(u, [1, 0])
        assert np.allclose(v, [0, 1])

    def test_single_square_at_45_degrees(self, grid_polygons):
        """Corners on the image axes still fall in the square's own quadrants."""
        single = build_grid(grid_polygons(1, 1, angle=45), 1, 1)

        u, v = tools.grid_directions(single)
        ordered = tools.order_square_corners(single)

        assert abs(u @ [1, 0]) == pytest.approx(np.sqrt(0.5))
        assert u[0] * v[1] - u[1] * v[0] > 0
        assert ordered is not None
        corners = ordered.nodes[0].corners
        relative = corners - ordered.nodes[0].center
        assert relative[0] @ u < 0 and relative[0] @ v < 0
        assert relative[2] @ u > 0 and relative[2] @ v > 0
