"""
Tests for connecting squares into clusters
"""

import pytest
import numpy as np

from calib_vision.fiducial.squares_into_clusters import (
    SquaresIntoClusters, create_node, intersected_side, side_extent
)


class TestCreateNode:
    """Test suite for building nodes from polygons."""

    def test_corners_are_sorted(self):
        # counter-clockwise on screen and starting from an arbitrary corner
        node = create_node([[10, 10], [10, 0], [0, 0], [0, 10]])

        corners = node.corners
        nxt = np.roll(corners, -1, axis=0)
        area = 0.5 * np.sum(corners[:, 0] * nxt[:, 1] - nxt[:, 0] * corners[:, 1])
        assert area > 0
        assert np.allclose(node.center, [5, 5])
        assert node.largest_side == pytest.approx(10)
        assert node.num_edges() == 0

    def test_degenerate_polygon(self):
        assert create_node([[0, 0], [1, 1], [2, 2], [3, 3]]) is None

    def test_not_a_quadrilateral(self):
        with pytest.raises(ValueError, match="quadrilateral"):
            create_node([[0, 0], [1, 0], [0, 1]])

    def test_intersected_side(self):
        node = create_node([[0, 0], [10, 0], [10, 10], [0, 10]])

        side = intersected_side(node, np.array([1.0, 0.0]))
        a = node.corners[side]
        b = node.corners[(side + 1) % 4]
        # the right side, x == 10
        assert a[0] == pytest.approx(10) and b[0] == pytest.approx(10)

    def test_side_extent(self):
        # 20 wide and 10 tall
        node = create_node([[0, 0], [20, 0], [20, 10], [0, 10]])

        right = intersected_side(node, np.array([1.0, 0.0]))
        below = intersected_side(node, np.array([0.0, 1.0]))
        assert side_extent(node, right) == pytest.approx(20)
        assert side_extent(node, below) == pytest.approx(10)


class TestSquaresIntoClusters:
    """Test suite for the cluster builder."""

    def test_empty_input(self):
        alg = SquaresIntoClusters(1.0)
        assert alg.process([]) == []

    def test_single_grid(self, grid_polygons):
        alg = SquaresIntoClusters(1.0, 6)
        clusters = alg.process(grid_polygons(3, 4, shuffle_seed=2))

        assert len(clusters) == 1
        assert sorted(clusters[0]) == list(range(12))

        edges = sorted(node.num_edges() for node in alg.graph.nodes)
        # 4 corners, 6 on the sides and 2 inside
        assert edges == [2] * 4 + [3] * 6 + [4] * 2

    def test_links_are_symmetric(self, grid_polygons):
        alg = SquaresIntoClusters(1.0)
        alg.process(grid_polygons(3, 3, angle=20))

        for handle in range(len(alg.graph.nodes)):
            for side in range(4):
                found = alg.graph.neighbor(handle, side)
                if found is None:
                    continue
                neighbor, neighbor_side = found
                assert alg.graph.neighbor(neighbor, neighbor_side) == (handle, side)

    def test_foreshortened_row(self):
        """Neighbors are spaced by their width along the row, not their longest side."""
        # squares 20 wide and 40 tall with a 20 pixel gap
        polygons = [np.array([[x, 0], [x + 20, 0], [x + 20, 40], [x, 40]], dtype=float)
                    for x in (0, 40, 80)]

        clusters = SquaresIntoClusters(1.0).process(polygons)

        assert len(clusters) == 1
        assert sorted(clusters[0]) == [0, 1, 2]

    def test_separate_grids(self, grid_polygons):
        polygons = (grid_polygons(2, 2, center=(100, 100))
                    + grid_polygons(2, 3, center=(400, 400)))

        clusters = SquaresIntoClusters(1.0).process(polygons)

        assert sorted(len(c) for c in clusters) == [4, 6]

    def test_wrong_spacing_is_not_connected(self, grid_polygons):
        # squares are three widths apart but the target expects one
        polygons = grid_polygons(2, 2, square=20, space=60)

        clusters = SquaresIntoClusters(1.0).process(polygons)

        assert len(clusters) == 4
        assert all(len(c) == 1 for c in clusters)

    def test_different_sizes_are_not_connected(self):
        small = np.array([[0, 0], [10, 0], [10, 10], [0, 10]], dtype=float)
        large = np.array([[15, -10], [45, -10], [45, 20], [15, 20]], dtype=float)

        clusters = SquaresIntoClusters(1.0).process([small, large])

        assert len(clusters) == 2

    def test_lone_square(self, grid_polygons):
        polygons = grid_polygons(2, 2, center=(100, 100))
        polygons.append(np.array([[500, 500], [530, 500], [530, 530], [500, 530]], dtype=float))

        clusters = SquaresIntoClusters(1.0).process(polygons)

        assert sorted(len(c) for c in clusters) == [1, 4]

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            SquaresIntoClusters(-1.0)
        with pytest.raises(ValueError):
            SquaresIntoClusters(1.0, max_neighbors=0)
