"""
Squares Into Clusters

Connects detected squares into a graph, linking squares which are next to each
other in a grid of evenly spaced squares, and splits the graph into its
connected components.
"""

import logging
import math
from collections import deque
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from ..data_models import SquareEdge, SquareNode


class SquareGraph:
    """Arena which owns the square nodes and the edges connecting them."""

    def __init__(self):
        self.nodes: List[SquareNode] = []
        self.edges: List[Optional[SquareEdge]] = []

    def add_node(self, node: SquareNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def connect(self, a: int, side_a: int, b: int, side_b: int, distance: float) -> int:
        self.edges.append(SquareEdge(a, b, side_a, side_b, distance))
        index = len(self.edges) - 1
        self.nodes[a].edges[side_a] = index
        self.nodes[b].edges[side_b] = index
        return index

    def detach(self, index: int) -> None:
        edge = self.edges[index]
        self.nodes[edge.a].edges[edge.side_a] = None
        self.nodes[edge.b].edges[edge.side_b] = None
        self.edges[index] = None

    def edge(self, node: int, side: int) -> Optional[SquareEdge]:
        index = self.nodes[node].edges[side]
        return None if index is None else self.edges[index]

    def neighbor(self, node: int, side: int) -> Optional[Tuple[int, int]]:
        """
        Node connected through a side.

        Returns:
            Tuple of (neighbor handle, side of the neighbor the edge is on) or None
        """
        edge = self.edge(node, side)
        if edge is None:
            return None
        other = edge.other(node)
        return other, edge.side_of(other)


def create_node(polygon) -> Optional[SquareNode]:
    """
    Create a node from a quadrilateral with corners in any order.

    Corners are sorted around their mean so the polygon winds clockwise on
    screen, which is a positive signed area in image coordinates.

    Returns:
        The node, or None if the polygon has no area
    """
    corners = np.asarray(polygon, dtype=np.float64)
    if corners.shape != (4, 2):
        raise ValueError(f"Expected a quadrilateral with shape (4, 2), found {corners.shape}")

    mean = corners.mean(axis=0)
    angles = np.arctan2(corners[:, 1] - mean[1], corners[:, 0] - mean[0])
    corners = corners[np.argsort(angles)]

    nxt = np.roll(corners, -1, axis=0)
    area = 0.5 * np.sum(corners[:, 0] * nxt[:, 1] - nxt[:, 0] * corners[:, 1])
    if area <= 0:
        return None

    sides = np.linalg.norm(nxt - corners, axis=1)
    center = _intersect_diagonals(corners)
    if center is None:
        center = mean

    return SquareNode(corners=corners, center=center, largest_side=float(sides.max()))


def _intersect_diagonals(corners: np.ndarray) -> Optional[np.ndarray]:
    p0, p1, p2, p3 = corners
    d0 = p2 - p0
    d1 = p3 - p1
    denom = d0[0] * d1[1] - d0[1] * d1[0]
    if abs(denom) < 1e-12:
        return None
    diff = p1 - p0
    t = (diff[0] * d1[1] - diff[1] * d1[0]) / denom
    return p0 + t * d0


def intersected_side(node: SquareNode, direction: np.ndarray) -> Optional[int]:
    """
    Side of the square crossed by a ray leaving its center along a direction.

    Returns:
        Side index, or None if the ray misses every side
    """
    best_side = None
    best_t = math.inf
    for i in range(4):
        p0 = node.corners[i]
        edge = node.corners[(i + 1) % 4] - p0
        denom = direction[0] * edge[1] - direction[1] * edge[0]
        if abs(denom) < 1e-12:
            continue
        diff = p0 - node.center
        t = (diff[0] * edge[1] - diff[1] * edge[0]) / denom
        s = (diff[0] * direction[1] - diff[1] * direction[0]) / denom
        if t > 0 and -1e-9 <= s <= 1 + 1e-9 and t < best_t:
            best_t = t
            best_side = i
    return best_side


def side_extent(node: SquareNode, side: int) -> float:
    """Mean length of the two sides which meet the given side."""
    corners = node.corners
    before = corners[side] - corners[(side + 3) % 4]
    after = corners[(side + 2) % 4] - corners[(side + 1) % 4]
    return 0.5 * float(np.linalg.norm(before) + np.linalg.norm(after))


class SquaresIntoClusters:
    """Builds a graph of adjacent squares and finds its connected clusters."""

    def __init__(self, space_to_square_ratio: float, max_neighbors: int = 6,
                 distance_tolerance: float = 0.25, size_ratio_tolerance: float = 0.5,
                 parallel_tolerance: float = 25.0):
        """
        Initialize the cluster builder.

        Args:
            space_to_square_ratio: Ratio of the space between squares to the square width
            max_neighbors: Number of nearest squares considered as neighbors of each square
            distance_tolerance: Allowed relative error between the observed and expected center spacing
            size_ratio_tolerance: Smallest allowed ratio between the sizes of two connected squares
            parallel_tolerance: Largest angle in degrees between the facing sides of two squares
        """
        if space_to_square_ratio < 0:
            raise ValueError("space_to_square_ratio must be non-negative")
        if max_neighbors < 1:
            raise ValueError("max_neighbors must be at least 1")

        self.space_to_square_ratio = space_to_square_ratio
        self.max_neighbors = max_neighbors
        self.distance_tolerance = distance_tolerance
        self.size_ratio_tolerance = size_ratio_tolerance
        self.parallel_tolerance = math.radians(parallel_tolerance)

        self.graph = SquareGraph()
        self.logger = logging.getLogger(__name__)

    def process(self, polygons: Sequence) -> List[List[int]]:
        """
        Connect the squares and split them into clusters.

        Args:
            polygons: Detected quadrilaterals, each a 4x2 array of corners

        Returns:
            Clusters as lists of node handles into `self.graph`
        """
        self.graph = SquareGraph()
        for polygon in polygons:
            node = create_node(polygon)
            if node is None:
                self.logger.debug("Skipping degenerate polygon")
                continue
            self.graph.add_node(node)

        if not self.graph.nodes:
            return []

        self._connect_nodes()
        clusters = self._find_clusters()

        self.logger.debug(f"Found {len(clusters)} clusters from {len(self.graph.nodes)} squares")
        return clusters

    def _connect_nodes(self) -> None:
        centers = np.array([n.center for n in self.graph.nodes])
        tree = cKDTree(centers)
        k = min(self.max_neighbors + 1, len(centers))

        _, neighbors = tree.query(centers, k=k)
        neighbors = np.asarray(neighbors).reshape(len(centers), -1)

        for a, candidates in enumerate(neighbors):
            for b in candidates:
                b = int(b)
                if b <= a:
                    continue
                self._consider_connect(a, b)

    def _consider_connect(self, a: int, b: int) -> None:
        node_a = self.graph.nodes[a]
        node_b = self.graph.nodes[b]

        small = min(node_a.largest_side, node_b.largest_side)
        large = max(node_a.largest_side, node_b.largest_side)
        if small / large < self.size_ratio_tolerance:
            return

        offset = node_b.center - node_a.center
        side_a = intersected_side(node_a, offset)
        side_b = intersected_side(node_b, -offset)
        if side_a is None or side_b is None:
            return

        # perspective shortens squares along the link, so use their extent in that direction
        distance = float(np.linalg.norm(offset))
        extent = side_extent(node_a, side_a) + side_extent(node_b, side_b)
        expected = 0.5 * extent * (1.0 + self.space_to_square_ratio)
        if abs(distance - expected) > self.distance_tolerance * expected:
            return

        if not self._sides_parallel(node_a, side_a, node_b, side_b):
            return

        # a side can only hold one edge, the closest square wins
        for node, side in ((a, side_a), (b, side_b)):
            existing = self.graph.edge(node, side)
            if existing is not None and existing.distance <= distance:
                return

        for node, side in ((a, side_a), (b, side_b)):
            index = self.graph.nodes[node].edges[side]
            if index is not None:
                self.graph.detach(index)

        self.graph.connect(a, side_a, b, side_b, distance)

    def _sides_parallel(self, node_a: SquareNode, side_a: int, node_b: SquareNode, side_b: int) -> bool:
        va = node_a.corners[(side_a + 1) % 4] - node_a.corners[side_a]
        vb = node_b.corners[(side_b + 1) % 4] - node_b.corners[side_b]
        cos_angle = abs(np.dot(va, vb)) / (np.linalg.norm(va) * np.linalg.norm(vb))
        return math.acos(min(1.0, cos_angle)) <= self.parallel_tolerance

    def _find_clusters(self) -> List[List[int]]:
        visited = [False] * len(self.graph.nodes)
        clusters = []

        for seed in range(len(self.graph.nodes)):
            if visited[seed]:
                continue
            visited[seed] = True
            cluster = []
            queue = deque([seed])
            while queue:
                current = queue.popleft()
                cluster.append(current)
                for side in range(4):
                    found = self.graph.neighbor(current, side)
                    if found is not None and not visited[found[0]]:
                        visited[found[0]] = True
                        queue.append(found[0])
            clusters.append(cluster)

        return clusters
