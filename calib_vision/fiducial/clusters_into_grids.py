"""
Clusters Into Grids

Converts clusters of connected squares into rectangular grids. A corner of the
grid is used as the seed, the first row is found by walking along one of its
edges and each following row is found by stepping down from the previous one.
"""

import logging
from typing import List, Optional, Tuple

from ..data_models import SquareGrid
from .squares_into_clusters import SquareGraph


class ClustersIntoGrids:
    """Turns clusters which form a rectangle of the expected size into grids."""

    def __init__(self, expected_nodes: int):
        """
        Initialize the grid assembler.

        Args:
            expected_nodes: Total number of squares in the target, rows*columns
        """
        if expected_nodes < 1:
            raise ValueError("expected_nodes must be at least 1")
        self.expected_nodes = expected_nodes
        self.grids: List[SquareGrid] = []
        self.logger = logging.getLogger(__name__)

    def process(self, graph: SquareGraph, clusters: List[List[int]]) -> List[SquareGrid]:
        """
        Convert every valid cluster into a grid.

        Args:
            graph: Graph which owns the nodes referenced by the clusters
            clusters: Lists of node handles

        Returns:
            Grids found, also available through get_grids()
        """
        self.grids = []
        for cluster in clusters:
            if len(cluster) != self.expected_nodes:
                continue
            grid = self._process_cluster(graph, cluster)
            if grid is None:
                self.logger.debug(f"Cluster of {len(cluster)} squares is not a rectangular grid")
                continue
            self.grids.append(grid)
        return self.grids

    def get_grids(self) -> List[SquareGrid]:
        return self.grids

    def _process_cluster(self, graph: SquareGraph, cluster: List[int]) -> Optional[SquareGrid]:
        if len(cluster) == 1:
            node = graph.nodes[cluster[0]]
            if node.num_edges() != 0:
                return None
            return SquareGrid((node,), 1, 1)

        fewest = min(graph.nodes[h].num_edges() for h in cluster)
        if fewest == 1:
            return self._process_line(graph, cluster)
        if fewest == 2:
            return self._process_rectangle(graph, cluster)
        return None

    def _process_line(self, graph: SquareGraph, cluster: List[int]) -> Optional[SquareGrid]:
        seed = next(h for h in cluster if graph.nodes[h].num_edges() == 1)
        side = next(i for i, e in enumerate(graph.nodes[seed].edges) if e is not None)

        row = self._walk(graph, seed, side)
        if row is None or len(row) != len(cluster):
            return None
        return SquareGrid(tuple(graph.nodes[h] for h, _ in row), 1, len(row))

    def _process_rectangle(self, graph: SquareGraph, cluster: List[int]) -> Optional[SquareGrid]:
        seed = None
        for h in cluster:
            sides = [i for i, e in enumerate(graph.nodes[h].edges) if e is not None]
            if len(sides) == 2 and (sides[1] - sides[0]) % 2 == 1:
                seed = h
                right, down = sides
                break
        if seed is None:
            return None

        # side index rotation from the walking direction to the down direction
        turn = (down - right) % 4

        current = self._walk(graph, seed, right)
        if current is None:
            return None
        columns = len(current)
        rows = [current]

        while True:
            below = []
            for handle, right_side in current:
                found = graph.neighbor(handle, (right_side + turn) % 4)
                if found is None:
                    below.append(None)
                    continue
                neighbor, entered = found
                below.append((neighbor, ((entered + 2) % 4 - turn) % 4))

            if all(b is None for b in below):
                break
            if any(b is None for b in below):
                return None
            if not self._row_connected(graph, below):
                return None
            rows.append(below)
            current = below

        handles = [h for row in rows for h, _ in row]
        if len(handles) != len(cluster) or len(set(handles)) != len(handles):
            return None

        return SquareGrid(tuple(graph.nodes[h] for h in handles), len(rows), columns)

    @staticmethod
    def _walk(graph: SquareGraph, seed: int, side: int) -> Optional[List[Tuple[int, int]]]:
        """
        Walk in a straight line, leaving each square through the side opposite to the one entered.

        Returns:
            List of (node handle, forward side) or None if the walk loops
        """
        row = [(seed, side)]
        visited = {seed}
        current = seed
        while True:
            found = graph.neighbor(current, side)
            if found is None:
                return row
            current, entered = found
            if current in visited:
                return None
            visited.add(current)
            side = (entered + 2) % 4
            row.append((current, side))

    @staticmethod
    def _row_connected(graph: SquareGraph, row: List[Tuple[int, int]]) -> bool:
        for (handle, right_side), (next_handle, _) in zip(row, row[1:]):
            found = graph.neighbor(handle, right_side)
            if found is None or found[0] != next_handle:
                return False
        return graph.neighbor(*row[-1]) is None
