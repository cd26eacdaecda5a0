"""Building blocks for A* searches: open heap, closed set and grid path merging."""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Hashable


@dataclass(eq=False)
class AStarNode:
    """A search node carrying its path cost, heuristic and predecessor."""

    g: int = 0
    h: int = 0
    f: int = 0
    from_node: AStarNode | None = None
    element: Any = None


class AStarWalk:
    """Open heap ordered by ``f`` plus a closed set of visited node ids."""

    def __init__(self, max_search_num: int | None = None) -> None:
        self._cur_search_num = 0
        self._max_search_num: int | None = None
        self._open_heap: list[tuple[int, int, AStarNode]] = []
        self._close_set: set[Hashable] = set()
        self._seq = itertools.count()
        self.set_max_search_num(max_search_num)

    def set_max_search_num(self, num: int | None) -> None:
        """Limit how many nodes may be pushed; ``None`` means unlimited."""
        if num is not None and num < 0:
            raise ValueError("max search number must not be negative")
        self._max_search_num = num

    def reach_max_search(self) -> bool:
        """Return True once the push limit has been used up."""
        return (
            self._max_search_num is not None
            and self._cur_search_num >= self._max_search_num
        )

    def start(self, start_node_id: Hashable) -> None:
        """Reset the search, marking ``start_node_id`` as visited."""
        self._close_set = {start_node_id}
        self._open_heap.clear()
        self._cur_search_num = 0

    def use_node_id(self, node_id: Hashable) -> bool:
        """Mark ``node_id`` as visited; False if it was visited already."""
        if node_id in self._close_set:
            return False
        self._close_set.add(node_id)
        return True

    def add_open_heap(self, node: AStarNode, from_node: AStarNode | None) -> bool:
        """Push ``node`` reached from ``from_node``; False once the limit is hit."""
        if self._max_search_num is None or self._cur_search_num < self._max_search_num:
            self._cur_search_num += 1
        else:
            return False
        node.f = node.h + node.g
        node.from_node = from_node
        heapq.heappush(self._open_heap, (node.f, next(self._seq), node))
        return True

    def pop_open_heap(self) -> AStarNode | None:
        """Pop the node with the lowest ``f``, or None when the heap is empty."""
        if not self._open_heap:
            return None
        return heapq.heappop(self._open_heap)[2]


@dataclass(frozen=True)
class Point2D:
    """An integer point on a grid."""

    x: int = 0
    y: int = 0

    def manhattan_distance(self, other: Point2D) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)


@dataclass(eq=False)
class GridNode(AStarNode):
    """A search node positioned on a 2D grid."""

    p: Point2D = field(default_factory=Point2D)


def merge_path(end_node: GridNode | None) -> list[Point2D]:
    """Walk back from ``end_node`` and return the path's turning points, start first."""
    if end_node is None:
        return []
    points: deque[Point2D] = deque([end_node.p])
    prev = end_node
    dx = dy = 0
    node = end_node.from_node
    while node is not None:
        new_dx = node.p.x - prev.p.x
        new_dy = node.p.y - prev.p.y
        if new_dx != dx or new_dy != dy:
            dx, dy = new_dx, new_dy
            points.appendleft(node.p)
        else:
            points[0] = node.p
        prev = node
        node = node.from_node
    return list(points)