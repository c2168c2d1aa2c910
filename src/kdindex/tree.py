# Copyright (C) 2018 DataStorm
#
# This file is part of KdIndex.
#
# KdIndex is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# KdIndex is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# A copy of the GNU General Public License is available in the LICENSE
# file or at <http://www.gnu.org/licenses/>.
'''
2d-tree symbol table.

The base data structure is the class :class:`KdTree`, a symbol table whose
keys are points of the plane. It is a binary search tree in which the
comparison axis alternates between x and y at each level, so that every node
splits the region of its subtree in two half-regions.

The regions are kept on the nodes and used to prune searches: a subtree is
skipped by range search when its region misses the query rectangle, and by
nearest neighbour search when its region is farther than the best candidate
found so far.

The tree is deliberately not rebalanced. Its shape depends on insertion order
and degenerates to a list for sorted input. Traversals therefore use explicit
stacks and queues instead of recursion.
'''
import collections
import heapq
import logging

import numpy
import toolz

from .exceptions import InvalidArgument
from .geometry import Rect, as_point, as_rect

logger = logging.getLogger(__name__)


# ========================  Node Data Structure  ==============================

# The data model of the tree is given by the following specifications:
#   1. Keys are unique: no two nodes hold equal points.
#   1. The root has level 0 and its region is the whole plane.
#   1. Nodes at even levels split on x, nodes at odd levels split on y.
#   1. A child's level is its parent's plus one, and its region is the
#      parent's region clipped by the line through the parent's point on the
#      parent's axis.
#   1. Left children hold points with a strictly smaller coordinate on the
#      parent's axis, right children a greater or equal one (ties go right).
#   1. Nodes are created once, on the first insertion of their point, and
#      never removed. Only their value changes afterwards.


class Node():
    """A point, its value, and the region of its subtree."""
    __slots__ = ('point', 'value', 'rect', 'level', 'left', 'right')

    def __init__(self, point, value, rect, level):
        self.point = point
        self.value = value
        self.rect = rect
        self.level = level
        self.left = None
        self.right = None

    def __repr__(self):
        return "Node(point={}, level={})".format(tuple(self.point),
                                                 self.level)

    @property
    def axis(self):
        """Split axis: 0 for x, 1 for y."""
        return self.level % 2

    def goes_left(self, point):
        return point[self.axis] < self.point[self.axis]

    def children_toward(self, point):
        """Returns the (near, far) children as seen from `point`."""
        if self.goes_left(point):
            return self.left, self.right
        return self.right, self.left


# ========================  KdTree Symbol Table  ==============================


class KdTree():
    """
    Symbol table mapping points of the plane to values.

    Values may be anything but None, which is reserved to signal a missing
    key. The tree is not thread-safe: callers sharing one across threads
    must serialise accesses themselves.

    Args:
        items (mapping or iterable of pairs, optional): initial content,
            loaded through :meth:`update`.

    Attributes:
        stats (dict): cumulative search counters, see :meth:`reset_stats`.
    """
    def __init__(self, items=None):
        self._root = None
        self._size = 0
        self.reset_stats()
        if items is not None:
            self.update(items)

    def __repr__(self):
        return "<{} object with {} points>".format(self.__class__.__name__,
                                                   self._size)

    @property
    def size(self):
        """Number of distinct points in the table."""
        return self._size

    def __len__(self):
        return self._size

    @property
    def is_empty(self):
        """Boolean: Is the table empty?"""
        return self._size == 0

    @property
    def height(self):
        """Number of levels of the tree, 0 when empty."""
        return max((node.level + 1 for node in self._iter_nodes()),
                   default=0)

    @property
    def stats(self):
        return dict(self._stats)

    def reset_stats(self):
        """
        Zero the search counters.

        `queries` counts range and nearest searches, `nodes_visited` the
        nodes they reached and `nodes_pruned` those of the visited nodes whose
        subtree was skipped.
        """
        self._stats = {
            "queries": 0,
            "nodes_visited": 0,
            "nodes_pruned": 0,
        }

    # --------------------------  Insertion  ---------------------------------

    def put(self, point, value):
        """Associate `value` to `point`, overwriting any previous value."""
        point = as_point(point)
        if value is None:
            raise InvalidArgument("Value associated to {} must not be None"
                                  .format(tuple(point)))
        if self._root is None:
            self._root = Node(point, value, Rect.plane(), 0)
            self._size = 1
            return
        node = self._root
        while True:
            if node.point == point:
                node.value = value
                return
            axis, at = node.axis, node.point[node.axis]
            if node.goes_left(point):
                if node.left is None:
                    node.left = Node(point, value,
                                     node.rect.lower_half(axis, at),
                                     node.level + 1)
                    break
                node = node.left
            else:
                if node.right is None:
                    node.right = Node(point, value,
                                      node.rect.upper_half(axis, at),
                                      node.level + 1)
                    break
                node = node.right
        self._size += 1

    def __setitem__(self, point, value):
        self.put(point, value)

    def update(self, items):
        '''
        Put every (point, value) pair of `items`.

        `items` is a mapping or an iterable of pairs. All pairs are checked
        before the first one is inserted, so that an invalid pair leaves the
        table untouched.
        '''
        if items is None:
            raise InvalidArgument("Items must not be None")
        if hasattr(items, 'items'):
            items = items.items()
        pairs = []
        for item in items:
            try:
                point, value = item
            except (TypeError, ValueError):
                raise InvalidArgument("Expected a (point, value) pair, got "
                                      "{!r}".format(item)) from None
            point = as_point(point)
            if value is None:
                raise InvalidArgument("Value associated to {} must not be "
                                      "None".format(tuple(point)))
            pairs.append((point, value))
        before = self._size
        for point, value in pairs:
            self.put(point, value)
        logger.debug("Loaded %d pairs, %d new points, size %d.",
                     len(pairs), self._size - before, self._size)

    @classmethod
    def from_array(cls, coords, values=None):
        """
        Build a table from an (n, 2) array of coordinates.

        Args:
            coords (array-like): one point per row.
            values (sequence, optional): values of the rows. Defaults to the
                row numbers.
        """
        coords = _as_coords(coords)
        if values is None:
            values = range(coords.shape[0])
        elif len(values) != coords.shape[0]:
            raise InvalidArgument(
                "Got {} values for {} points".format(len(values),
                                                     coords.shape[0])
            )
        return cls(zip(coords, values))

    # -------------------------  Point lookup  -------------------------------

    def _find(self, point):
        node = self._root
        while node is not None:
            if node.point == point:
                return node
            node = node.left if node.goes_left(point) else node.right
        return None

    def get(self, point, default=None):
        """Value of `point`, or `default` if it is not in the table."""
        point = as_point(point)
        node = self._find(point)
        if node is None:
            return default
        return node.value

    def __getitem__(self, point):
        value = self.get(point)
        if value is None:
            raise KeyError(point)
        return value

    def contains(self, point):
        return self.get(point) is not None

    def __contains__(self, point):
        # Container protocol: membership tests never raise.
        try:
            return self.contains(point)
        except InvalidArgument:
            return False

    # -------------------------  Enumeration  --------------------------------

    def _iter_nodes(self):
        """Breadth-first iteration through the nodes."""
        queue = collections.deque()
        if self._root is not None:
            queue.append(self._root)
        while queue:
            node = queue.popleft()
            yield node
            if node.left is not None:
                queue.append(node.left)
            if node.right is not None:
                queue.append(node.right)

    def items(self):
        """Snapshot list of (point, value) pairs, in breadth-first order."""
        return [(node.point, node.value) for node in self._iter_nodes()]

    def points(self):
        """Snapshot list of all points, in breadth-first order."""
        return list(toolz.pluck(0, self.items()))

    def values(self):
        return list(toolz.pluck(1, self.items()))

    def __iter__(self):
        return iter(self.points())

    def to_array(self):
        """Points as an (n, 2) float array, in breadth-first order."""
        return numpy.array(self.points(), dtype=float).reshape(-1, 2)

    # -------------------------  Range search  -------------------------------

    def range(self, rect):
        """
        Points of the table inside `rect`, boundary included.

        Subtrees whose region does not intersect `rect` are pruned.

        Args:
            rect (Rect): query rectangle, or anything :func:`as_rect` accepts
                such as a shapely geometry whose bounds are used.

        Returns:
            list of Point, in no particular order.
        """
        rect = as_rect(rect)
        self._stats["queries"] += 1
        found = []
        stack = [self._root] if self._root is not None else []
        while stack:
            node = stack.pop()
            self._stats["nodes_visited"] += 1
            if not rect.intersects(node.rect):
                self._stats["nodes_pruned"] += 1
                continue
            if rect.contains(node.point):
                found.append(node.point)
            # Right is pushed first so that left subtrees are reported first.
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)
        return found

    def range_many(self, rects):
        """List of :meth:`range` results, one per rectangle of `rects`."""
        rects = [as_rect(r) for r in rects]
        return [self.range(r) for r in rects]

    # ----------------------  Nearest neighbour search  ----------------------

    # The search descends first into the child on the query's side of the
    # splitting line, which tends to lower the champion distance early, and
    # then into the other child unless its region is too far. The explicit
    # stack gives the same visiting order as the recursive formulation: the
    # far child is pushed below the near one, and so is only popped once the
    # whole near subtree has been processed.

    def nearest(self, point):
        """
        A point of the table closest to `point`, None if the table is empty.

        Among points at exactly the same distance, the first one reached by
        the traversal wins. Distances are compared squared.
        """
        point = as_point(point)
        if self._root is None:
            return None
        self._stats["queries"] += 1
        champion = self._root.point
        best = champion.squared_distance_to(point)
        stack = [self._root]
        while stack:
            node = stack.pop()
            self._stats["nodes_visited"] += 1
            if node.rect.squared_distance_to(point) > best:
                self._stats["nodes_pruned"] += 1
                continue
            dist = node.point.squared_distance_to(point)
            if dist < best:
                champion, best = node.point, dist
            near, far = node.children_toward(point)
            if far is not None:
                stack.append(far)
            if near is not None:
                stack.append(near)
        return champion

    def nearest_k(self, point, k):
        """
        The `k` points of the table closest to `point`, closest first.

        Fewer points are returned when the table holds less than `k` points.
        The search prunes like :meth:`nearest`, using the distance to the
        current k-th best candidate.
        """
        point = as_point(point)
        if isinstance(k, bool) or not isinstance(k, (int, numpy.integer)) \
                or k < 1:
            raise InvalidArgument("k must be a positive integer, got {!r}"
                                  .format(k))
        if self._root is None:
            return []
        self._stats["queries"] += 1
        # Max heap of the k best candidates, by negated distance.
        heap = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            self._stats["nodes_visited"] += 1
            if len(heap) == k \
                    and node.rect.squared_distance_to(point) > -heap[0][0]:
                self._stats["nodes_pruned"] += 1
                continue
            dist = node.point.squared_distance_to(point)
            if len(heap) < k:
                heapq.heappush(heap, (-dist, node.point))
            elif dist < -heap[0][0]:
                heapq.heappushpop(heap, (-dist, node.point))
            near, far = node.children_toward(point)
            if far is not None:
                stack.append(far)
            if near is not None:
                stack.append(near)
        sorted_heap = [heapq.heappop(heap) for _ in range(len(heap))][::-1]
        return [p for _, p in sorted_heap]

    def nearest_many(self, coords):
        """
        Nearest points to each row of an (m, 2) array of query coordinates.

        Returns:
            (m, 2) float array, filled with NaN when the table is empty.
        """
        coords = _as_coords(coords)
        result = numpy.full(coords.shape, numpy.nan)
        if self._root is None:
            return result
        for i, row in enumerate(coords):
            result[i] = self.nearest(row)
        return result


def _as_coords(coords):
    try:
        coords = numpy.asarray(coords, dtype=float)
    except (TypeError, ValueError):
        raise InvalidArgument("Coordinates must be a numeric array") from None
    if coords.size == 0:
        return coords.reshape(0, 2)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise InvalidArgument(
            "Coordinates must be of shape (n, 2), got {}"
            .format(coords.shape)
        )
    return coords
