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
Geometric primitives of the 2d-tree.

Keys of the symbol table are points of the plane, and every node of the tree
is enclosed by an axis-aligned rectangle: the region of the plane for which
the node's subtree is the only possible source of points. Both primitives are
immutable named tuples, so they compare by value and can be used as keys.

All distances used by the tree are squared Euclidean distances. They preserve
the order of the true distances while avoiding square roots.
'''
import collections
import math

from .exceptions import InvalidArgument

_INF = float('inf')


class Point(collections.namedtuple('Point', 'x y')):
    '''Immutable point of the plane with finite coordinates.'''
    __slots__ = ()

    def __new__(cls, x, y):
        try:
            fx, fy = float(x), float(y)
        except (TypeError, ValueError):
            raise InvalidArgument(
                "Point coordinates must be real numbers, got ({!r}, {!r})"
                .format(x, y)
            ) from None
        if not (math.isfinite(fx) and math.isfinite(fy)):
            raise InvalidArgument(
                "Point coordinates must be finite, got ({}, {})"
                .format(fx, fy)
            )
        return super(Point, cls).__new__(cls, fx, fy)

    def squared_distance_to(self, other):
        dx = self.x - other[0]
        dy = self.y - other[1]
        return dx * dx + dy * dy

    def distance_to(self, other):
        return math.sqrt(self.squared_distance_to(other))


class Rect(collections.namedtuple('Rect', 'xmin ymin xmax ymax')):
    '''
    Immutable axis-aligned rectangle, boundary included.

    Bounds may be infinite, so that half-planes and the whole plane are
    rectangles too. This is needed for the regions of the nodes close to the
    root of the tree.
    '''
    __slots__ = ()

    def __new__(cls, xmin, ymin, xmax, ymax):
        try:
            bounds = [float(b) for b in (xmin, ymin, xmax, ymax)]
        except (TypeError, ValueError):
            raise InvalidArgument(
                "Rect bounds must be real numbers, got ({!r}, {!r}, {!r}, {!r})"
                .format(xmin, ymin, xmax, ymax)
            ) from None
        if any(math.isnan(b) for b in bounds):
            raise InvalidArgument("Rect bounds cannot be NaN: {}"
                                  .format(bounds))
        if bounds[0] > bounds[2] or bounds[1] > bounds[3]:
            raise InvalidArgument(
                "Invalid Rect: mins must not exceed maxs, got "
                "xmin={}, ymin={}, xmax={}, ymax={}".format(*bounds)
            )
        return super(Rect, cls).__new__(cls, *bounds)

    @classmethod
    def plane(cls):
        """The rectangle covering the whole plane."""
        return cls(-_INF, -_INF, _INF, _INF)

    @property
    def bounds(self):
        """Bounds in shapely's order (minx, miny, maxx, maxy)."""
        return tuple(self)

    def contains(self, point):
        return (self.xmin <= point[0] <= self.xmax
                and self.ymin <= point[1] <= self.ymax)

    def intersects(self, other):
        # Touching boundaries count as an intersection.
        return (self.xmax >= other.xmin and self.ymax >= other.ymin
                and other.xmax >= self.xmin and other.ymax >= self.ymin)

    def squared_distance_to(self, point):
        """Squared distance to `point`, zero if inside or on the boundary."""
        dx = dy = 0.
        if point[0] < self.xmin:
            dx = point[0] - self.xmin
        elif point[0] > self.xmax:
            dx = point[0] - self.xmax
        if point[1] < self.ymin:
            dy = point[1] - self.ymin
        elif point[1] > self.ymax:
            dy = point[1] - self.ymax
        return dx * dx + dy * dy

    def distance_to(self, point):
        return math.sqrt(self.squared_distance_to(point))

    # The halves below are computed from a node's own coordinate, which lies
    # inside the rectangle, so the result is always a valid Rect.
    def lower_half(self, axis, at):
        """Part of `self` below the line `axis = at` (0 for x, 1 for y)."""
        if axis == 0:
            return self._replace(xmax=at)
        return self._replace(ymax=at)

    def upper_half(self, axis, at):
        """Part of `self` above the line `axis = at` (0 for x, 1 for y)."""
        if axis == 0:
            return self._replace(xmin=at)
        return self._replace(ymin=at)


def as_point(obj):
    '''
    Coerce `obj` into a :class:`Point`.

    Accepted are points, objects with `x` and `y` attributes (e.g. shapely
    Points) and (x, y) pairs.
    '''
    if isinstance(obj, Point):
        return obj
    if obj is None:
        raise InvalidArgument("Point argument must not be None")
    if hasattr(obj, 'x') and hasattr(obj, 'y'):
        return Point(obj.x, obj.y)
    try:
        x, y = obj
    except (TypeError, ValueError):
        raise InvalidArgument("Cannot interpret {!r} as a point"
                              .format(obj)) from None
    return Point(x, y)


def as_rect(obj):
    '''
    Coerce `obj` into a :class:`Rect`.

    Accepted are rectangles, objects with a `bounds` attribute in shapely's
    order (e.g. any shapely geometry) and 4-tuples (xmin, ymin, xmax, ymax).
    '''
    if isinstance(obj, Rect):
        return obj
    if obj is None:
        raise InvalidArgument("Rect argument must not be None")
    bounds = getattr(obj, 'bounds', obj)
    try:
        xmin, ymin, xmax, ymax = bounds
    except (TypeError, ValueError):
        raise InvalidArgument("Cannot interpret {!r} as a rectangle"
                              .format(obj)) from None
    return Rect(xmin, ymin, xmax, ymax)
