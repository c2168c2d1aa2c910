"""
Symbol tables of points of the plane, backed by 2d-trees.

A 2d-tree is a binary search tree whose nodes split the plane alternately on
the x and y coordinates. Each node remembers the region of the plane its
subtree covers, which allows range searches and nearest neighbour searches to
skip whole subtrees instead of scanning every point.

The tree is not rebalanced: its shape, and so its performance, follows the
insertion order of the points.

    >>> from kdindex import KdTree, Rect
    >>> table = KdTree({(0.5, 0.5): "a", (0.25, 0.75): "b"})
    >>> table.get((0.5, 0.5))
    'a'
    >>> table.nearest((0.3, 0.7))
    Point(x=0.25, y=0.75)
    >>> table.range(Rect(0., 0., 0.4, 1.))
    [Point(x=0.25, y=0.75)]
"""
from .exceptions import InvalidArgument  # noqa: F401
from .geometry import Point, Rect, as_point, as_rect  # noqa: F401
from .logger import set_debug  # noqa: F401
from .tree import KdTree  # noqa: F401

__version__ = "0.1.0"
