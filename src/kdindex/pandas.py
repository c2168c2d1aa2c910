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
"""
Module wrapping pandas DataFrames.

Points are read from two coordinate columns of a DataFrame, by default named
`x` and `y`.
"""
import logging

import numpy
import pandas
import toolz

from .exceptions import InvalidArgument
from .geometry import as_rect
from .tree import KdTree

logger = logging.getLogger(__name__)


def _coords(frame, x, y):
    missing = [col for col in (x, y) if col not in frame.columns]
    if missing:
        raise InvalidArgument("Missing coordinate columns {} in frame"
                              .format(missing))
    return frame[[x, y]].to_numpy(dtype=float)


def _shadowed(coords):
    """Number of rows whose point is repeated by a later row."""
    counts = toolz.frequencies(map(tuple, coords))
    return sum(n - 1 for n in counts.values())


def index_frame(frame, x="x", y="y"):
    """
    Index the rows of `frame` by their point.

    The resulting table maps each point to the label of its row. When several
    rows share a point, the last one wins.

    Returns:
        KdTree
    """
    coords = _coords(frame, x, y)
    tree = KdTree.from_array(coords, values=list(frame.index))
    shadowed = _shadowed(coords)
    if shadowed:
        logger.warning("%d rows share their point with a later row and are "
                       "shadowed in the index.", shadowed)
    logger.debug("Indexed %d rows on columns (%s, %s).", len(frame), x, y)
    return tree


def range_frame(frame, rect, x="x", y="y", tree=None):
    """
    Rows of `frame` whose point lies in `rect`, boundary included.

    Parameters
    ----------
    frame: pandas DataFrame
    rect: Rect or anything :func:`kdindex.geometry.as_rect` accepts
    x, y: str
        Names of the coordinate columns.
    tree: KdTree, optional
        Index of `frame` as returned by :func:`index_frame`, to reuse between
        queries. Built on the fly when missing.

    Returns
    -------
    pandas DataFrame
        The matching rows, in the order of `frame`. Rows shadowed in the
        index by a later duplicate are returned too.
    """
    rect = as_rect(rect)
    coords = _coords(frame, x, y)
    if tree is None:
        tree = index_frame(frame, x, y)
    hits = set(tree.range(rect))
    mask = numpy.fromiter((tuple(row) in hits for row in coords),
                          dtype=bool, count=coords.shape[0])
    return frame[mask]


def nearest_join(left, right, x="x", y="y", suffixes=("", "_right"),
                 include_distances=False):
    """
    Left join of each row of `left` with its nearest row of `right`.

    Columns present on both sides are renamed with `suffixes`. When `right`
    is empty, its columns are filled with NaN.

    Parameters
    ----------
    left, right: pandas DataFrame
    x, y: str
        Names of the coordinate columns, on both sides.
    suffixes: pair of str
    include_distances: bool (default False)
        Add a `distance` column with the Euclidean distance between the
        matched points.

    Returns
    -------
    pandas DataFrame indexed like `left`.
    """
    lcoords = _coords(left, x, y)
    rcoords = _coords(right, x, y)
    # Positions rather than labels, so that any right index works.
    rtree = KdTree.from_array(rcoords)
    logger.debug("Joining %d rows to their nearest among %d rows.",
                 len(left), len(right))

    if rtree.is_empty:
        right_res = pandas.DataFrame(numpy.nan, columns=right.columns,
                                     index=pandas.RangeIndex(len(left)))
        distances = numpy.full(len(left), numpy.nan)
    else:
        matches = [rtree.nearest(row) for row in lcoords]
        right_res = right.iloc[[rtree.get(p) for p in matches]]
        distances = numpy.array([p.distance_to(row)
                                 for p, row in zip(matches, lcoords)])
    right_res.index = left.index

    # Add suffixes on column names present on both sides.
    common_colnames = left.columns.intersection(right.columns)
    left_res = left.rename(columns={col: "{}{}".format(col, suffixes[0])
                                    for col in common_colnames})
    right_res = right_res.rename(columns={col: "{}{}".format(col, suffixes[1])
                                          for col in common_colnames})
    frames = [left_res, right_res]
    if include_distances:
        frames.append(pandas.Series(distances, index=left.index,
                                    name="distance"))
    return pandas.concat(frames, axis=1)
