"""
Static 2-d tree for rectangular range queries over points.

A :class:`KdTree` is built once from a batch of items, each giving its
location through a `point` method, and is then queried with axis-aligned
rectangles:

    >>> from kdindex import KdTree, PointItem
    >>> tree = KdTree([PointItem(0, 0), PointItem(1, 1), PointItem(2, 2)])
    >>> len(tree.search((0, 0.5, 0, 0.5)))
    1

Nodes are split alternately along x and y at the median of their items,
until they hold at most 50 items or reach depth 40. Items are not added or
removed once the tree is built.
"""
from .errors import KdIndexError, InvalidInput, InvalidQuery  # noqa: F401
from .geometry import (Bounds, Item, Point, PointItem,  # noqa: F401
                       EPSILON, bounds_of)
from .tree import KdTree, MAX_DEPTH, MAX_ELEMENTS  # noqa: F401

__version__ = "0.1.0"
