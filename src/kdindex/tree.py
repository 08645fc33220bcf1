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
Static 2-d tree over point items.

The tree is built once from a batch of items and answers rectangular range
queries. It cannot be updated afterwards.

The data model for the tree is given by the following specifications:
  1. Nodes are stored in a 1d-buffer indexed by non-negative integers.
  1. The root node has index 0.
  1. There are 2 types of nodes:
         a. internal nodes that point to exactly 2 children, low and high.
         a. leaf nodes that hold the indices of their items, once sorted by
            (x, y) and once sorted by (y, x).
  1. Items are kept in a 1d-buffer in input order. Their coordinates are
     kept in 2 numpy arrays parallel to it.
  1. Every item belongs to exactly one leaf.
  1. Each node has bounds containing all its items, upper limits inflated by
     :data:`kdindex.geometry.EPSILON`.

A node is split while it holds more than `max_elements` items and its depth
is below `max_depth`. Splits alternate between the x axis (even depths) and
the y axis (odd depths), at the median of the node's items along that axis.
'''
import collections
import logging

import numpy
import toolz

from . import errors
from .geometry import (EPSILON, X_AXIS, Y_AXIS, as_bounds, coordinates,
                       _bounds_of_coords)


logger = logging.getLogger(__name__)

MAX_ELEMENTS = 50
"""Maximum number of items in a leaf, unless `MAX_DEPTH` is reached."""

MAX_DEPTH = 40
"""Depth at which nodes are no longer split."""


Leaf = collections.namedtuple('Leaf', 'depth bounds xorder yorder')
Internal = collections.namedtuple('Internal', 'depth bounds low high')

LeafView = collections.namedtuple('LeafView', 'depth bounds items')
# Read-only view of a leaf, with items instead of indices.


def xy_order(xs, ys):
    """Indices sorting points by x, then y. Full ties keep input order."""
    # lexsort is stable and sorts on its last key first.
    return numpy.lexsort((ys, xs))


def yx_order(xs, ys):
    """Indices sorting points by y, then x. Full ties keep input order."""
    return numpy.lexsort((xs, ys))


class KdTree():
    """
    Static 2-d tree for rectangular range queries.

    Args:
        items (iterable): objects with a `point` method returning `(x, y)`.
            An empty iterable gives an empty tree.
        max_elements (int, optional): leaf capacity. Defaults to
            `MAX_ELEMENTS`.
        max_depth (int, optional): nodes at this depth are never split.
            Defaults to `MAX_DEPTH`.

    Attributes:
        nodes (list of Leaf or Internal): the node buffer, root at index 0.

    Raises:
        InvalidInput: bad parameters, or items without finite points.
    """

    def __init__(self, items, max_elements=MAX_ELEMENTS, max_depth=MAX_DEPTH):
        if max_elements < 1:
            raise errors.InvalidInput(
                "max_elements must be positive, got {}".format(max_elements))
        if max_depth < 0:
            raise errors.InvalidInput(
                "max_depth cannot be negative, got {}".format(max_depth))
        self.max_elements = max_elements
        self.max_depth = max_depth
        self._items = list(items)
        self._xs, self._ys = coordinates(self._items)
        self.nodes = []
        if self._items:
            # Scratch membership mask shared by all splits.
            is_low = numpy.zeros(len(self._items), dtype=bool)
            self._build(
                xy_order(self._xs, self._ys),
                yx_order(self._xs, self._ys),
                0,
                _bounds_of_coords(self._xs, self._ys),
                is_low,
            )
        logger.debug("Built %s over %d items: %d nodes, %d leaves, depth %d",
                     self.__class__.__name__, len(self), self.node_count,
                     self.leaf_count, self.depth)

    @classmethod
    def build(cls, items, **kwargs):
        """Builds a tree from `items`. Same as calling the class."""
        return cls(items, **kwargs)

    def __repr__(self):
        return "<{} items={} nodes={} depth={}>".format(
            self.__class__.__name__, len(self), self.node_count, self.depth)

    def __len__(self):
        """Returns the number of items."""
        return len(self._items)

    def __iter__(self):
        """Iterates over the items, leaf by leaf."""
        return toolz.concat(leaf.items for leaf in self.leaves())

    @property
    def is_empty(self):
        """Boolean: Is the tree empty?"""
        return not self.nodes

    @property
    def bounds(self):
        """Bounds of all items, None for an empty tree."""
        if self.is_empty:
            return None
        return self.nodes[0].bounds

    @property
    def depth(self):
        """Number of levels of the tree."""
        if self.is_empty:
            return 0
        return 1 + max(node.depth for node in self.nodes)

    @property
    def node_count(self):
        return len(self.nodes)

    @property
    def leaf_count(self):
        return sum(1 for node in self.nodes if isinstance(node, Leaf))

    def leaves(self):
        """Yields a :class:`LeafView` per leaf, low children first."""
        # Nodes are stored in depth-first order, low child first.
        for node in self.nodes:
            if isinstance(node, Leaf):
                yield LeafView(node.depth, node.bounds,
                               [self._items[i] for i in node.xorder])

    def search(self, query):
        """
        Returns the items whose point lies in `query`, boundary included.

        Args:
            query (Bounds or sequence): rectangle given as
                `(min_x, max_x, min_y, max_y)`.

        Returns:
            list: matching items, in no particular order. Items given several
            times to the tree are returned as many times.

        Raises:
            InvalidQuery: malformed or inverted query rectangle.
        """
        query = as_bounds(query)
        if self.is_empty:
            return []
        return [self._items[i]
                for i in toolz.concat(self._search(query, 0))]

    def _search(self, query, idx):
        '''Yields arrays of indices of matching items under node `idx`.'''
        node = self.nodes[idx]
        if not node.bounds.intersects(query):
            return
        if isinstance(node, Internal):
            yield from self._search(query, node.low)
            yield from self._search(query, node.high)
        elif query.contains(node.bounds):
            yield node.xorder
        else:
            xs = self._xs[node.xorder]
            ys = self._ys[node.xorder]
            inside = ((query.min_x <= xs) & (xs <= query.max_x)
                      & (query.min_y <= ys) & (ys <= query.max_y))
            yield node.xorder[inside]

    def _build(self, xorder, yorder, depth, bounds, is_low):
        '''Builds the node of the items indexed by `xorder`; returns its index.

        `xorder` and `yorder` hold the same item indices.
        '''
        idx = len(self.nodes)
        self.nodes.append(Leaf(depth, bounds, xorder, yorder))
        if len(xorder) > self.max_elements and depth < self.max_depth:
            self._split(idx, is_low)
        return idx

    def _split(self, idx, is_low):
        '''Splits leaf `idx` at the median and replaces it by an internal node.

        The low child gets the first half of the items along the active axis,
        the high child the rest, median included. Ties at the median
        coordinate are split in sort order, so the halves have sizes
        `count // 2` and `count - count // 2` whatever the data.
        '''
        node = self.nodes[idx]
        if node.depth % 2 == 0:
            axis, active, other, coords = (
                X_AXIS, node.xorder, node.yorder, self._xs)
        else:
            axis, active, other, coords = (
                Y_AXIS, node.yorder, node.xorder, self._ys)
        mid = len(active) // 2
        boundary = float(coords[active[mid]])

        # Filter the other ordering by membership, keeping its order.
        is_low[active[:mid]] = True
        other_low = other[is_low[other]]
        other_high = other[~is_low[other]]
        is_low[active[:mid]] = False

        low_bounds = node.bounds.with_max(axis, boundary + EPSILON)
        high_bounds = node.bounds.with_min(axis, boundary)
        if axis == X_AXIS:
            low = (active[:mid], other_low)
            high = (active[mid:], other_high)
        else:
            low = (other_low, active[:mid])
            high = (other_high, active[mid:])
        low_idx = self._build(*low, node.depth + 1, low_bounds, is_low)
        high_idx = self._build(*high, node.depth + 1, high_bounds, is_low)
        self.nodes[idx] = Internal(node.depth, node.bounds, low_idx, high_idx)
