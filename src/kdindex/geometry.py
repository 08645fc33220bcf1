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
Points, axis-aligned rectangles and indexable items.

The tree only needs two things from the objects it indexes: a point, given by
the :meth:`Item.point` method, and rectangles to bound them. Rectangles are
closed on all sides, so points on the boundary are contained.

Upper limits of computed bounds are inflated by :data:`EPSILON`. This keeps a
point lying exactly on the maximum of a collection inside the collection's
bounds even after splitting at that coordinate.
'''
import abc
import collections

import numpy

from . import errors


EPSILON = 1e-7
"""Inflation added to the upper limits of computed bounds."""

X_AXIS = 0
Y_AXIS = 1


Point = collections.namedtuple('Point', 'x y')


class Bounds(collections.namedtuple('Bounds', 'min_x max_x min_y max_y')):
    '''Axis-aligned rectangle, closed on all sides.'''
    __slots__ = ()

    def __repr__(self):
        return ("Bounds(min_x={}, max_x={}, min_y={}, max_y={})"
                .format(*self))

    @property
    def is_valid(self):
        """Boolean: are the limits ordered and not NaN?"""
        # NaN fails both comparisons.
        return self.min_x <= self.max_x and self.min_y <= self.max_y

    def intersects(self, other):
        """
        Returns True if `self` and the rectangle `other` overlap on both axes.

        Touching edges count as overlapping.
        """
        return (self.min_x <= other.max_x and other.min_x <= self.max_x
                and self.min_y <= other.max_y and other.min_y <= self.max_y)

    def contains(self, other):
        """
        Returns True if `other` lies within `self` or on its boundary.

        Args:
            other: a :class:`Bounds`, or a point given as an `(x, y)` pair.
        """
        if isinstance(other, Bounds):
            return (self.min_x <= other.min_x and other.max_x <= self.max_x
                    and self.min_y <= other.min_y
                    and other.max_y <= self.max_y)
        x, y = other
        return (self.min_x <= x <= self.max_x
                and self.min_y <= y <= self.max_y)

    def with_max(self, axis, value):
        """Copy of `self` with the upper limit on `axis` set to `value`."""
        if axis == X_AXIS:
            return self._replace(max_x=value)
        return self._replace(max_y=value)

    def with_min(self, axis, value):
        """Copy of `self` with the lower limit on `axis` set to `value`."""
        if axis == X_AXIS:
            return self._replace(min_x=value)
        return self._replace(min_y=value)


class Item(abc.ABC):
    """
    Abstract interface for indexable objects.

    Subclassing is optional: the tree accepts any object with a `point`
    method returning an `(x, y)` pair of finite numbers.
    """
    __slots__ = ()

    @abc.abstractmethod
    def point(self):
        """Returns the :class:`Point` locating `self`."""
        pass


class PointItem(Item):
    '''An item located at `(x, y)`, optionally carrying a payload.'''
    __slots__ = ('x', 'y', 'data')

    def __init__(self, x, y, data=None):
        self.x = x
        self.y = y
        self.data = data

    def __repr__(self):
        return "PointItem(x={}, y={}, data={!r})".format(
            self.x, self.y, self.data)

    def point(self):
        return Point(self.x, self.y)


def coordinates(items):
    """
    Extracts the points of `items` into two float arrays.

    Raises:
        InvalidInput: an item has no usable point or a coordinate is not
            finite.
    """
    try:
        coords = numpy.array([tuple(item.point()) for item in items],
                             dtype=float)
    except (AttributeError, TypeError, ValueError) as exc:
        raise errors.InvalidInput(
            "Items must provide a point() method returning (x, y): {}"
            .format(exc)
        ) from exc
    if coords.size == 0:
        coords = coords.reshape(0, 2)
    elif coords.ndim != 2 or coords.shape[1] != 2:
        raise errors.InvalidInput("Item points must be (x, y) pairs.")
    if not numpy.isfinite(coords).all():
        raise errors.InvalidInput("Item coordinates must be finite.")
    return coords[:, 0], coords[:, 1]


def bounds_of(items):
    """
    Smallest rectangle containing the points of `items`.

    Each point contributes `(x, x + EPSILON, y, y + EPSILON)`, so a point
    on the maximum of the collection is contained by the result.

    Raises:
        InvalidInput: `items` is empty.
    """
    xs, ys = coordinates(items)
    return _bounds_of_coords(xs, ys)


def _bounds_of_coords(xs, ys):
    if len(xs) == 0:
        raise errors.InvalidInput("Cannot compute bounds of no items.")
    return Bounds(
        float(xs.min()), float((xs + EPSILON).max()),
        float(ys.min()), float((ys + EPSILON).max()),
    )


def as_bounds(query):
    """
    Converts `query` to a valid :class:`Bounds`.

    Args:
        query: a :class:`Bounds` or a sequence
            `(min_x, max_x, min_y, max_y)`.

    Raises:
        InvalidQuery: `query` is not four numbers or its limits are
            inverted or NaN.
    """
    if not isinstance(query, Bounds):
        try:
            query = Bounds(*(float(v) for v in query))
        except (TypeError, ValueError) as exc:
            raise errors.InvalidQuery(
                "Query must be (min_x, max_x, min_y, max_y), got {!r}"
                .format(query)
            ) from exc
    if not query.is_valid:
        raise errors.InvalidQuery("Invalid query rectangle {!r}".format(query))
    return query
