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
Exceptions raised on bad arguments.
'''


class KdIndexError(ValueError):
    """Base class of the package's exceptions."""


class InvalidInput(KdIndexError):
    """Items or parameters a tree cannot be built from."""


class InvalidQuery(KdIndexError):
    """Malformed query rectangle."""
