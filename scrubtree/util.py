# Copyright (c) 2024 Jan Malakhovski <oxij@oxij.org>
#
# This file is a part of `scrubtree` project.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <http://www.gnu.org/licenses/>.

import io as _io
import traceback as _traceback

from kisstdlib.exceptions import *

class ScrubError(Failure):
    """Base class of all `scrubtree` errors."""

def str_Exception(exc : Exception) -> str:
    fobj = _io.StringIO()
    _traceback.print_exception(type(exc), exc, exc.__traceback__, 100, fobj)
    return fobj.getvalue()

def merge_tokens(value : str | None, token : str) -> str:
    """Add `token` to a space-separated list of tokens, unless it is already there."""
    if value is None:
        return token
    tokens = value.split()
    if token in tokens:
        return value
    tokens.append(token)
    return " ".join(tokens)
