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

"""Scrubber interface and the tree traversal engine.
"""

import enum as _enum
import logging as _logging
import typing as _t

from .node import *

class Direction(_enum.Enum):
    TOP_DOWN = "top_down"
    BOTTOM_UP = "bottom_up"

class Disposition(_enum.Enum):
    # descend into the children
    CONTINUE = 0
    # keep the node, but skip its subtree
    STOP = 1
    # the node is gone, skip its subtree
    PRUNE_NOW = 2

class Scrubber:
    """A traversal policy.

       `traverse` calls `scrub` on every node for which `applies` returns
       `True`, everything else implicitly continues.
    """

    name : str = "custom"
    direction : Direction = Direction.TOP_DOWN

    def applies(self, node : Node) -> bool:
        return node.is_element()

    def scrub(self, node : Node) -> Disposition:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

ScrubFunc = _t.Callable[[Node], Disposition | None]

class CallbackScrubber(Scrubber):
    """Turn a plain function into a `Scrubber`.

       The function may return `None`, which means `Disposition.CONTINUE`.
    """

    def __init__(self,
                 func : ScrubFunc,
                 direction : Direction = Direction.TOP_DOWN,
                 applies : _t.Callable[[Node], bool] | None = None,
                 name : str = "custom") -> None:
        self.func = func
        self.direction = direction
        self._applies = applies
        self.name = name

    def applies(self, node : Node) -> bool:
        if self._applies is None:
            return node.is_element()
        return self._applies(node)

    def scrub(self, node : Node) -> Disposition:
        res = self.func(node)
        if res is None:
            return Disposition.CONTINUE
        return res

def decide(scrubber : Scrubber, node : Node) -> Disposition:
    if not scrubber.applies(node):
        return Disposition.CONTINUE
    disposition = scrubber.scrub(node)
    if disposition is not Disposition.CONTINUE:
        _logging.debug("%s: %r -> %s", scrubber.name, node, disposition.name)
    return disposition

def is_live(node : Node, expected : Node, root : Node) -> bool:
    """Check that a node snapshotted as a child of `expected` should still be visited."""
    parent = node.parent()
    if parent is None:
        return False
    elif parent == expected:
        # a subtree detached together with its root
        return expected == root or expected.is_attached()
    # moved elsewhere, e.g. promoted by `replace_with_children`
    return True

def traverse_top_down(root : Node, scrubber : Scrubber) -> None:
    stack : list[tuple[Node, Node | None]] = [(root, None)]
    while len(stack) > 0:
        node, expected = stack.pop()
        if expected is not None and not is_live(node, expected, root):
            _logging.debug("%s: skipping detached %r", scrubber.name, node)
            continue
        children = node.children()
        if decide(scrubber, node) is not Disposition.CONTINUE:
            continue
        for child in reversed(children):
            stack.append((child, node))

def traverse_bottom_up(root : Node, scrubber : Scrubber) -> None:
    stack : list[tuple[Node, Node | None, bool]] = [(root, None, False)]
    while len(stack) > 0:
        node, expected, visited = stack.pop()
        if expected is not None and not is_live(node, expected, root):
            _logging.debug("%s: skipping detached %r", scrubber.name, node)
            continue
        if visited:
            decide(scrubber, node)
            continue
        stack.append((node, expected, True))
        for child in reversed(node.children()):
            stack.append((child, node, False))

def traverse(root : Node, scrubber : Scrubber) -> None:
    """Apply `scrubber` to every node of the subtree rooted at `root`.

       Children are snapshotted before their parent's decision is applied and
       each one is checked to still be in the tree before it gets visited, so
       scrubbers are free to mutate the tree around the current node.
       Exceptions raised by scrubbers propagate, leaving the tree partially
       scrubbed.
    """
    _logging.debug("%s: traversing %s %r", scrubber.name, scrubber.direction.value, root)
    if scrubber.direction == Direction.TOP_DOWN:
        traverse_top_down(root, scrubber)
    else:
        traverse_bottom_up(root, scrubber)
    _logging.debug("%s: done with %r", scrubber.name, root)
