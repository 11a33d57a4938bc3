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

"""Node adapter over html5lib-produced ElementTree trees.

  ElementTree keeps character data in the `text` and `tail` slots of
  elements and has no parent pointers.  `Tree` keeps a weak child -> parent
  index for a whole tree and `Node` wraps a single element of it, keeping
  the surrounding text in place on every mutation.
"""

import enum as _enum
import logging as _logging
import re as _re
import typing as _t
import weakref as _wr
import xml.etree.ElementTree as _ET

import cssselect2 as _css2
import html5lib as _h5

from gettext import gettext

from .util import *

htmlns = _h5.constants.namespaces["html"]
svgns = _h5.constants.namespaces["svg"]
mathmlns = _h5.constants.namespaces["mathml"]
xlinkns = _h5.constants.namespaces["xlink"]

# (namespace, local name) pair; attributes without a namespace have `None`
NS = tuple[str | None, str]

ELEMENT = _ET.Element

document_tag = "DOCUMENT_ROOT"
fragment_tag = "DOCUMENT_FRAGMENT"
doctype_tag = "<!DOCTYPE>"
comment_tag = _ET.Comment

name_re = _re.compile(r"{([^}]*)}(.*)")

def split_name(name : str) -> NS:
    """Split ElementTree's `{namespace}name` into a pair."""
    m = name_re.fullmatch(name)
    if m is None:
        return None, name
    return m.group(1), m.group(2)

def join_name(ns : str | None, name : str) -> str:
    if ns is None:
        return name
    return f"{{{ns}}}{name}"

class NodeKind(_enum.Enum):
    DOCUMENT = 0
    FRAGMENT = 1
    ELEMENT = 2
    COMMENT = 3
    DOCTYPE = 4

def kind_of(element : ELEMENT) -> NodeKind:
    tag = element.tag
    if tag is comment_tag:
        return NodeKind.COMMENT
    elif tag == document_tag:
        return NodeKind.DOCUMENT
    elif tag == fragment_tag:
        return NodeKind.FRAGMENT
    elif tag == doctype_tag:
        return NodeKind.DOCTYPE
    return NodeKind.ELEMENT

def add_text(parent : ELEMENT, index : int, text : str | None) -> None:
    """Append `text` at the position right before `parent[index]`."""
    if not text:
        return
    if index == 0:
        parent.text = (parent.text or "") + text
    else:
        prev = parent[index - 1]
        prev.tail = (prev.tail or "") + text

def iter_text(element : ELEMENT) -> _t.Iterator[str]:
    if kind_of(element) in (NodeKind.COMMENT, NodeKind.DOCTYPE):
        return
    if element.text:
        yield element.text
    for child in element:
        yield from iter_text(child)
        if child.tail:
            yield child.tail

class Tree:
    """Parent index of a single ElementTree.

       Maps children to weak references of their parents, so that it never
       keeps any element alive.  Mutations done via `Node` keep it current;
       after mutating the elements directly call `reindex`.
    """

    def __init__(self, root : ELEMENT) -> None:
        self.root = root
        self._parents : _wr.WeakKeyDictionary[ELEMENT, _wr.ref[ELEMENT]] = _wr.WeakKeyDictionary()
        self._detached : _wr.WeakSet[ELEMENT] = _wr.WeakSet()
        # parent -> index of the last child found in it
        self._cursor : _wr.WeakKeyDictionary[ELEMENT, int] = _wr.WeakKeyDictionary()
        self.reindex()

    def reindex(self) -> None:
        parents = self._parents
        parents.clear()
        self._detached.clear()
        self._cursor.clear()
        for element in self.root.iter():
            ref = _wr.ref(element)
            for child in element:
                parents[child] = ref

    def _lookup(self, element : ELEMENT) -> ELEMENT | None:
        ref = self._parents.get(element, None)
        if ref is None:
            return None
        return ref()

    def parent_of(self, element : ELEMENT) -> ELEMENT | None:
        if element is self.root or element in self._detached:
            return None
        parent = self._lookup(element)
        if parent is None:
            # not indexed yet, this happens to elements added behind our back
            self.reindex()
            parent = self._lookup(element)
            if parent is None:
                self._detached.add(element)
        return parent

    def adopt(self, element : ELEMENT, parent : ELEMENT) -> None:
        self._parents[element] = _wr.ref(parent)
        self._detached.discard(element)

    def forget(self, element : ELEMENT) -> None:
        self._parents.pop(element, None)
        self._detached.add(element)

    def position(self, parent : ELEMENT, element : ELEMENT) -> int | None:
        """Index of `element` among the children of `parent`, or `None`.

           The search starts where the previous one in the same parent ended
           and spreads out in both directions, so that walking over or
           removing consecutive siblings takes constant time per step.
        """
        n = len(parent)
        if n == 0:
            return None
        start = min(self._cursor.get(parent, 0), n - 1)
        for delta in range(n):
            for i in (start + delta, start - delta - 1):
                if 0 <= i < n and parent[i] is element:
                    self._cursor[parent] = i
                    return i
        return None

_html5walker = _h5.treewalkers.getTreeWalker("etree")
_html5serializer = _h5.serializer.HTMLSerializer(quote_attr_values = "always",
                                                 strip_whitespace = False,
                                                 omit_optional_tags = False)

def render(element : ELEMENT) -> str:
    """Serialize an element, its attributes, and its children, but not its `tail`."""
    return _html5serializer.render(_html5walker(element)) # type: ignore

def render_inner(element : ELEMENT) -> str:
    """Serialize the contents of an element."""
    # ElementTree elements do not know their parents, so the children can be
    # temporarily shared with a synthetic fragment
    wrapper = ELEMENT(fragment_tag)
    wrapper.text = element.text
    wrapper.extend(list(element))
    return render(wrapper)

class Node:
    """A handle to a single node of a `Tree`."""

    __slots__ = ["element", "tree"]

    def __init__(self, element : ELEMENT, tree : Tree | None = None) -> None:
        self.element = element
        self.tree = tree if tree is not None else Tree(element)

    def __eq__(self, other : _t.Any) -> bool:
        return isinstance(other, Node) and self.element is other.element

    def __hash__(self) -> int:
        return id(self.element)

    def __repr__(self) -> str:
        kind = self.kind()
        if kind == NodeKind.ELEMENT:
            return f"<{type(self).__name__} {self.element.tag}>"
        return f"<{type(self).__name__} {kind.name}>"

    def _wrap(self, element : ELEMENT) -> "Node":
        return Node(element, self.tree)

    def kind(self) -> NodeKind:
        return kind_of(self.element)

    def is_element(self) -> bool:
        return kind_of(self.element) == NodeKind.ELEMENT

    def qname(self) -> NS | None:
        """`(namespace, name)` of this element, HTML elements get the XHTML namespace.

           Comments, doctypes, and tree roots have no name, `None` is returned for them.
        """
        if not self.is_element():
            return None
        ns, name = split_name(self.element.tag)
        if ns is None:
            ns = htmlns
        return ns, name

    def tag_name(self) -> str | None:
        qname = self.qname()
        if qname is None:
            return None
        return qname[1]

    def namespace(self) -> str | None:
        qname = self.qname()
        if qname is None:
            return None
        return qname[0]

    # navigation

    def parent(self) -> _t.Optional["Node"]:
        parent = self.tree.parent_of(self.element)
        if parent is None:
            return None
        return self._wrap(parent)

    def is_root(self) -> bool:
        return self.element is self.tree.root

    def is_attached(self) -> bool:
        return self.is_root() or self.tree.parent_of(self.element) is not None

    def children(self) -> "NodeSet":
        return NodeSet([self._wrap(child) for child in self.element])

    def _position(self) -> tuple[ELEMENT, int] | None:
        parent = self.tree.parent_of(self.element)
        if parent is None:
            return None
        element = self.element
        i = self.tree.position(parent, element)
        if i is not None:
            return parent, i
        # the index is stale
        self.tree.forget(element)
        return None

    def previous_sibling(self) -> _t.Optional["Node"]:
        pos = self._position()
        if pos is None:
            return None
        parent, i = pos
        if i == 0:
            return None
        return self._wrap(parent[i - 1])

    def next_sibling(self) -> _t.Optional["Node"]:
        pos = self._position()
        if pos is None:
            return None
        parent, i = pos
        if i + 1 >= len(parent):
            return None
        return self._wrap(parent[i + 1])

    # attributes

    def attributes(self) -> dict[str, str]:
        return dict(self.element.attrib)

    def get_attribute(self, name : str) -> str | None:
        return self.element.get(name, None)

    def has_attribute(self, name : str) -> bool:
        return name in self.element.attrib

    def set_attribute(self, name : str, value : str) -> None:
        if not self.is_attached():
            _logging.debug("ignoring `set_attribute` on detached %r", self)
            return
        self.element.set(name, value)

    def remove_attribute(self, name : str) -> None:
        if not self.is_attached():
            _logging.debug("ignoring `remove_attribute` on detached %r", self)
            return
        self.element.attrib.pop(name, None)

    # mutation

    def remove(self) -> None:
        """Detach this node and its subtree, keeping the text that follows it."""
        pos = self._position()
        if pos is None:
            _logging.debug("ignoring `remove` on detached %r", self)
            return
        parent, i = pos
        element = self.element
        add_text(parent, i, element.tail)
        element.tail = None
        del parent[i]
        self.tree.forget(element)

    def replace_with_children(self) -> None:
        """Splice the contents of this node into its parent at its position."""
        pos = self._position()
        if pos is None:
            _logging.debug("ignoring `replace_with_children` on detached %r", self)
            return
        parent, i = pos
        element = self.element
        children = list(element)
        tail = element.tail
        add_text(parent, i, element.text)
        element.text = None
        element.tail = None
        del element[:]
        parent[i:i + 1] = children
        if len(children) > 0:
            last = children[-1]
            if tail:
                last.tail = (last.tail or "") + tail
            for child in children:
                self.tree.adopt(child, parent)
        else:
            add_text(parent, i, tail)
        self.tree.forget(element)

    def replace_with_text(self, content : str) -> None:
        """Replace this node with character data.

           The serializer escapes `content`, so markup in it shows up as text.
        """
        pos = self._position()
        if pos is None:
            _logging.debug("ignoring `replace_with_text` on detached %r", self)
            return
        parent, i = pos
        element = self.element
        add_text(parent, i, content + (element.tail or ""))
        element.tail = None
        del parent[i]
        self.tree.forget(element)

    def before(self, content : str) -> None:
        """Insert character data right before this node."""
        pos = self._position()
        if pos is None:
            _logging.debug("ignoring `before` on detached %r", self)
            return
        parent, i = pos
        add_text(parent, i, content)

    # output

    def text(self) -> str:
        return "".join(iter_text(self.element))

    def to_html(self) -> str:
        return render(self.element)

    def inner_html(self) -> str:
        return render_inner(self.element)

    def __str__(self) -> str:
        return self.to_html()

    # queries

    def _path(self, path : str) -> tuple[ELEMENT, str]:
        if path.startswith("/"):
            # absolute paths are relative to the root of the tree
            return self.tree.root, "." + path
        return self.element, path

    def find(self, path : str) -> _t.Optional["Node"]:
        """Find the first node matching an ElementTree path expression."""
        element, path = self._path(path)
        res = element.find(path)
        if res is None:
            return None
        return self._wrap(res)

    def find_all(self, path : str) -> "NodeSet":
        element, path = self._path(path)
        return NodeSet([self._wrap(e) for e in element.iterfind(path)])

    def _select(self, selector : str) -> list[ELEMENT]:
        element = self.element
        root = self.tree.root if self.is_attached() else element
        # matching starts at the root so that combinators can see the ancestors
        try:
            matches = list(_css2.ElementWrapper.from_html_root(root).query_all(selector))
        except _css2.SelectorError as exc:
            raise ScrubError(gettext("invalid CSS selector `%s`: %s"), selector, exc)
        inside = set(map(id, element.iter()))
        inside.discard(id(element))
        res = []
        for match in matches:
            e = match.etree_element
            if id(e) in inside and kind_of(e) == NodeKind.ELEMENT:
                res.append(e)
        return res

    def css(self, selector : str) -> "NodeSet":
        """Find all descendant elements matching a CSS selector, in document order."""
        return NodeSet([self._wrap(e) for e in self._select(selector)])

    def at_css(self, selector : str) -> _t.Optional["Node"]:
        res = self._select(selector)
        if len(res) == 0:
            return None
        return self._wrap(res[0])

    # scrubbing

    def scrub(self, scrubber : _t.Any) -> "Node":
        """Scrub the subtree rooted at this node in place.

           `scrubber` is either a registered scrubber name or a `Scrubber`.
           Returns `self`.
        """
        from .scrubbers import resolve_scrubber
        from .traverse import traverse
        traverse(self, resolve_scrubber(scrubber))
        return self

class NodeSet(list[Node]):
    """An ordered collection of nodes."""

    def scrub(self, scrubber : _t.Any) -> "NodeSet":
        """Scrub each member's subtree in turn.  Returns `self`."""
        from .scrubbers import resolve_scrubber
        from .traverse import traverse
        resolved = resolve_scrubber(scrubber)
        for node in self:
            traverse(node, resolved)
        return self

    def css(self, selector : str) -> "NodeSet":
        """Like `Node.css`, but for all members, without duplicates."""
        res = NodeSet()
        seen : set[Node] = set()
        for node in self:
            for match in node.css(selector):
                if match not in seen:
                    seen.add(match)
                    res.append(match)
        return res

    def text(self) -> str:
        return "".join(node.text() for node in self)

    def to_html(self) -> str:
        return "".join(node.to_html() for node in self)

    def first(self) -> Node | None:
        if len(self) == 0:
            return None
        return self[0]
