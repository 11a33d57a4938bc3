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

"""Parsing of HTML documents and fragments, and the scrubbing entry points.
"""

import typing as _t

import html5lib as _h5

from .node import *
from .scrubbers import *

html5_doctype = "<!DOCTYPE html>"

_html5treebuilder = _h5.treebuilders.getTreeBuilder("etree", fullTree=True)
_html5parser = _h5.html5parser.HTMLParser(_html5treebuilder, namespaceHTMLElements=False)

def _parser_kwargs(data : str | bytes, encoding : str | None) -> dict[str, _t.Any]:
    if isinstance(data, str):
        # html5lib only takes encoding hints with binary inputs
        return {}
    return {"likely_encoding": encoding}

class Document(Node):
    """A whole HTML document."""

    def __init__(self, root : ELEMENT) -> None:
        super().__init__(root)

    def doctype(self) -> Node | None:
        for child in self.children():
            if child.kind() == NodeKind.DOCTYPE:
                return child
        return None

    def html(self) -> Node | None:
        return self.find("html")

    def head(self) -> Node | None:
        return self.find("html/head")

    def body(self) -> Node | None:
        return self.find("html/body")

    def to_html(self) -> str:
        data = render(self.element)
        if self.doctype() is None:
            return html5_doctype + data
        return data

    def serialize(self) -> str:
        return self.to_html()

    def text(self) -> str:
        body = self.body()
        if body is None:
            return super().text()
        return body.text()

class Fragment(Node):
    """A list of HTML nodes without a document around them."""

    def __init__(self, root : ELEMENT) -> None:
        super().__init__(root)

    def to_html(self) -> str:
        return render(self.element)

    def serialize(self) -> str:
        return self.to_html()

def document(data : str | bytes, encoding : str | None = None) -> Document:
    """Parse a whole HTML document.

       Malformed markup is handled the way browsers do, so this never fails.
    """
    return Document(_html5parser.parse(data, **_parser_kwargs(data, encoding)))

def fragment(data : str | bytes, encoding : str | None = None) -> Fragment:
    """Parse an HTML fragment, as if it were the contents of a `<div>`."""
    return Fragment(_html5parser.parseFragment(data, **_parser_kwargs(data, encoding)))

def scrub_document(data : str | bytes, scrubber : str | Scrubber, encoding : str | None = None) -> Document:
    resolved = resolve_scrubber(scrubber)
    doc = document(data, encoding)
    doc.scrub(resolved)
    return doc

def scrub_fragment(data : str | bytes, scrubber : str | Scrubber, encoding : str | None = None) -> Fragment:
    resolved = resolve_scrubber(scrubber)
    frag = fragment(data, encoding)
    frag.scrub(resolved)
    return frag
