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

"""Allowlists of elements, attributes, URL protocols, and CSS properties,
   and scrubbing of attribute values.

   The tables themselves come from html5lib's sanitizer.
"""

import dataclasses as _dc
import re as _re
import typing as _t
import urllib.parse as _up
import warnings as _warnings

from xml.sax.saxutils import unescape as _unescape

import tinycss2 as _tcss

with _warnings.catch_warnings():
    # the module warns about the deprecation of its token `Filter`, we only need the tables
    _warnings.simplefilter("ignore", DeprecationWarning)
    import html5lib.filters.sanitizer as _h5san

from .node import *

# elements `html5lib` does not list, but which are harmless and which every document has
structure_elements : frozenset[NS]
structure_elements = frozenset([(htmlns, "html"), (htmlns, "head"), (htmlns, "body")])

allowed_elements : frozenset[NS]
allowed_elements = _h5san.allowed_elements | structure_elements

allowed_html_elements : frozenset[NS]
allowed_html_elements = frozenset(e for e in allowed_elements if e[0] == htmlns)

allowed_attributes : frozenset[NS] = _h5san.allowed_attributes
attr_val_is_uri : frozenset[NS] = _h5san.attr_val_is_uri
svg_attr_val_allows_ref : frozenset[NS] = _h5san.svg_attr_val_allows_ref
svg_allow_local_href : frozenset[str] = frozenset(name for _, name in _h5san.svg_allow_local_href)

allowed_css_properties : frozenset[str] = _h5san.allowed_css_properties
allowed_css_keywords : frozenset[str] = _h5san.allowed_css_keywords
allowed_svg_properties : frozenset[str] = _h5san.allowed_svg_properties
allowed_protocols : frozenset[str] = _h5san.allowed_protocols
allowed_content_types : frozenset[str] = _h5san.allowed_content_types
data_content_type : _re.Pattern[str] = _h5san.data_content_type

# properties with keyword-only values which are allowed when all of their keywords are
css_shorthands = frozenset(["background", "border", "margin", "padding"])
css_units = frozenset(["cm", "em", "ex", "in", "mm", "pc", "pt", "px"])
css_safe_functions = frozenset(["rgb", "rgba", "hsl", "hsla"])

xlink_href = join_name(xlinkns, "href")

@_dc.dataclass(frozen=True)
class Allowlist:
    """Permitted elements and their permitted attributes."""

    elements : frozenset[NS]
    # per-element attribute allowlists, `default_attributes` is used for elements not listed here
    attributes : _t.Mapping[NS, frozenset[NS]] = _dc.field(default_factory=dict)
    default_attributes : frozenset[NS] = _dc.field(default=frozenset())
    # permit non-HTML namespaces, i.e. SVG and MathML
    foreign : bool = _dc.field(default=False)
    # also run `scrub_attribute_values` on permitted attributes
    scrub_values : bool = _dc.field(default=False)

    def allows(self, qname : NS) -> bool:
        if not self.foreign and qname[0] != htmlns:
            return False
        return qname in self.elements

    def attributes_of(self, qname : NS) -> frozenset[NS]:
        return self.attributes.get(qname, self.default_attributes)

# all known HTML elements, no attributes
WHITEWASH_ALLOWLIST = Allowlist(allowed_html_elements)

# all known HTML, SVG, and MathML elements with all known attributes, with their values checked
SANITIZE_ALLOWLIST = Allowlist(allowed_elements,
                               default_attributes = allowed_attributes,
                               foreign = True,
                               scrub_values = True)

uri_junk_re = _re.compile("[`\x00-\x20\x7f-\xa0\\s]+")
svg_url_ref_re = _re.compile(r"url\s*\(\s*[^#\s][^)]+?\)")
nonlocal_ref_re = _re.compile(r"^\s*[^#\s].*")

def is_safe_uri(value : str) -> bool:
    """Check that a URL points to an allowed protocol.

       Relative URLs are fine, `data:` URLs are only allowed for a handful of
       inert content types.
    """
    value = uri_junk_re.sub("", _unescape(value)).lower().replace("\ufffd", "")
    try:
        uri = _up.urlparse(value)
    except ValueError:
        return False
    if uri.scheme == "":
        return True
    elif uri.scheme not in allowed_protocols:
        return False
    elif uri.scheme == "data":
        m = data_content_type.match(uri.path)
        return m is not None and m.group("content_type") in allowed_content_types
    return True

def is_forbidden_css(nodes : _t.Iterable[_tcss.ast.Node]) -> bool:
    """Does this CSS value reference anything external or dynamic?"""
    for node in nodes:
        if isinstance(node, _tcss.ast.URLToken):
            return True
        elif isinstance(node, _tcss.ast.FunctionBlock):
            if node.lower_name not in css_safe_functions:
                return True
            if is_forbidden_css(node.arguments):
                return True
        elif isinstance(node, (_tcss.ast.ParenthesesBlock, _tcss.ast.SquareBracketsBlock, _tcss.ast.CurlyBracketsBlock)):
            if is_forbidden_css(node.content):
                return True
        elif isinstance(node, (_tcss.ast.AtKeywordToken, _tcss.ast.ParseError)):
            return True
    return False

def is_css_keyword_value(nodes : _t.Iterable[_tcss.ast.Node]) -> bool:
    """Is this CSS value made only of allowed keywords, colors, and lengths?"""
    for node in nodes:
        if isinstance(node, (_tcss.ast.WhitespaceToken, _tcss.ast.Comment,
                             _tcss.ast.NumberToken, _tcss.ast.PercentageToken, _tcss.ast.HashToken)):
            continue
        elif isinstance(node, _tcss.ast.IdentToken):
            if node.lower_value not in allowed_css_keywords:
                return False
        elif isinstance(node, _tcss.ast.DimensionToken):
            if node.lower_unit not in css_units:
                return False
        elif isinstance(node, _tcss.ast.LiteralToken):
            if node.value != ",":
                return False
        elif isinstance(node, _tcss.ast.FunctionBlock):
            if node.lower_name not in css_safe_functions or not is_css_keyword_value(node.arguments):
                return False
        else:
            return False
    return True

def scrub_css(style : str) -> str:
    """Scrub the value of a `style` attribute.

       Keeps only declarations of allowed properties that do not reference
       anything external and re-serializes them.
    """
    res = []
    for node in _tcss.parse_blocks_contents(style, skip_comments = True, skip_whitespace = True):
        if not isinstance(node, _tcss.ast.Declaration):
            # nested rules and parse errors
            continue
        name = node.lower_name
        if is_forbidden_css(node.value):
            continue
        value = _tcss.serialize(node.value).strip()
        if value == "":
            continue

        if name in allowed_css_properties or name in allowed_svg_properties:
            pass
        elif name.split("-")[0] in css_shorthands:
            if not is_css_keyword_value(node.value):
                continue
        else:
            continue

        if node.important:
            value += " !important"
        res.append(f"{name}: {value};")
    return " ".join(res)

def filter_attributes(node : Node, permitted : _t.Collection[NS]) -> None:
    """Remove attributes not listed in `permitted`."""
    for name in node.attributes():
        if split_name(name) not in permitted:
            node.remove_attribute(name)

def scrub_attribute_values(node : Node) -> None:
    """Neutralize attribute values that can load or run something."""
    for name, value in node.attributes().items():
        ann = split_name(name)
        if ann in attr_val_is_uri and not is_safe_uri(value):
            node.remove_attribute(name)
        elif ann in svg_attr_val_allows_ref:
            node.set_attribute(name, svg_url_ref_re.sub(" ", _unescape(value)))

    if node.namespace() == svgns and node.tag_name() in svg_allow_local_href:
        href = node.get_attribute(xlink_href)
        if href is not None and nonlocal_ref_re.search(href):
            node.remove_attribute(xlink_href)

    style = node.get_attribute("style")
    if style is not None:
        node.set_attribute("style", scrub_css(style))

def scrub_attributes(node : Node) -> None:
    filter_attributes(node, allowed_attributes)
    scrub_attribute_values(node)
