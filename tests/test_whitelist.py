"""Tests for allowlists and attribute value scrubbing."""

import pytest

from scrubtree import SANITIZE_ALLOWLIST, WHITEWASH_ALLOWLIST, fragment, scrub_attributes, scrub_css
from scrubtree.node import htmlns, svgns
from scrubtree.whitelist import allowed_elements, is_safe_uri


def test_structure_elements_are_allowed() -> None:
    """Test that every document keeps its html, head, and body."""
    for name in ["html", "head", "body"]:
        assert (htmlns, name) in allowed_elements
        assert WHITEWASH_ALLOWLIST.allows((htmlns, name))


def test_whitewash_allowlist_is_html_only() -> None:
    """Test that the default whitewash allowlist has no attributes and no foreign elements."""
    assert WHITEWASH_ALLOWLIST.allows((htmlns, "div"))
    assert not WHITEWASH_ALLOWLIST.allows((htmlns, "script"))
    assert not WHITEWASH_ALLOWLIST.allows((svgns, "svg"))
    assert WHITEWASH_ALLOWLIST.attributes_of((htmlns, "div")) == frozenset()


def test_sanitize_allowlist_allows_svg() -> None:
    """Test that the sanitizing allowlist permits known foreign elements and attributes."""
    assert SANITIZE_ALLOWLIST.allows((svgns, "svg"))
    assert (None, "href") in SANITIZE_ALLOWLIST.attributes_of((htmlns, "a"))
    assert (None, "onclick") not in SANITIZE_ALLOWLIST.attributes_of((htmlns, "a"))


@pytest.mark.parametrize(
    "uri",
    [
        "http://example.com/",
        "https://example.com/a?b=c",
        "mailto:someone@example.com",
        "/relative/path",
        "#anchor",
        "data:image/png;base64,iVBORw0KGgo=",
    ],
)
def test_safe_uris(uri: str) -> None:
    """Test URLs that are allowed through."""
    assert is_safe_uri(uri)


@pytest.mark.parametrize(
    "uri",
    [
        "javascript:alert(1)",
        "JavaScript:alert(1)",
        "java\tscript:alert(1)",
        " javascript:alert(1)",
        "vbscript:msgbox(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
    ],
)
def test_unsafe_uris(uri: str) -> None:
    """Test URLs that are dropped."""
    assert not is_safe_uri(uri)


@pytest.mark.parametrize(
    "style,expected",
    [
        ("color: red", "color: red;"),
        ("color: red !important; position: fixed; margin: 0 auto", "color: red !important; margin: 0 auto;"),
        ("background-image: url(http://evil/x.png); width: 10px", "width: 10px;"),
        ("width: expression(alert(1))", ""),
        ("color: rgb(1, 2, 3)", "color: rgb(1, 2, 3);"),
        ("border: 1px solid url(x)", ""),
        ("margin: 0 javascript", ""),
        ("@import 'x'; color: blue", "color: blue;"),
        ("garbage", ""),
        ("", ""),
    ],
)
def test_scrub_css(style: str, expected: str) -> None:
    """Test style attribute scrubbing."""
    assert scrub_css(style) == expected


def test_scrub_attributes() -> None:
    """Test attribute scrubbing of a single element."""
    frag = fragment(
        '<a href="javascript:alert(1)" onclick="x()" title="t" style="color: red; behavior: url(x.htc)">l</a>'
    )
    a = frag.find("a")
    assert a is not None
    scrub_attributes(a)
    assert a.attributes() == {"title": "t", "style": "color: red;"}


def test_scrub_svg_references() -> None:
    """Test that SVG elements only keep local references."""
    frag = fragment(
        '<svg><use xlink:href="http://evil/#x"></use><use xlink:href="#local"></use>'
        '<rect fill="url(http://evil/#p)"></rect></svg>'
    )
    uses = frag.find_all(f"{{{svgns}}}svg/{{{svgns}}}use")
    assert len(uses) == 2
    for node in frag.find_all(f".//{{{svgns}}}*"):
        scrub_attributes(node)
    assert uses[0].attributes() == {}
    assert list(uses[1].attributes().values()) == ["#local"]
    rect = frag.find(f".//{{{svgns}}}rect")
    assert rect is not None
    assert "evil" not in (rect.get_attribute("fill") or "")
