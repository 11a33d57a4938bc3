"""Tests for the node adapter."""

import random
import xml.etree.ElementTree as ET

import pytest

from scrubtree import Node, NodeKind, ScrubError, Tree, document, fragment
from scrubtree.node import htmlns, split_name, join_name


def test_split_and_join_names() -> None:
    """Test conversion between ElementTree names and namespace pairs."""
    assert split_name("div") == (None, "div")
    assert split_name("{http://www.w3.org/2000/svg}svg") == ("http://www.w3.org/2000/svg", "svg")
    assert join_name(None, "div") == "div"
    assert join_name("urn:x", "y") == "{urn:x}y"


def test_element_identity() -> None:
    """Test that node handles compare by the element they wrap."""
    frag = fragment("<b>x</b>")
    first = frag.find("b")
    second = frag.children()[0]
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_names_and_kinds() -> None:
    """Test element names, namespaces, and node kinds."""
    frag = fragment("<!--c--><p>x</p><svg><circle/></svg>")
    kinds = [child.kind() for child in frag.children()]
    assert kinds == [NodeKind.COMMENT, NodeKind.ELEMENT, NodeKind.ELEMENT]
    assert frag.kind() == NodeKind.FRAGMENT

    p = frag.find("p")
    assert p is not None
    assert p.tag_name() == "p"
    assert p.namespace() == htmlns
    assert p.qname() == (htmlns, "p")

    svg = frag.children()[2]
    assert svg.tag_name() == "svg"
    assert svg.namespace() == "http://www.w3.org/2000/svg"
    assert frag.children()[0].namespace() is None


def test_document_parts() -> None:
    """Test doctype, head, and body lookups."""
    doc = document("<!DOCTYPE html><html><head><title>t</title></head><body><p>x</p></body></html>")
    assert doc.kind() == NodeKind.DOCUMENT
    doctype = doc.doctype()
    assert doctype is not None
    assert doctype.kind() == NodeKind.DOCTYPE
    head = doc.head()
    body = doc.body()
    assert head is not None and head.tag_name() == "head"
    assert body is not None and body.tag_name() == "body"
    assert doc.text() == "x"
    assert doc.to_html() == "<!DOCTYPE html><html><head><title>t</title></head><body><p>x</p></body></html>"


def test_document_without_doctype_gets_one() -> None:
    """Test that serialized documents always start with a doctype."""
    doc = document("<p>x</p>")
    assert doc.doctype() is None
    assert doc.to_html() == "<!DOCTYPE html><html><head></head><body><p>x</p></body></html>"


def test_navigation() -> None:
    """Test parent and sibling lookups."""
    frag = fragment("<p>a</p><b>b</b><i>c</i>")
    p, b, i = frag.children()
    assert p.parent() == frag
    assert frag.parent() is None
    assert b.previous_sibling() == p
    assert b.next_sibling() == i
    assert p.previous_sibling() is None
    assert i.next_sibling() is None


def test_attributes() -> None:
    """Test reading and changing attributes."""
    frag = fragment('<a href="x" title="t">l</a>')
    a = frag.find("a")
    assert a is not None
    assert a.attributes() == {"href": "x", "title": "t"}
    assert a.get_attribute("href") == "x"
    assert a.get_attribute("rel") is None
    assert a.has_attribute("title")
    a.set_attribute("rel", "nofollow")
    a.remove_attribute("title")
    a.remove_attribute("missing")
    assert frag.to_html() == '<a href="x" rel="nofollow">l</a>'


def test_attributes_is_a_copy() -> None:
    """Test that mutating the returned attributes does not touch the tree."""
    frag = fragment('<a href="x">l</a>')
    a = frag.find("a")
    assert a is not None
    a.attributes()["href"] = "y"
    assert a.get_attribute("href") == "x"


def test_remove_keeps_surrounding_text() -> None:
    """Test that the text after a removed node is kept."""
    frag = fragment("a<b>b</b>c<i>d</i>e")
    b = frag.find("b")
    assert b is not None
    b.remove()
    assert frag.to_html() == "ac<i>d</i>e"
    assert b.parent() is None
    assert not b.is_attached()

    i = frag.find("i")
    assert i is not None
    i.remove()
    assert frag.to_html() == "ace"


def test_remove_after_sibling_keeps_text() -> None:
    """Test that the tail of a removed node moves onto the previous sibling."""
    frag = fragment("<i>x</i>y<b>z</b>w")
    b = frag.find("b")
    assert b is not None
    b.remove()
    assert frag.to_html() == "<i>x</i>yw"


def test_replace_with_children() -> None:
    """Test splicing children and text into the parent."""
    frag = fragment("<p>x<span>y<b>z</b>w</span>v</p>")
    span = frag.find("p/span")
    assert span is not None
    span.replace_with_children()
    assert frag.to_html() == "<p>xy<b>z</b>wv</p>"
    b = frag.find("p/b")
    assert b is not None
    p = frag.find("p")
    assert b.parent() == p


def test_replace_with_children_without_children() -> None:
    """Test that an element holding only text is replaced by that text."""
    frag = fragment("<p>x<span>y</span>z</p>")
    span = frag.find("p/span")
    assert span is not None
    span.replace_with_children()
    assert frag.to_html() == "<p>xyz</p>"


def test_replace_with_text_is_escaped() -> None:
    """Test that replacement text is serialized as character data."""
    frag = fragment("<p>x<b>z</b>y</p>")
    b = frag.find("p/b")
    assert b is not None
    b.replace_with_text("<b>")
    assert frag.to_html() == "<p>x&lt;b&gt;y</p>"


def test_before() -> None:
    """Test inserting text before a node."""
    frag = fragment("<p>x<i>i</i><b>z</b></p>")
    b = frag.find("p/b")
    assert b is not None
    b.before("<&>")
    assert frag.to_html() == "<p>x<i>i</i>&lt;&amp;&gt;<b>z</b></p>"


def test_detached_mutations_are_ignored() -> None:
    """Test that mutating a detached node does nothing."""
    frag = fragment("<p><b>x</b>y</p>")
    b = frag.find("p/b")
    assert b is not None
    b.remove()
    out = frag.to_html()
    assert out == "<p>y</p>"

    b.remove()
    b.replace_with_children()
    b.replace_with_text("t")
    b.before("t")
    b.set_attribute("id", "x")
    b.remove_attribute("id")
    assert b.previous_sibling() is None
    assert b.next_sibling() is None
    assert frag.to_html() == out
    assert b.get_attribute("id") is None


def test_root_mutations_are_ignored() -> None:
    """Test that the root of a tree can not be detached."""
    frag = fragment("<p>x</p>")
    frag.remove()
    frag.replace_with_children()
    frag.replace_with_text("t")
    assert frag.is_attached()
    assert frag.to_html() == "<p>x</p>"


def test_text_and_html() -> None:
    """Test text extraction and serialization of parts of a tree."""
    frag = fragment("<p>a<b>b</b>c</p><!--x-->d")
    p = frag.find("p")
    assert p is not None
    assert p.text() == "abc"
    assert p.to_html() == "<p>a<b>b</b>c</p>"
    assert str(p) == p.to_html()
    assert p.inner_html() == "a<b>b</b>c"
    assert frag.text() == "abcd"
    assert frag.children().text() == "abc"
    assert frag.children().to_html() == "<p>a<b>b</b>c</p><!--x-->"


def test_inner_html_keeps_tree_intact() -> None:
    """Test that rendering the contents does not move the children."""
    frag = fragment("<div><p>x</p></div>")
    div = frag.find("div")
    assert div is not None
    div.inner_html()
    p = frag.find("div/p")
    assert p is not None
    assert p.parent() == div


def test_queries() -> None:
    """Test relative and absolute path queries."""
    doc = document("<div><p>1</p><p>2</p></div><p>3</p>")
    body = doc.body()
    assert body is not None
    div = body.find("div")
    assert div is not None
    assert [n.text() for n in div.find_all("p")] == ["1", "2"]
    assert [n.text() for n in body.find_all(".//p")] == ["1", "2", "3"]
    assert div.find("/html/body") == body
    assert div.find("table") is None
    assert div.find_all("table").first() is None
    assert div.find_all("p").first() == div.find("p")


def test_css_queries() -> None:
    """Test CSS selector queries over descendants."""
    doc = document('<!DOCTYPE html><div class="a"><p>1</p><!-- c --><p id="two">2</p></div><p>3</p>')
    body = doc.body()
    assert body is not None
    div = body.at_css("div.a")
    assert div is not None and div.tag_name() == "div"
    assert [n.text() for n in div.css("p")] == ["1", "2"]
    assert [n.text() for n in doc.css("p")] == ["1", "2", "3"]
    assert [n.text() for n in doc.css("#two, div + p")] == ["2", "3"]
    # ancestors take part in matching, but only descendants are returned
    assert [n.text() for n in div.css("body p")] == ["1", "2"]
    assert div.css("div") == []
    assert all(n.is_element() for n in doc.css("*"))
    assert body.at_css("table") is None


def test_css_on_node_sets() -> None:
    """Test that node set queries keep document order and drop duplicates."""
    frag = fragment("<div><div><b>1</b></div></div><div><b>2</b></div>")
    assert [n.text() for n in frag.css("div").css("b")] == ["1", "2"]


def test_css_scrubs_selected_nodes() -> None:
    """Test scrubbing only the nodes picked by a selector."""
    frag = fragment('<div class="scrub"><invalid>x</invalid></div><div><invalid>y</invalid></div>')
    div = frag.at_css("div.scrub")
    assert div is not None
    div.scrub("prune")
    assert frag.to_html() == '<div class="scrub"></div><div><invalid>y</invalid></div>'
    frag.css("div").scrub("strip")
    assert frag.to_html() == '<div class="scrub"></div><div>y</div>'


def test_invalid_css_selector() -> None:
    """Test that malformed selectors raise a scrubbing error."""
    frag = fragment("<b>x</b>")
    with pytest.raises(ScrubError) as excinfo:
        frag.css("b[")
    assert "invalid CSS selector `b[`" in str(excinfo.value)


def test_tree_picks_up_direct_changes() -> None:
    """Test that elements added behind the index's back still get their parents."""
    root = ET.Element("DOCUMENT_FRAGMENT")
    child = ET.SubElement(root, "div")
    tree = Tree(root)
    node = Node(child, tree)
    grandchild = ET.SubElement(child, "span")
    assert Node(grandchild, tree).parent() == node
    assert tree.parent_of(ET.Element("b")) is None


def test_sibling_lookups_in_any_order() -> None:
    """Test that sibling lookups stay correct however the children are visited."""
    frag = fragment("".join(f"<i>{i}</i>" for i in range(50)))
    children = frag.children()
    order = list(range(50))
    random.Random(7).shuffle(order)
    for i in order:
        node = children[i]
        prev = node.previous_sibling()
        nxt = node.next_sibling()
        assert prev == (children[i - 1] if i > 0 else None)
        assert nxt == (children[i + 1] if i < 49 else None)


def test_removing_many_siblings() -> None:
    """Test removing thousands of siblings, in order and in reverse."""
    data = "<p>keep</p>" + "<invalid>x</invalid>" * 5000
    assert fragment(data).scrub("prune").to_html() == "<p>keep</p>"
    frag = fragment(data)
    for node in reversed(frag.children()[1:]):
        node.remove()
    assert frag.to_html() == "<p>keep</p>"
    assert frag.tree.position(frag.element, ET.Element("b")) is None
