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

"""Built-in scrubbers and the registry of named scrubbers.
"""

import typing as _t

from gettext import gettext

from .util import *
from .node import *
from .traverse import *
from .whitelist import *

class ScrubberNotFound(ScrubError):
    def __init__(self, name : _t.Any) -> None:
        super().__init__(gettext("unknown scrubber `%s`, known scrubbers: %s"), name, ", ".join(scrubber_names()))
        self.name = name

class ScrubberConflict(ScrubError):
    pass

class AllowedElementsScrubber(Scrubber):
    """Common part of `escape`, `prune`, and `strip`.

       Allowed elements get their attributes scrubbed, the rest is handled
       by `disallowed`.
    """

    def __init__(self, elements : _t.Collection[NS] = allowed_elements) -> None:
        self.elements = elements

    def scrub(self, node : Node) -> Disposition:
        qname = node.qname()
        if qname is None:
            return Disposition.CONTINUE
        if qname in self.elements:
            scrub_attributes(node)
            return Disposition.CONTINUE
        return self.disallowed(node)

    def disallowed(self, node : Node) -> Disposition:
        raise NotImplementedError()

class Escape(AllowedElementsScrubber):
    """Turn disallowed elements into text showing their markup."""

    name = "escape"

    def disallowed(self, node : Node) -> Disposition:
        node.replace_with_text(node.to_html())
        return Disposition.PRUNE_NOW

class Prune(AllowedElementsScrubber):
    """Remove disallowed elements together with their contents."""

    name = "prune"

    def disallowed(self, node : Node) -> Disposition:
        node.remove()
        return Disposition.PRUNE_NOW

class Strip(AllowedElementsScrubber):
    """Remove disallowed elements, but keep their contents."""

    name = "strip"

    def disallowed(self, node : Node) -> Disposition:
        node.replace_with_children()
        # the promoted children still get visited
        return Disposition.CONTINUE

class Whitewash(Scrubber):
    """Keep only allowlisted elements with allowlisted attributes, remove everything else."""

    name = "whitewash"

    def __init__(self, allowlist : Allowlist = WHITEWASH_ALLOWLIST) -> None:
        self.allowlist = allowlist

    def scrub(self, node : Node) -> Disposition:
        qname = node.qname()
        if qname is None:
            return Disposition.CONTINUE
        allowlist = self.allowlist
        if allowlist.allows(qname):
            filter_attributes(node, allowlist.attributes_of(qname))
            if allowlist.scrub_values:
                scrub_attribute_values(node)
            return Disposition.CONTINUE
        node.remove()
        return Disposition.PRUNE_NOW

a_qname = (htmlns, "a")

class LinkRel(Scrubber):
    """Add a token to `rel` attributes of hyperlinks."""

    token : str

    def applies(self, node : Node) -> bool:
        return node.is_element() \
            and node.qname() == a_qname \
            and node.has_attribute("href")

    def scrub(self, node : Node) -> Disposition:
        node.set_attribute("rel", merge_tokens(node.get_attribute("rel"), self.token))
        return Disposition.CONTINUE

class NoFollow(LinkRel):
    name = "nofollow"
    token = "nofollow"

class NoOpener(LinkRel):
    name = "noopener"
    token = "noopener"

class Chain(Scrubber):
    """Apply several scrubbers to each node in turn.

       The first disposition other than `CONTINUE` wins, and a node detached
       by one scrubber is not shown to the following ones.
    """

    def __init__(self, *scrubbers : Scrubber, name : str | None = None) -> None:
        if len(scrubbers) == 0:
            raise ScrubberConflict(gettext("`Chain` needs at least one scrubber"))
        directions = set(s.direction for s in scrubbers)
        if len(directions) != 1:
            raise ScrubberConflict(gettext("can't chain scrubbers with different traversal directions: %s"),
                                   ", ".join(f"{s.name} is {s.direction.value}" for s in scrubbers))
        self.scrubbers = scrubbers
        self.direction = scrubbers[0].direction
        self.name = name if name is not None else "+".join(s.name for s in scrubbers)

    def applies(self, node : Node) -> bool:
        return any(s.applies(node) for s in self.scrubbers)

    def scrub(self, node : Node) -> Disposition:
        for scrubber in self.scrubbers:
            if not scrubber.applies(node):
                continue
            disposition = scrubber.scrub(node)
            if disposition is not Disposition.CONTINUE:
                return disposition
            if not node.is_attached():
                break
        return Disposition.CONTINUE

_scrubbers : dict[str, Scrubber] = {}

def scrubber_names() -> list[str]:
    return sorted(_scrubbers.keys())

def register_scrubber(name : str, scrubber : Scrubber, replace : bool = False) -> None:
    if not replace and name in _scrubbers:
        raise ScrubberConflict(gettext("scrubber `%s` is already registered"), name)
    _scrubbers[name] = scrubber

def unregister_scrubber(name : str) -> None:
    try:
        del _scrubbers[name]
    except KeyError:
        raise ScrubberNotFound(name) from None

def get_scrubber(name : str) -> Scrubber:
    try:
        return _scrubbers[name]
    except (KeyError, TypeError):
        raise ScrubberNotFound(name) from None

def resolve_scrubber(scrubber : str | Scrubber) -> Scrubber:
    """Turn a scrubber name into a `Scrubber`, pass `Scrubber`s through."""
    if isinstance(scrubber, Scrubber):
        return scrubber
    return get_scrubber(scrubber)

register_scrubber("escape", Escape())
register_scrubber("prune", Prune())
register_scrubber("strip", Strip())
register_scrubber("whitewash", Whitewash())
register_scrubber("nofollow", NoFollow())
register_scrubber("noopener", NoOpener())
register_scrubber("sanitize", Chain(Whitewash(SANITIZE_ALLOWLIST), NoFollow(), name = "sanitize"))
