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

"""Scrub untrusted HTML by walking its tree with pluggable scrubbers.

   >>> import scrubtree
   >>> scrubtree.scrub_fragment("<b onclick='x()'>hi</b><script>alert(1)</script>", "prune").to_html()
   '<b>hi</b>'
"""

from .util import ScrubError
from .node import Node, NodeKind, NodeSet, Tree
from .traverse import CallbackScrubber, Direction, Disposition, Scrubber, traverse
from .whitelist import Allowlist, SANITIZE_ALLOWLIST, WHITEWASH_ALLOWLIST, scrub_attributes, scrub_css
from .scrubbers import Chain, Escape, NoFollow, NoOpener, Prune, ScrubberConflict, ScrubberNotFound, Strip, \
    Whitewash, get_scrubber, register_scrubber, resolve_scrubber, scrubber_names, unregister_scrubber
from .html import Document, Fragment, document, fragment, scrub_document, scrub_fragment

__all__ = [
    "Allowlist", "CallbackScrubber", "Chain", "Direction", "Disposition", "Document", "Escape",
    "Fragment", "NoFollow", "NoOpener", "Node", "NodeKind", "NodeSet", "Prune", "SANITIZE_ALLOWLIST",
    "ScrubError", "Scrubber", "ScrubberConflict", "ScrubberNotFound", "Strip", "Tree",
    "WHITEWASH_ALLOWLIST", "Whitewash", "document", "fragment", "get_scrubber", "register_scrubber",
    "resolve_scrubber", "scrub_attributes", "scrub_css", "scrub_document", "scrub_fragment",
    "scrubber_names", "traverse", "unregister_scrubber",
]
