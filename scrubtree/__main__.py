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

import logging as _logging
import sys as _sys
import typing as _t

from gettext import gettext, ngettext

from kisstdlib import argparse
from kisstdlib.exceptions import *
from kisstdlib.logging import *

from .util import *
from .scrubbers import *
from .html import *

__prog__ = "scrubtree"

def issue(pattern : str, *args : _t.Any) -> None:
    message = pattern % args
    if _sys.stderr.isatty():
        _sys.stderr.write("\033[31m" + message + "\033[0m\n")
    else:
        _sys.stderr.write(message + "\n")
    _sys.stderr.flush()

def error(pattern : str, *args : _t.Any) -> None:
    issue(gettext("error") + ": " + pattern, *args)

def read_input(path : str) -> bytes:
    if path == "-":
        return _sys.stdin.buffer.read()
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise ScrubError(gettext("failed to read `%s`: %s"), path, exc.strerror)

def cmd_scrub(cargs : _t.Any) -> None:
    if cargs.list:
        for name in scrubber_names():
            _sys.stdout.write(name + "\n")
        return

    if cargs.scrubber is None:
        raise ScrubError(gettext("a `SCRUBBER` is required, `--list` shows the known ones"))

    scrubber = resolve_scrubber(cargs.scrubber)
    parse = fragment if cargs.fragment else document

    for path in cargs.paths:
        try:
            data = read_input(path)
        except ScrubError as exc:
            _logging.error("%s", str(exc))
            continue

        _logging.debug("scrubbing `%s` with `%s`", path, scrubber.name)
        tree = parse(data, cargs.encoding)
        tree.scrub(scrubber)
        _sys.stdout.write(tree.to_html())
        _sys.stdout.write("\n")

def make_argparser() -> argparse.ArgumentParser:
    _ : _t.Callable[[str], str] = gettext

    parser = argparse.ArgumentParser(
        prog=__prog__,
        formatter_class=argparse.BetterHelpFormatter,
        description=_("Scrub untrusted HTML: parse each input, walk its tree with the given scrubber, print the result."),
        epilog=_("Known scrubbers: ") + ", ".join(scrubber_names()) + ".")

    parser.add_argument("-v", "--verbose", action="store_true", help=_("log every scrubbing decision to stderr"))
    parser.add_argument("--list", action="store_true", help=_("list known scrubbers and exit"))
    parser.add_argument("--encoding", metavar="ENCODING", type=str, default=None, help=_("assume inputs use this encoding, unless they declare one; default: detect it"))

    grp = parser.add_mutually_exclusive_group()
    grp.add_argument("--document", dest="fragment", action="store_false", help=_("parse inputs as whole documents; default"))
    grp.add_argument("--fragment", dest="fragment", action="store_true", help=_("parse inputs as fragments, as if they were contents of a `<div>`"))
    parser.set_defaults(fragment = False)

    parser.add_argument("scrubber", metavar="SCRUBBER", nargs="?", type=str, help=_("name of the scrubber to use"))
    parser.add_argument("paths", metavar="PATH", nargs="*", default=["-"], help=_("input files, `-` means stdin; default: `-`"))
    parser.set_defaults(func=cmd_scrub)

    return parser

def main(argv : list[str] | None = None) -> None:
    parser = make_argparser()
    cargs = parser.parse_args(_sys.argv[1:] if argv is None else argv)

    _logging.basicConfig(level=_logging.DEBUG if cargs.verbose else _logging.WARNING,
                         stream = _sys.stderr)
    errorcnt = CounterHandler()
    logger = _logging.getLogger()
    logger.addHandler(errorcnt)

    try:
        cargs.func(cargs)
    except KeyboardInterrupt:
        error("%s", gettext("Interrupted!"))
        errorcnt.errors += 1
    except CatastrophicFailure as exc:
        error("%s", str(exc))
        errorcnt.errors += 1
    except Exception as exc:
        _sys.stderr.write(str_Exception(exc))
        errorcnt.errors += 1
    finally:
        logger.removeHandler(errorcnt)

    _sys.stdout.flush()
    _sys.stderr.flush()

    if errorcnt.warnings > 0:
        issue(ngettext("There was %d warning!", "There were %d warnings!", errorcnt.warnings), errorcnt.warnings)
    if errorcnt.errors > 0:
        issue(ngettext("There was %d error!", "There were %d errors!", errorcnt.errors), errorcnt.errors)
        _sys.exit(1)
    _sys.exit(0)

if __name__ == "__main__":
    main()
