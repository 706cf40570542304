"""Collect per-module event handlers (INIT, RESET, SHELLPROC) into init.c."""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from ashcore.mystring import ShellError

OUTFILE = "init.c"
OUTTEMP = "init.c.new"
OUTOBJ = "init.o"

_WRITER = "/*\n * This file was generated by the mkinit program.\n */\n\n"

_INIT_COMMENT = "/*\n * Initialization code.\n */\n"

_RESET_COMMENT = (
    "/*\n"
    " * This routine is called when an error or an interrupt occurs in an\n"
    " * interactive shell and control is returned to the main command loop.\n"
    " */\n"
)

_SHELLPROC_COMMENT = (
    "/*\n"
    " * This routine is called to initialize the shell to run a shell procedure.\n"
    " */\n"
)


def match(name: str, line: str) -> bool:
    """Return True if ``line`` starts with the word ``name``.

    The word must be followed by ``{``, a blank or a newline.
    """
    if not line.startswith(name) or len(line) <= len(name):
        return False
    return line[len(name)] in "{ \t\n"


def gooddefine(line: str) -> bool:
    """Return True if ``line`` is a simple one-line, non-macro ``#define``."""
    if not match("#define", line):
        return False
    p = 7
    while p < len(line) and line[p] in " \t":
        p += 1
    while p < len(line) and line[p] not in " \t\n":
        if line[p] == "(":
            return False
        p += 1
    body = line.split("\n", 1)[0]
    return not body.endswith("\\")


@dataclass
class _Event:
    name: str
    routine: str
    comment: str
    code: list[str] = field(default_factory=list)


class InitGenerator:
    """Scans source files and assembles the text of init.c."""

    def __init__(self) -> None:
        self.events = [
            _Event("INIT", "init", _INIT_COMMENT),
            _Event("RESET", "reset", _RESET_COMMENT),
            _Event("SHELLPROC", "initshellproc", _SHELLPROC_COMMENT),
        ]
        self.header_files = ['"shell.h"', '"mystring.h"']
        self.defines: list[str] = []
        self.decls: list[str] = []
        self._amiddecls = False
        self._curfile: Optional[str] = None
        self._linno = 0

    def _error(self, msg: str) -> ShellError:
        if self._curfile is not None:
            return ShellError(f"{self._curfile}:{self._linno}: {msg}")
        return ShellError(msg)

    def _next_line(self, lines: Iterator[str], msg: str) -> str:
        self._linno += 1
        try:
            return next(lines)
        except StopIteration:
            raise self._error(msg) from None

    def readfile(self, path) -> None:
        """Scan the source file at ``path``."""
        try:
            with open(path, encoding="utf-8", errors="surrogateescape", newline="") as fp:
                self.feed(str(path), fp)
        except OSError:
            raise ShellError(f"Can't open {path}") from None

    def feed(self, name: str, lines: Iterable[str]) -> None:
        """Scan source lines (with their newlines) from the file ``name``."""
        self._curfile = name
        self._linno = 0
        self._amiddecls = False
        it = iter(lines)
        for line in it:
            self._linno += 1
            for event in self.events:
                if line[:1] == event.name[0] and match(event.name, line):
                    self._doevent(event, it, name)
                    break
            if line.startswith("I") and match("INCLUDE", line):
                self._doinclude(line)
            if line.startswith("M") and match("MKINIT", line):
                self._dodecl(line, it)
            if line.startswith("#") and gooddefine(line):
                self.defines.append(line)

    def _doevent(self, event: _Event, lines: Iterator[str], fname: str) -> None:
        code = event.code
        code.append(f"\n      /* from {fname}: */\n")
        code.append("      {\n")
        while True:
            line = self._next_line(lines, "Unexpected EOF")
            if line == "}\n":
                break
            indent = 6
            p = 0
            while p < len(line) and line[p] == "\t":
                indent += 8
                p += 1
            while p < len(line) and line[p] == " ":
                indent += 1
                p += 1
            rest = line[p:]
            if rest[:1] in ("\n", "#") and rest:
                indent = 0
            code.append("\t" * (indent // 8) + " " * (indent % 8) + rest)
        code.append("      }\n")

    def _doinclude(self, line: str) -> None:
        start = next((i for i, ch in enumerate(line) if ch in "\"<"), None)
        if start is None:
            raise self._error("Expecting '\"' or '<'")
        end = start
        while end < len(line) and line[end] not in " \t\n":
            end += 1
        name = line[start:end]
        if name[-1] not in "\">":
            raise self._error("Missing terminator")
        if name not in self.header_files:
            self.header_files.append(name)

    def _dodecl(self, line1: str, lines: Iterator[str]) -> None:
        if line1 == "MKINIT\n":
            self.decls.append("\n")
            while True:
                line = self._next_line(lines, "Unterminated structure declaration")
                self.decls.append(line)
                if line.startswith("}"):
                    break
            self._amiddecls = False
            return
        if not self._amiddecls:
            self.decls.append("\n")
        rest = line1[6:]
        tail = ""
        stop = next((i for i, ch in enumerate(rest) if ch in "=/"), None)
        if stop is not None and rest[stop] == "=":
            semi = rest.find(";", stop)
            if semi != -1:
                tail = rest[semi:]
                rest = rest[:stop].rstrip(" ")
        self.decls.append("extern" + rest + tail)
        self._amiddecls = True

    def render(self) -> str:
        """Return the text of init.c."""
        parts = [_WRITER]
        parts.extend(f"#include {name}\n" for name in self.header_files)
        parts.append("\n\n\n")
        parts.extend(self.defines)
        parts.append("\n\n")
        parts.extend(self.decls)
        for event in self.events:
            parts.append("\n\n\n")
            parts.append(event.comment)
            parts.append(f"\nvoid\n{event.routine}() {{\n")
            parts.extend(event.code)
            parts.append("}\n")
        return "".join(parts)


def _file_changed() -> bool:
    try:
        with open(OUTFILE, "rb") as old, open(OUTTEMP, "rb") as new:
            return old.read() != new.read()
    except OSError:
        return True


def _touch(path: str) -> bool:
    """Rewrite the first byte of a file to update its time; False on failure."""
    try:
        with open(path, "r+b") as fp:
            first = fp.read(1)
            if len(first) != 1:
                return False
            fp.seek(0)
            try:
                fp.write(first)
            except OSError:
                pass
    except OSError:
        return False
    return True


def main(argv=None) -> int:
    """Usage: mkinit command sourcefile...

    Writes init.c and runs ``command`` if it changed or init.o is missing.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if not args:
            raise ShellError("Usage:  mkinit command file...")
        generator = InitGenerator()
        for path in args[1:]:
            generator.readfile(path)
        try:
            with open(OUTTEMP, "w", encoding="utf-8", errors="surrogateescape", newline="") as fp:
                fp.write(generator.render())
        except OSError:
            raise ShellError(f"Can't open {OUTTEMP}") from None
        if _file_changed():
            try:
                os.replace(OUTTEMP, OUTFILE)
            except OSError as exc:
                print(f"{OUTFILE}: {exc.strerror}", file=sys.stderr)
                return 1
        else:
            os.unlink(OUTTEMP)
            if _touch(OUTOBJ):
                return 0
        print(args[0], flush=True)
        try:
            return subprocess.run(["/bin/sh", "-c", args[0]], check=False).returncode
        except OSError:
            raise ShellError("Can't exec shell") from None
    except ShellError as exc:
        print(exc, file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())