"""The stack of input sources the parser reads characters from."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Optional, TextIO

from ashcore.mystring import ShellError

BUFSIZ = 8192

# Returned by pgetc at end of input.
PEOF = None


@dataclass
class _StrPush:
    """Saved reading position of a level when a string is pushed over it."""

    buf: str
    pos: int
    alias: Any


@dataclass
class _ParseFile:
    """One level of the input stack."""

    stream: Optional[TextIO] = None
    buf: str = ""
    pos: int = 0
    eof: bool = False
    string_mode: bool = False
    linno: int = 1
    strpush: list[_StrPush] = field(default_factory=list)


def _closable(stream: Optional[TextIO]) -> bool:
    return stream is not None and stream is not sys.stdin and stream is not sys.__stdin__


class InputStack:
    """Characters for the parser, read from files, streams and strings.

    A stack of input levels supports the ``.`` command; within a level,
    strings (such as alias expansions) can be pushed back onto the input.
    """

    def __init__(self, verbose_out: Optional[TextIO] = None) -> None:
        self.verbose_out = verbose_out
        self.plinno = 1
        self._base = _ParseFile(stream=sys.stdin)
        self._file = self._base
        self._stack: list[_ParseFile] = []
        self._last_eof = False

    @property
    def depth(self) -> int:
        """Number of input levels pushed above the top level."""
        return len(self._stack)

    def pgetc(self) -> Optional[str]:
        """Return the next input character, or PEOF at end of input."""
        while True:
            pf = self._file
            if pf.pos < len(pf.buf):
                c = pf.buf[pf.pos]
                pf.pos += 1
                self._last_eof = False
                return c
            if pf.strpush:
                self.popstring()
                continue
            if pf.eof or pf.stream is None or pf.string_mode or not self._refill(pf):
                self._last_eof = True
                return PEOF

    def _refill(self, pf: _ParseFile) -> bool:
        assert pf.stream is not None
        while True:
            data = pf.stream.readline(BUFSIZ - 1)
            if not data:
                pf.eof = True
                return False
            if isinstance(data, bytes):
                data = data.decode("utf-8", "surrogateescape")
            cleaned = data.replace("\0", "")
            if cleaned:
                break
        pf.buf = cleaned
        pf.pos = 0
        if self.verbose_out is not None:
            self.verbose_out.write(cleaned)
            self.verbose_out.flush()
        return True

    def pungetc(self) -> None:
        """Undo the last pgetc.  Only one character may be pushed back."""
        if self._last_eof:
            # End of input stays put: the next pgetc reports it again.
            self._last_eof = False
            return
        pf = self._file
        if pf.pos > 0:
            pf.pos -= 1

    def pfgets(self, limit: int = BUFSIZ) -> Optional[str]:
        """Read a line of at most ``limit - 1`` characters.

        The newline is kept.  Returns None if input ends before any
        character is read.
        """
        chars: list[str] = []
        for _ in range(limit - 1):
            c = self.pgetc()
            if c is PEOF:
                if not chars:
                    return None
                break
            chars.append(c)
            if c == "\n":
                break
        return "".join(chars)

    def pushstring(self, s: str, alias: Any = None) -> None:
        """Push a string onto the input of the current level.

        If ``alias`` is given, its ``in_use`` attribute is set until the
        string has been read.
        """
        pf = self._file
        pf.strpush.append(_StrPush(pf.buf, pf.pos, alias))
        if alias is not None:
            alias.in_use = True
        pf.buf = s
        pf.pos = 0

    def popstring(self) -> None:
        """Drop the most recently pushed string and resume what it covered."""
        pf = self._file
        if not pf.strpush:
            raise ShellError("No string pushed on input")
        sp = pf.strpush.pop()
        pf.buf = sp.buf
        pf.pos = sp.pos
        if sp.alias is not None:
            sp.alias.in_use = False

    def setinputfile(self, path, push: bool) -> None:
        """Take input from the named file, pushing the current input if asked."""
        try:
            stream = open(path, encoding="utf-8", errors="surrogateescape")
        except OSError:
            raise ShellError(f"Can't open {path}") from None
        self.setinputstream(stream, push)

    def setinputstream(self, stream: TextIO, push: bool) -> None:
        """Take input from an open stream."""
        if push:
            self._pushfile()
        pf = self._file
        if _closable(pf.stream) and pf.stream is not stream:
            pf.stream.close()
        pf.stream = stream
        pf.buf = ""
        pf.pos = 0
        pf.eof = False
        pf.string_mode = False
        self._last_eof = False
        self.plinno = 1

    def setinputstring(self, s: str, push: bool) -> None:
        """Take input from a string."""
        if push:
            self._pushfile()
        pf = self._file
        pf.buf = s
        pf.pos = 0
        pf.eof = False
        pf.string_mode = True
        self._last_eof = False
        self.plinno = 1

    def _pushfile(self) -> None:
        self._file.linno = self.plinno
        self._stack.append(self._file)
        self._file = _ParseFile()

    def popfile(self) -> None:
        """Close the current input level and return to the previous one."""
        if not self._stack:
            raise ShellError("No input file to pop")
        pf = self._file
        if pf.stream is not None and _closable(pf.stream):
            pf.stream.close()
        while pf.strpush:
            self.popstring()
        self._file = self._stack.pop()
        self.plinno = self._file.linno
        self._last_eof = False

    def popallfiles(self) -> None:
        """Return to the top level of input."""
        while self._stack:
            self.popfile()

    def closescript(self) -> None:
        """Close the files the shell reads commands from, leaving stdin."""
        self.popallfiles()
        base = self._base
        if _closable(base.stream):
            base.stream.close()
            base.stream = sys.stdin