"""The read, umask and ulimit builtins."""

from __future__ import annotations

import os
import resource
import stat
import sys
from typing import MutableMapping, Optional, TextIO

from ashcore.mystring import ShellError
from ashcore.options import ArgScanner

_QUAD_MAX = 2**63 - 1


def readcmd(
    args,
    variables: MutableMapping[str, str],
    stdin: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """The ``read`` builtin.  ``-e`` lets backslashes escape characters."""
    stdin = stdin if stdin is not None else sys.stdin
    err = err if err is not None else sys.stderr
    scanner = ArgScanner(list(args)[1:])
    eflag = False
    prompt = None
    while (opt := scanner.nextopt("ep:")) is not None:
        if opt == "p":
            prompt = scanner.optarg
        else:
            eflag = True
    if prompt and stdin.isatty():
        err.write(prompt)
        err.flush()
    names = scanner.remaining()
    if not names:
        raise ShellError("arg count")
    ifs = variables.get("IFS")
    if ifs is None:
        ifs = ""
    status = 0
    startword = True
    backslash = False
    current = 0
    chars: list[str] = []
    while True:
        c = stdin.read(1)
        if not c:
            status = 1
            break
        if c == "\0":
            continue
        if backslash:
            backslash = False
            if c != "\n":
                chars.append(c)
            continue
        if eflag and c == "\\":
            backslash = True
            continue
        if c == "\n":
            break
        if startword and ifs.startswith(" ") and c in ifs:
            continue
        startword = False
        if current + 1 < len(names) and c in ifs:
            variables[names[current]] = "".join(chars)
            current += 1
            startword = True
            chars = []
        else:
            chars.append(c)
    variables[names[current]] = "".join(chars)
    for name in names[current + 1 :]:
        variables[name] = ""
    return status


def format_symbolic_umask(mask: int) -> str:
    """Return the ``umask -S`` form of a mask, e.g. ``u=rwx,g=rx,o=rx``."""
    parts = []
    for who, shift in (("u", 6), ("g", 3), ("o", 0)):
        bits = (mask >> shift) & 0o7
        perms = "".join(
            letter for letter, bit in (("r", 4), ("w", 2), ("x", 1)) if not bits & bit
        )
        parts.append(f"{who}={perms}")
    return ",".join(parts)


_WHO_BITS = {"u": 0o4700, "g": 0o2070, "o": 0o1007, "a": 0o7777}
_PERM_BITS = {"r": 0o444, "w": 0o222, "x": 0o111, "s": 0o6000, "t": 0o1000}
_COPY_SHIFT = {"u": 6, "g": 3, "o": 0}


def apply_symbolic_mode(spec: str, mode: int) -> int:
    """Apply a chmod-style symbolic mode such as ``u+w,go-x`` to ``mode``.

    A clause without a ``who`` part applies to everyone.  Raises
    ValueError if the specification is malformed.
    """
    for clause in spec.split(","):
        i = 0
        who = 0
        while i < len(clause) and clause[i] in _WHO_BITS:
            who |= _WHO_BITS[clause[i]]
            i += 1
        if who == 0:
            who = _WHO_BITS["a"]
        if i >= len(clause):
            raise ValueError(f"bad mode: {spec}")
        while i < len(clause):
            op = clause[i]
            if op not in "+-=":
                raise ValueError(f"bad mode: {spec}")
            i += 1
            bits = 0
            while i < len(clause) and clause[i] in "rwxXstugo":
                letter = clause[i]
                if letter in _PERM_BITS:
                    bits |= _PERM_BITS[letter]
                elif letter == "X":
                    if mode & 0o111:
                        bits |= 0o111
                else:
                    bits |= ((mode >> _COPY_SHIFT[letter]) & 0o7) * 0o111
                i += 1
            bits &= who
            if op == "+":
                mode |= bits
            elif op == "-":
                mode &= ~bits
            else:
                mode = (mode & ~who) | bits
    return mode


def umaskcmd(args, out: Optional[TextIO] = None) -> int:
    """The ``umask`` builtin."""
    out = out if out is not None else sys.stdout
    args = list(args)
    scanner = ArgScanner(args[1:])
    symbolic = False
    while scanner.nextopt("S") is not None:
        symbolic = True
    mask = os.umask(0)
    os.umask(mask)
    operands = scanner.remaining()
    if not operands:
        if symbolic:
            out.write(format_symbolic_umask(mask) + "\n")
        else:
            out.write(f"{mask:04o}\n")
        return 0
    spec = operands[0]
    if spec[0].isdigit():
        new = 0
        for ch in spec:
            if not "0" <= ch <= "7":
                raise ShellError(f"Illegal number: {args[1]}")
            new = (new << 3) + int(ch)
        os.umask(new)
    else:
        try:
            mode = apply_symbolic_mode(spec, ~mask & 0o777)
        except ValueError:
            raise ShellError(f"Illegal number: {spec}") from None
        os.umask(~mode & 0o777)
    return 0


_LIMIT_TABLE = (
    ("time(seconds)", "RLIMIT_CPU", 1, "t"),
    ("file(blocks)", "RLIMIT_FSIZE", 512, "f"),
    ("data(kbytes)", "RLIMIT_DATA", 1024, "d"),
    ("stack(kbytes)", "RLIMIT_STACK", 1024, "s"),
    ("coredump(blocks)", "RLIMIT_CORE", 512, "c"),
    ("memory(kbytes)", "RLIMIT_RSS", 1024, "m"),
    ("locked memory(kbytes)", "RLIMIT_MEMLOCK", 1024, "l"),
    ("process(processes)", "RLIMIT_NPROC", 1, "p"),
    ("nofiles(descriptors)", "RLIMIT_NOFILE", 1, "n"),
    ("vmemory(kbytes)", "RLIMIT_VMEM", 1024, "v"),
    ("swap(kbytes)", "RLIMIT_SWAP", 1024, "w"),
)

LIMITS = tuple(
    (name, getattr(resource, attr), factor, option)
    for name, attr, factor, option in _LIMIT_TABLE
    if hasattr(resource, attr)
)


def parse_limit_value(text: str, factor: int) -> int:
    """Parse a decimal limit and scale it by ``factor``."""
    val = 0
    for ch in text:
        if not "0" <= ch <= "9":
            raise ShellError("ulimit: bad number")
        val = val * 10 + int(ch)
        if val > _QUAD_MAX:
            raise ShellError("ulimit: bad number")
    return val * factor


def _format_limit(val: int, factor: int) -> str:
    if val == resource.RLIM_INFINITY:
        return "unlimited\n"
    return f"{val // factor}\n"


def ulimitcmd(args, out: Optional[TextIO] = None) -> int:
    """The ``ulimit`` builtin."""
    out = out if out is not None else sys.stdout
    scanner = ArgScanner(list(args)[1:])
    soft = hard = True
    show_all = False
    what = "f"
    while (opt := scanner.nextopt("HSatfdsmcnpl")) is not None:
        if opt == "H":
            soft, hard = False, True
        elif opt == "S":
            soft, hard = True, False
        elif opt == "a":
            show_all = True
        else:
            what = opt
    entry = next((lim for lim in LIMITS if lim[3] == what), None)
    if entry is None:
        raise ShellError(f"ulimit: internal error ({what})")
    _, which, factor, _ = entry
    operands = scanner.remaining()
    val = 0
    if operands:
        if show_all or len(operands) > 1:
            raise ShellError("ulimit: too many arguments")
        if operands[0] == "unlimited":
            val = resource.RLIM_INFINITY
        else:
            val = parse_limit_value(operands[0], factor)
    if show_all:
        for name, res, fac, _ in LIMITS:
            cur, mx = resource.getrlimit(res)
            out.write(f"{name:<20} " + _format_limit(cur if soft else mx, fac))
        return 0
    cur, mx = resource.getrlimit(which)
    if operands:
        if soft:
            cur = val
        if hard:
            mx = val
        try:
            resource.setrlimit(which, (cur, mx))
        except (OSError, ValueError):
            raise ShellError("ulimit: bad limit") from None
    else:
        out.write(_format_limit(cur if soft else mx, factor))
    return 0