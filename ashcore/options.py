"""Shell option flags, positional parameters and option scanning."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Iterator, MutableMapping, Optional, TextIO

from ashcore.mystring import ShellError, number

_OPTION_TABLE = (
    ("errexit", "e"),
    ("noglob", "f"),
    ("ignoreeof", "I"),
    ("interactive", "i"),
    ("monitor", "m"),
    ("noexec", "n"),
    ("stdin", "s"),
    ("xtrace", "x"),
    ("verbose", "v"),
    ("vi", "V"),
    ("emacs", "E"),
    ("noclobber", "C"),
    ("allexport", "a"),
    ("notify", "b"),
    ("nounset", "u"),
)

# Marks an option not given on the command line while arguments are processed.
_UNSET = 2


@dataclass
class Option:
    """A single shell option."""

    name: str
    letter: str
    val: int = 0


class Options:
    """The table of shell options, in their fixed order."""

    def __init__(self) -> None:
        self._options = [Option(name, letter) for name, letter in _OPTION_TABLE]
        self._by_letter = {opt.letter: opt for opt in self._options}

    def __iter__(self) -> Iterator[Option]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def flag(self, letter: str) -> int:
        """Return the value of the option with the given letter."""
        try:
            return self._by_letter[letter].val
        except KeyError:
            raise ShellError(f"Illegal option -{letter}") from None

    def set_option(self, flag: str, val: int) -> None:
        """Set the option named by its letter."""
        opt = self._by_letter.get(flag)
        if opt is None:
            raise ShellError(f"Illegal option -{flag}")
        opt.val = val
        if val:
            # vi and emacs editing modes exclude each other
            if flag == "V":
                self._by_letter["E"].val = 0
            elif flag == "E":
                self._by_letter["V"].val = 0

    def set_by_name(self, name: str, val: int) -> None:
        """Set the option with the given long name."""
        for opt in self._options:
            if opt.name == name:
                self.set_option(opt.letter, val)
                return
        raise ShellError(f"Illegal option -o {name}")

    def describe(self) -> str:
        """Return the listing printed by ``set -o``."""
        lines = ["Current option settings\n"]
        lines.extend(
            f"{opt.name:<16}{'on' if opt.val else 'off'}\n" for opt in self._options
        )
        return "".join(lines)


@dataclass
class ShellParams:
    """The positional parameters and the state of getopts."""

    params: list[str] = field(default_factory=list)
    optnext: Optional[int] = None
    optptr: Optional[str] = None

    @property
    def nparam(self) -> int:
        return len(self.params)

    def setparam(self, args) -> None:
        """Replace the positional parameters."""
        self.params = list(args)
        self.optnext = None
        self.optptr = None


@dataclass
class Invocation:
    """The outcome of processing the shell's command line."""

    options: Options
    params: ShellParams
    arg0: Optional[str]
    minusc: Optional[str] = None
    commandname: Optional[str] = None


def parse_options(args, options: Options, cmdline: bool):
    """Process leading option arguments.

    Returns ``(rest, minusc, clear_params)``: the arguments after the
    options, the argument of ``-c`` (command line only) and whether a
    trailing ``--`` asked for the positional parameters to be cleared.
    """
    args = list(args)
    index = 0
    minusc: Optional[str] = None
    clear_params = False
    while index < len(args):
        arg = args[index]
        index += 1
        if arg.startswith("-"):
            val = 1
            if arg in ("-", "--"):
                if not cmdline:
                    if arg == "-":
                        options.set_option("x", 0)
                        options.set_option("v", 0)
                    elif index >= len(args):
                        clear_params = True
                break
        elif arg.startswith("+"):
            val = 0
        else:
            index -= 1
            break
        for c in arg[1:]:
            if c == "c" and cmdline:
                q = args[index] if index < len(args) else None
                index += 1
                if q is None or minusc is not None:
                    raise ShellError("Bad -c option")
                minusc = q
            elif c == "o":
                name = args[index] if index < len(args) else None
                if name is None:
                    sys.stdout.write(options.describe())
                else:
                    options.set_by_name(name, val)
                    index += 1
            else:
                options.set_option(c, val)
    return args[index:], minusc, clear_params


def procargs(argv, interactive_tty: bool) -> Invocation:
    """Process the shell's own command line arguments."""
    argv = list(argv)
    args = argv[1:]
    options = Options()
    for opt in options:
        opt.val = _UNSET
    rest, minusc, _ = parse_options(args, options, True)
    by_letter = {opt.letter: opt for opt in options}
    if not rest and minusc is None:
        by_letter["s"].val = 1
    if by_letter["i"].val == _UNSET and by_letter["s"].val == 1 and interactive_tty:
        by_letter["i"].val = 1
    if by_letter["m"].val == _UNSET:
        by_letter["m"].val = by_letter["i"].val
    for opt in options:
        if opt.val == _UNSET:
            opt.val = 0
    arg0 = argv[0] if argv else None
    commandname = None
    if by_letter["s"].val == 0 and minusc is None:
        commandname = arg0 = rest[0]
        rest = rest[1:]
    return Invocation(
        options=options,
        params=ShellParams(rest),
        arg0=arg0,
        minusc=minusc,
        commandname=commandname,
    )


def setcmd(args, options: Options, params: ShellParams) -> int:
    """The ``set`` builtin: change options and positional parameters.

    With no operands nothing is changed; listing the variables is left
    to the variable store.
    """
    args = list(args)
    if len(args) <= 1:
        return 0
    rest, _, clear_params = parse_options(args[1:], options, False)
    if rest:
        params.setparam(rest)
    elif clear_params:
        params.setparam([])
    return 0


def shiftcmd(args, params: ShellParams) -> int:
    """The ``shift`` builtin."""
    args = list(args)
    n = number(args[1]) if len(args) > 1 else 1
    if n > params.nparam:
        raise ShellError("can't shift that many")
    params.params = params.params[n:]
    params.optnext = None
    return 0


def _find_option(optstring: str, c: str) -> Optional[bool]:
    """Look ``c`` up in an option string.

    Returns None if it is not an option, otherwise whether it takes an
    argument.
    """
    i = 0
    while True:
        if i >= len(optstring):
            return None
        if optstring[i] == c:
            break
        i += 1
        if i < len(optstring) and optstring[i] == ":":
            i += 1
    return i + 1 < len(optstring) and optstring[i + 1] == ":"


def getoptscmd(
    args, params: ShellParams, variables: MutableMapping[str, str], out: TextIO
) -> int:
    """The ``getopts`` builtin."""
    args = list(args)
    if len(args) != 3:
        raise ShellError("Usage: getopts optstring var")
    if params.optnext is None:
        params.optnext = 0
        params.optptr = None
    p = params.optptr
    if not p:
        arg = params.params[params.optnext] if params.optnext < params.nparam else None
        at_end = arg is None or not arg.startswith("-") or arg == "-"
        if not at_end:
            params.optnext += 1
            p = arg[1:]
            at_end = p == "-"
        if at_end:
            variables["OPTIND"] = str(params.optnext + 1)
            params.optnext = None
            return 1
    c, p = p[0], p[1:]
    takes_arg = _find_option(args[1], c)
    if takes_arg is None:
        out.write(f"Illegal option -{c}\n")
        c = "?"
    elif takes_arg:
        if p == "":
            if params.optnext >= params.nparam:
                out.write(f"No arg for -{c} option\n")
                params.optptr = None
                variables[args[2]] = "?"
                return 0
            p = params.params[params.optnext]
        params.optnext += 1
        variables["OPTARG"] = p
        p = None
    params.optptr = p
    variables[args[2]] = c
    return 0


class ArgScanner:
    """getopt-style option scanning for builtin commands."""

    def __init__(self, args) -> None:
        self._args = list(args)
        self._index = 0
        self._optptr: Optional[str] = None
        self.optarg: Optional[str] = None

    def nextopt(self, optstring: str) -> Optional[str]:
        """Return the next option letter, or None when options end."""
        p = self._optptr
        if not p:
            if self._index >= len(self._args):
                return None
            arg = self._args[self._index]
            if not arg.startswith("-") or arg == "-":
                return None
            self._index += 1
            if arg == "--":
                return None
            p = arg[1:]
        c, p = p[0], p[1:]
        takes_arg = _find_option(optstring, c)
        if takes_arg is None:
            raise ShellError(f"Illegal option -{c}")
        if takes_arg:
            if p == "":
                if self._index >= len(self._args):
                    raise ShellError(f"No arg for -{c} option")
                p = self._args[self._index]
                self._index += 1
            self.optarg = p
            p = None
        self._optptr = p
        return c

    def remaining(self) -> list[str]:
        """Return the arguments not yet consumed as options."""
        return self._args[self._index:]