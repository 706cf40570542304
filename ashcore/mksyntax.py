"""Generate the character syntax tables syntax.h and syntax.c."""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass, field
from typing import Mapping

SYNCLASSES = (
    ("CWORD", "character is nothing special"),
    ("CNL", "newline character"),
    ("CBACK", "a backslash character"),
    ("CSQUOTE", "single quote"),
    ("CDQUOTE", "double quote"),
    ("CENDQUOTE", "a terminating quote"),
    ("CBQUOTE", "backwards single quote"),
    ("CVAR", "a dollar sign"),
    ("CENDVAR", "a '}' character"),
    ("CLP", "a left paren in arithmetic"),
    ("CRP", "a right paren in arithmetic"),
    ("CEOF", "end of file"),
    ("CCTL", "like CWORD, except it must be escaped"),
    ("CSPCL", "these terminate a word"),
)

IS_ENTRIES = (
    ("ISDIGIT", "a digit"),
    ("ISUPPER", "an upper case letter"),
    ("ISLOWER", "a lower case letter"),
    ("ISUNDER", "an underscore"),
    ("ISSPECL", "the name of a special parameter"),
)

CTL_NAMES = (
    "CTLESC",
    "CTLVAR",
    "CTLENDVAR",
    "CTLBACKQ",
    "CTLQUOTE",
    "CTLARI",
    "CTLENDARI",
)

_WRITER = "/*\n * This file was generated by the mksyntax program.\n */\n\n"

_MACROS = (
    "#define is_digit(c)\t((unsigned)((c) - '0') <= 9)",
    "#define is_alpha(c)\t((is_type+SYNBASE)[c] & (ISUPPER|ISLOWER))",
    "#define is_name(c)\t((is_type+SYNBASE)[c] & (ISUPPER|ISLOWER|ISUNDER))",
    "#define is_in_name(c)\t((is_type+SYNBASE)[c] & (ISUPPER|ISLOWER|ISUNDER|ISDIGIT))",
    "#define is_special(c)\t((is_type+SYNBASE)[c] & (ISSPECL|ISDIGIT))",
)

_TABLE_COMMENTS = {
    "basesyntax": "/* syntax table used when not in quotes */\n",
    "dqsyntax": "\n/* syntax table used when in double quotes */\n",
    "sqsyntax": "\n/* syntax table used when in single quotes */\n",
    "arisyntax": "\n/* syntax table used when in arithmetic */\n",
    "is_type": "\n/* character classification table */\n",
}


@dataclass
class SyntaxTables:
    """The generated tables, indexed by character value plus ``base``."""

    signed: bool
    nbits: int
    base: int
    size: int
    tables: dict[str, list[str]] = field(default_factory=dict)

    @property
    def peof(self) -> int:
        return -self.base


def build_tables(ctl_codes: Mapping[str, int], signed: bool = True, nbits: int = 8) -> SyntaxTables:
    """Build the syntax tables for characters of the given width.

    ``ctl_codes`` maps each name in CTL_NAMES to its byte value.
    """
    if nbits > 9:
        raise ValueError("Characters can't have more than 9 bits")
    if nbits < 1:
        raise ValueError("Characters must have at least 1 bit")
    missing = [name for name in CTL_NAMES if name not in ctl_codes]
    if missing:
        raise ValueError(f"missing control codes: {', '.join(missing)}")
    size = (1 << nbits) + 1
    base = 1 + ((1 << (nbits - 1)) if signed else 0)
    mask = (1 << nbits) - 1

    def charval(value: int) -> int:
        value &= mask
        if signed and value >= 1 << (nbits - 1):
            value -= 1 << nbits
        return value

    def slot(value: int) -> int:
        index = base + value
        if not 0 <= index < size:
            raise ValueError(f"character value {value} out of range")
        return index

    def fresh() -> list[str]:
        table = ["CWORD"] * size
        table[0] = "CEOF"
        for name in ("CTLESC", "CTLVAR", "CTLENDVAR", "CTLBACKQ", "CTLARI", "CTLENDARI"):
            table[slot(charval(ctl_codes[name]))] = "CCTL"
        backq_quoted = charval(ctl_codes["CTLBACKQ"]) + charval(ctl_codes["CTLQUOTE"])
        table[slot(backq_quoted)] = "CCTL"
        return table

    def add(table: list[str], chars: str, cls: str) -> None:
        for ch in chars:
            table[slot(charval(ord(ch)))] = cls

    result = SyntaxTables(signed=signed, nbits=nbits, base=base, size=size)

    table = fresh()
    for chars, cls in (
        ("\n", "CNL"), ("\\", "CBACK"), ("'", "CSQUOTE"), ('"', "CDQUOTE"),
        ("`", "CBQUOTE"), ("$", "CVAR"), ("}", "CENDVAR"), ("<>();&| \t", "CSPCL"),
    ):
        add(table, chars, cls)
    result.tables["basesyntax"] = table

    table = fresh()
    for chars, cls in (
        ("\n", "CNL"), ("\\", "CBACK"), ('"', "CENDQUOTE"), ("`", "CBQUOTE"),
        ("$", "CVAR"), ("}", "CENDVAR"), ("!*?[=~:/-", "CCTL"),
    ):
        add(table, chars, cls)
    result.tables["dqsyntax"] = table

    table = fresh()
    for chars, cls in (("\n", "CNL"), ("'", "CENDQUOTE"), ("!*?[=~:/-", "CCTL")):
        add(table, chars, cls)
    result.tables["sqsyntax"] = table

    table = fresh()
    for chars, cls in (
        ("\n", "CNL"), ("\\", "CBACK"), ("`", "CBQUOTE"), ("'", "CSQUOTE"),
        ('"', "CDQUOTE"), ("$", "CVAR"), ("}", "CENDVAR"), ("(", "CLP"), (")", "CRP"),
    ):
        add(table, chars, cls)
    result.tables["arisyntax"] = table

    table = ["0"] * size
    for chars, cls in (
        ("0123456789", "ISDIGIT"),
        ("abcdefghijklmnopqrstucvwxyz", "ISLOWER"),
        ("ABCDEFGHIJKLMNOPQRSTUCVWXYZ", "ISUPPER"),
        ("_", "ISUNDER"),
        ("#?$!-*@", "ISSPECL"),
    ):
        add(table, chars, cls)
    result.tables["is_type"] = table
    return result


def _tabs_to_column_32(text: str) -> str:
    pos = len(text)
    tabs = []
    while pos < 32:
        tabs.append("\t")
        pos = (pos + 8) & ~7
    return "".join(tabs)


def _alt_octal(value: int) -> str:
    return "0" + format(value, "o") if value else "0"


def render_header(tables: SyntaxTables) -> str:
    """Return the text of syntax.h."""
    parts = [_WRITER, "#include <sys/cdefs.h>\n", "/* Syntax classes */\n"]
    for index, (name, comment) in enumerate(SYNCLASSES):
        parts.append(f"#undef {name}\n")
        line = f"#define {name} {index}"
        parts.append(line + _tabs_to_column_32(line) + f"/* {comment} */\n")
    parts.append("\n")
    parts.append("/* Syntax classes for is_ functions */\n")
    for index, (name, comment) in enumerate(IS_ENTRIES):
        line = f"#define {name} {_alt_octal(1 << index)}"
        parts.append(line + _tabs_to_column_32(line) + f"/* {comment} */\n")
    parts.append("\n")
    parts.append(f"#define SYNBASE {tables.base}\n")
    parts.append(f"#define PEOF {tables.peof}\n\n")
    parts.append("\n")
    parts.append("#define BASESYNTAX (basesyntax + SYNBASE)\n")
    parts.append("#define DQSYNTAX (dqsyntax + SYNBASE)\n")
    parts.append("#define SQSYNTAX (sqsyntax + SYNBASE)\n")
    parts.append("#define ARISYNTAX (arisyntax + SYNBASE)\n")
    parts.append("\n")
    parts.extend(f"{macro}\n" for macro in _MACROS)
    parts.append("#define digit_val(c)\t((c) - '0')\n")
    parts.append("\n")
    parts.extend(f"extern const char {name}[];\n" for name in tables.tables)
    return "".join(parts)


def _render_table(name: str, table: list[str]) -> str:
    parts = [f"const char {name}[{len(table)}] = {{\n"]
    col = 0
    for i, entry in enumerate(table):
        if i == 0:
            parts.append("      ")
        elif i % 4 == 0:
            parts.append(",\n      ")
            col = 0
        else:
            parts.append(",")
            col += 1
            target = 9 * (i % 4)
            if col < target:
                parts.append(" " * (target - col))
                col = target
        parts.append(entry)
        col += len(entry)
    parts.append("\n};\n")
    return "".join(parts)


def render_source(tables: SyntaxTables) -> str:
    """Return the text of syntax.c."""
    parts = [_WRITER, '#include "shell.h"\n', '#include "syntax.h"\n\n']
    for name, table in tables.tables.items():
        parts.append(_TABLE_COMMENTS[name])
        parts.append(_render_table(name, table))
    return "".join(parts)


_DEFINE_RE = re.compile(r"^\s*#\s*define\s+(CTL\w+)\s+(\S+)")
_ESCAPES = {"n": 10, "t": 9, "r": 13, "b": 8, "f": 12, "v": 11, "a": 7, "\\": 92, "'": 39}


def _parse_value(text: str) -> int:
    if len(text) >= 3 and text[0] == "'" and text[-1] == "'":
        inner = text[1:-1]
        if inner.startswith("\\"):
            rest = inner[1:]
            if rest and all(ch in "01234567" for ch in rest):
                return int(rest, 8)
            if rest in _ESCAPES:
                return _ESCAPES[rest]
            raise ValueError(text)
        if len(inner) == 1:
            return ord(inner)
        raise ValueError(text)
    lowered = text.lower()
    if lowered.startswith("0x"):
        return int(text, 16)
    if text.startswith("0") and len(text) > 1:
        return int(text, 8)
    return int(text, 10)


def _parse_ctl_codes(text: str) -> dict[str, int]:
    codes: dict[str, int] = {}
    for line in text.splitlines():
        found = _DEFINE_RE.match(line)
        if found is None:
            continue
        try:
            codes[found.group(1)] = _parse_value(found.group(2))
        except ValueError:
            continue
    return codes


def main(argv=None) -> int:
    """Write syntax.h and syntax.c using the control codes from parser.h."""
    parser = argparse.ArgumentParser(prog="mksyntax")
    parser.add_argument("header", nargs="?", default="parser.h")
    parser.add_argument("--unsigned", action="store_true")
    parser.add_argument("--nbits", type=int, default=8)
    opts = parser.parse_args(argv)
    signed = not opts.unsigned
    try:
        with open(opts.header, encoding="utf-8", errors="surrogateescape") as fp:
            codes = _parse_ctl_codes(fp.read())
        tables = build_tables(codes, signed, opts.nbits)
    except OSError as exc:
        print(f"{opts.header}: {exc.strerror}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2
    print(f"{'signed' if signed else 'unsigned'} {opts.nbits} bit chars")
    for path, text in (("syntax.c", render_source(tables)), ("syntax.h", render_header(tables))):
        try:
            with open(path, "w", encoding="utf-8", newline="") as fp:
                fp.write(text)
        except OSError as exc:
            print(f"{path}: {exc.strerror}", file=sys.stderr)
            return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())