"""Generate nodes.h and nodes.c from a description of parse tree node types."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, Optional

from ashcore.mystring import ShellError

BUFLEN = 100

_WRITER = "/*\n * This file was generated by the mknodes program.\n */\n\n"

_INDENT = "\t    "


class NodeSpecError(ShellError):
    """An error in the node description, with the line it was found on."""

    def __init__(self, message: str, lineno: Optional[int] = None) -> None:
        self.message = message
        self.lineno = lineno
        text = message if lineno is None else f"line {lineno}: {message}"
        super().__init__(text)


class FieldType(IntEnum):
    """Kinds of structure fields, which decide how a field is copied."""

    NODE = 1
    NODELIST = 2
    STRING = 3
    INT = 4
    OTHER = 5
    TEMP = 6


_TYPE_NAMES = {
    "nodeptr": FieldType.NODE,
    "nodelist": FieldType.NODELIST,
    "string": FieldType.STRING,
    "int": FieldType.INT,
    "other": FieldType.OTHER,
    "temp": FieldType.TEMP,
}

_DECL_FORMATS = {
    FieldType.NODE: "union node *{}",
    FieldType.NODELIST: "struct nodelist *{}",
    FieldType.STRING: "char *{}",
    FieldType.INT: "int {}",
}


@dataclass
class NodeField:
    """One field of a node structure."""

    name: str
    type: FieldType
    decl: str


@dataclass(eq=False)
class NodeStruct:
    """A structure shared by one or more node types."""

    tag: str
    fields: list[NodeField] = field(default_factory=list)
    done: bool = False


@dataclass
class NodeSpec:
    """The parsed node description: node names in order and their structures."""

    nodes: list[tuple[str, NodeStruct]] = field(default_factory=list)
    structs: list[NodeStruct] = field(default_factory=list)

    @property
    def node_names(self) -> list[str]:
        return [name for name, _ in self.nodes]


def _strip_line(raw: str) -> str:
    """Cut a line at a comment or newline and drop trailing blanks."""
    end = len(raw)
    for i, ch in enumerate(raw):
        if ch in "#\n\0":
            end = i
            break
    return raw[:end].rstrip(" \t")


def _next_field(text: str, pos: int) -> tuple[str, int]:
    while pos < len(text) and text[pos] in " \t":
        pos += 1
    start = pos
    while pos < len(text) and text[pos] not in " \t":
        pos += 1
    return text[start:pos], pos


def parse_nodetypes(lines: Iterable[str]) -> NodeSpec:
    """Parse the lines of a node type description.

    A line starting in the first column names a node and the structure
    it uses; indented lines that follow add fields to a new structure.
    """
    spec = NodeSpec()
    by_tag: dict[str, NodeStruct] = {}
    current: Optional[NodeStruct] = None
    for lineno, raw in enumerate(lines, 1):
        text = _strip_line(raw)
        if len(text) > BUFLEN:
            raise NodeSpecError("Line too long", lineno)
        if text[:1] in (" ", "\t"):
            if current is None or current.done:
                raise NodeSpecError("No current structure to add field to", lineno)
            current.fields.append(_parse_field(text, lineno))
        elif text:
            if current is not None and current.fields:
                current.done = True
            name, pos = _next_field(text, 0)
            tag, pos = _next_field(text, pos)
            if not tag:
                raise NodeSpecError("Tag expected", lineno)
            if pos < len(text):
                raise NodeSpecError("Garbage at end of line", lineno)
            struct = by_tag.get(tag)
            if struct is None:
                struct = NodeStruct(tag)
                by_tag[tag] = struct
                spec.structs.append(struct)
                current = struct
            spec.nodes.append((name, struct))
    return spec


def _parse_field(text: str, lineno: int) -> NodeField:
    name, pos = _next_field(text, 0)
    if not name:
        raise NodeSpecError("No field name", lineno)
    type_name, pos = _next_field(text, pos)
    if not type_name:
        raise NodeSpecError("No field type", lineno)
    ftype = _TYPE_NAMES.get(type_name)
    if ftype is None:
        raise NodeSpecError(f"Unknown type {type_name}", lineno)
    rest = text[pos:]
    if ftype in (FieldType.OTHER, FieldType.TEMP):
        decl = rest.lstrip(" \t")
    else:
        if rest:
            raise NodeSpecError("Garbage at end of line", lineno)
        decl = _DECL_FORMATS[ftype].format(name)
    return NodeField(name, ftype, decl)


def render_header(spec: NodeSpec) -> str:
    """Return the text of nodes.h."""
    parts = [_WRITER]
    parts.extend(f"#define {name} {i}\n" for i, (name, _) in enumerate(spec.nodes))
    parts.append("\n\n\n")
    for struct in spec.structs:
        parts.append(f"struct {struct.tag} {{\n")
        parts.extend(f"      {fld.decl};\n" for fld in struct.fields)
        parts.append("};\n\n\n")
    parts.append("union node {\n")
    parts.append("      int type;\n")
    parts.extend(f"      struct {s.tag} {s.tag};\n" for s in spec.structs)
    parts.append("};\n\n\n")
    parts.append("struct nodelist {\n")
    parts.append("\tstruct nodelist *next;\n")
    parts.append("\tunion node *n;\n")
    parts.append("};\n\n\n")
    parts.append("#ifdef __STDC__\n")
    parts.append("union node *copyfunc(union node *);\n")
    parts.append("void freefunc(union node *);\n")
    parts.append("#else\n")
    parts.append("union node *copyfunc();\n")
    parts.append("void freefunc();\n")
    parts.append("#endif\n")
    return "".join(parts)


def _sizes(spec: NodeSpec) -> Iterator[str]:
    yield f"static const short nodesize[{len(spec.nodes)}] = {{\n"
    for _, struct in spec.nodes:
        yield f"      ALIGN(sizeof (struct {struct.tag})),\n"
    yield "};\n"


def _field_code(tag: str, fld: NodeField, calcsize: bool) -> Optional[str]:
    ref = f"n->{tag}.{fld.name}"
    target = f"new->{tag}.{fld.name}"
    if fld.type == FieldType.NODE:
        return f"calcsize({ref});\n" if calcsize else f"{target} = copynode({ref});\n"
    if fld.type == FieldType.NODELIST:
        if calcsize:
            return f"sizenodelist({ref});\n"
        return f"{target} = copynodelist({ref});\n"
    if fld.type == FieldType.STRING:
        if calcsize:
            return f"funcstringsize += strlen({ref}) + 1;\n"
        return f"{target} = nodesavestr({ref});\n"
    if fld.type in (FieldType.INT, FieldType.OTHER) and not calcsize:
        return f"{target} = {ref};\n"
    return None


def _function_body(spec: NodeSpec, calcsize: bool) -> Iterator[str]:
    yield "      if (n == NULL)\n"
    yield "\t    return;\n" if calcsize else "\t    return NULL;\n"
    if calcsize:
        yield "      funcblocksize += nodesize[n->type];\n"
    else:
        yield "      new = funcblock;\n"
        yield "      funcblock += nodesize[n->type];\n"
    yield "      switch (n->type) {\n"
    for struct in spec.structs:
        for name, node_struct in spec.nodes:
            if node_struct is struct:
                yield f"      case {name}:\n"
        # The first field holds the node type and is handled separately.
        for fld in reversed(struct.fields[1:]):
            code = _field_code(struct.tag, fld, calcsize)
            if code is not None:
                yield _INDENT + code
        yield _INDENT + "break;\n"
    yield "      };\n"
    if not calcsize:
        yield "      new->type = n->type;\n"


def render_source(spec: NodeSpec, pattern_lines: Iterable[str]) -> str:
    """Return the text of nodes.c, filling in the directives of the pattern."""
    parts = [_WRITER]
    for line in pattern_lines:
        directive = line.lstrip(" \t")
        if directive == "%SIZES\n":
            parts.extend(_sizes(spec))
        elif directive == "%CALCSIZE\n":
            parts.extend(_function_body(spec, True))
        elif directive == "%COPY\n":
            parts.extend(_function_body(spec, False))
        else:
            parts.append(line)
    return "".join(parts)


def _read_lines(path: str) -> list[str]:
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as fp:
            return fp.readlines()
    except OSError:
        raise NodeSpecError(f"Can't open {path}") from None


def _write(path: str, text: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as fp:
            fp.write(text)
    except OSError:
        raise NodeSpecError(f"Can't create {path}") from None


def main(argv=None) -> int:
    """Usage: mknodes nodetypes pattern.  Writes nodes.h and nodes.c."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if len(args) != 2:
            raise NodeSpecError("usage: mknodes file")
        spec = parse_nodetypes(_read_lines(args[0]))
        pattern = _read_lines(args[1])
        _write("nodes.h", render_header(spec))
        _write("nodes.c", render_source(spec, pattern))
    except NodeSpecError as exc:
        print(exc, file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())