import pytest

from ashcore.mksyntax import (
    CTL_NAMES,
    SyntaxTables,
    build_tables,
    main,
    render_header,
    render_source,
)

CTL = {
    "CTLESC": 0o201,
    "CTLVAR": 0o202,
    "CTLENDVAR": 0o203,
    "CTLBACKQ": 0o204,
    "CTLQUOTE": 0o1,
    "CTLARI": 0o206,
    "CTLENDARI": 0o207,
}

PARSER_H = """
#define CTLESC '\\201'
#define CTLVAR '\\202'
#define CTLENDVAR '\\203'
#define CTLBACKQ '\\204'
#define CTLQUOTE 01\t/* ored with CTLBACKQ */
#define CTLARI '\\206'
#define CTLENDARI '\\207'
"""


@pytest.fixture
def tables() -> SyntaxTables:
    return build_tables(CTL, True, 8)


def test_signed_base(tables):
    assert tables.base == 129
    assert tables.peof == -tables.base
    assert all(len(t) == tables.size for t in tables.tables.values())


def test_base_table_entries(tables):
    t = tables.tables["basesyntax"]
    b = tables.base
    assert t[0] == "CEOF"
    assert t[b + ord("\n")] == "CNL"
    assert t[b + ord("$")] == "CVAR"
    assert t[b + ord(";")] == "CSPCL"
    assert t[b + ord("a")] == "CWORD"
    assert t.count("CCTL") == len(CTL)


def test_signed_ctl_position(tables):
    t = tables.tables["dqsyntax"]
    assert t[tables.base + CTL["CTLESC"] - 256] == "CCTL"
    assert t[tables.base + ord('"')] == "CENDQUOTE"
    assert t[tables.base + ord("*")] == "CCTL"


def test_unsigned_ctl_position():
    tables = build_tables(CTL, False, 8)
    assert tables.base == 1
    t = tables.tables["sqsyntax"]
    assert t[tables.base + CTL["CTLESC"]] == "CCTL"
    assert t[tables.base + CTL["CTLBACKQ"] + CTL["CTLQUOTE"]] == "CCTL"
    assert t[tables.base + ord("'")] == "CENDQUOTE"


def test_is_type_table(tables):
    t = tables.tables["is_type"]
    b = tables.base
    assert t[0] == "0"
    assert t[b + ord("7")] == "ISDIGIT"
    assert t[b + ord("q")] == "ISLOWER"
    assert t[b + ord("Q")] == "ISUPPER"
    assert t[b + ord("_")] == "ISUNDER"
    assert t[b + ord("@")] == "ISSPECL"
    assert t[b + CTL["CTLESC"] - 256] == "0"


def test_arith_table(tables):
    t = tables.tables["arisyntax"]
    assert t[tables.base + ord("(")] == "CLP"
    assert t[tables.base + ord(")")] == "CRP"


def test_too_many_bits():
    with pytest.raises(ValueError, match="9 bits"):
        build_tables(CTL, True, 10)


def test_missing_ctl_code():
    codes = {k: v for k, v in CTL.items() if k != "CTLARI"}
    with pytest.raises(ValueError, match="CTLARI"):
        build_tables(codes)


def test_header_text(tables):
    header = render_header(tables)
    assert header.startswith("/*\n * This file was generated by the mksyntax program.\n */\n\n")
    assert f"#define SYNBASE {tables.base}\n" in header
    assert f"#define PEOF {tables.peof}\n" in header
    assert "#define digit_val(c)\t((c) - '0')\n" in header
    for name in tables.tables:
        assert f"extern const char {name}[];\n" in header
    assert "/* character is nothing special */" in header


def test_source_text(tables):
    source = render_source(tables)
    assert '#include "syntax.h"\n' in source
    for name, table in tables.tables.items():
        head = f"const char {name}[{tables.size}] = {{\n"
        start = source.index(head) + len(head)
        body = source[start : source.index("\n};\n", start)]
        assert [e.strip() for e in body.split(",")] == table


def test_main_writes_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "parser.h").write_text(PARSER_H)
    assert main([]) == 0
    expected = build_tables(CTL, True, 8)
    assert (tmp_path / "syntax.c").read_text() == render_source(expected)
    assert (tmp_path / "syntax.h").read_text() == render_header(expected)


def test_main_missing_codes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "parser.h").write_text("#define CTLESC '\\201'\n")
    assert main(["parser.h"]) == 2
    assert not (tmp_path / "syntax.c").exists()


def test_ctl_names_complete():
    assert set(CTL_NAMES) == set(CTL)
    assert build_tables(CTL).tables["basesyntax"].count("CCTL") == len(CTL_NAMES)