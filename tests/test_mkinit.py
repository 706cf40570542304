import os

import pytest

from ashcore.mkinit import InitGenerator, gooddefine, main, match
from ashcore.mystring import ShellError


def test_match_requires_word_boundary():
    assert match("INIT", "INIT {\n")
    assert match("INIT", "INIT\n")
    assert not match("INIT", "INITIALIZE\n")
    assert not match("INIT", "INIT")
    assert not match("RESET", "INIT {\n")


def test_gooddefine():
    assert gooddefine("#define EOF_NLEFT -99\t\t/* value */\n")
    assert not gooddefine("#define pgetc_macro()\t(x)\n")
    assert not gooddefine("#define FOO \\\n")
    assert not gooddefine("#include <stdio.h>\n")


def test_event_code_is_reindented():
    gen = InitGenerator()
    gen.feed("input.c", ["INIT {\n", "\tbasepf.nextc = x;\n", "#ifdef X\n", "}\n"])
    text = gen.render()
    assert "\n      /* from input.c: */\n      {\n" in text
    assert "\t      basepf.nextc = x;\n" in text
    assert "\n#ifdef X\n      }\n" in text
    assert "\nvoid\ninit() {\n" in text


def test_events_appear_in_fixed_order():
    gen = InitGenerator()
    gen.feed("a.c", ["SHELLPROC {\n", "\tb();\n", "}\n", "RESET {\n", "\ta();\n", "}\n"])
    text = gen.render()
    assert text.index("init() {") < text.index("reset() {") < text.index("initshellproc() {")
    assert text.index("a();") < text.index("b();")


def test_includes_deduplicated():
    gen = InitGenerator()
    gen.feed("a.c", ['INCLUDE "input.h"\n', 'INCLUDE "input.h"\n', "INCLUDE <stdlib.h>\n"])
    assert gen.header_files == ['"shell.h"', '"mystring.h"', '"input.h"', "<stdlib.h>"]
    assert gen.render().count('#include "input.h"\n') == 1


def test_declarations():
    gen = InitGenerator()
    gen.feed(
        "jobs.c",
        [
            "MKINIT int parsenleft;\t\t/* copy */\n",
            "MKINIT int backgndpid = -1;\t/* pid */\n",
            "MKINIT\n",
            "struct strpush {\n",
            "\tint n;\n",
            "};\n",
        ],
    )
    assert gen.decls[1] == "extern int parsenleft;\t\t/* copy */\n"
    assert gen.decls[2] == "extern int backgndpid;\t/* pid */\n"
    assert gen.decls[3:] == ["\n", "struct strpush {\n", "\tint n;\n", "};\n"]


def test_defines_collected():
    gen = InitGenerator()
    gen.feed("a.c", ["#define EOF_NLEFT -99\n", "#define f(x) x\n"])
    assert gen.defines == ["#define EOF_NLEFT -99\n"]


def test_unterminated_struct():
    with pytest.raises(ShellError, match="Unterminated structure declaration"):
        InitGenerator().feed("a.c", ["MKINIT\n", "struct s {\n"])


def test_include_errors():
    with pytest.raises(ShellError, match="Missing terminator"):
        InitGenerator().feed("a.c", ['INCLUDE "input.h\n'])
    with pytest.raises(ShellError, match="Expecting"):
        InitGenerator().feed("a.c", ["INCLUDE input.h\n"])


def test_readfile_missing(tmp_path):
    with pytest.raises(ShellError, match="Can't open"):
        InitGenerator().readfile(tmp_path / "missing.c")


def test_main_writes_and_runs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "x.c"
    src.write_text("INIT {\n\tx();\n}\n")
    assert main(["exit 3", "x.c"]) == 3
    gen = InitGenerator()
    gen.readfile("x.c")
    assert (tmp_path / "init.c").read_text() == gen.render()
    assert not (tmp_path / "init.c.new").exists()


def test_main_skips_when_unchanged(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "x.c").write_text("INIT {\n\tx();\n}\n")
    assert main(["exit 3", "x.c"]) == 3
    (tmp_path / "init.o").write_bytes(b"o")
    assert main(["exit 3", "x.c"]) == 0
    assert not os.path.exists("init.c.new")


def test_main_usage():
    assert main([]) == 2