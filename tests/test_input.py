import io

import pytest

from ashcore.input import PEOF, InputStack
from ashcore.mystring import ShellError


class _Alias:
    def __init__(self):
        self.in_use = False


def _drain(stack):
    chars = []
    while True:
        c = stack.pgetc()
        if c is PEOF:
            return "".join(chars)
        chars.append(c)


def test_string_input_reads_all_then_eof():
    stack = InputStack()
    stack.setinputstring("echo hi\n", False)
    assert _drain(stack) == "echo hi\n"
    assert stack.pgetc() is PEOF


def test_pungetc_returns_same_character():
    stack = InputStack()
    stack.setinputstring("ab", False)
    assert stack.pgetc() == "a"
    stack.pungetc()
    assert stack.pgetc() == "a"
    assert stack.pgetc() == "b"


def test_pungetc_after_eof_keeps_eof():
    stack = InputStack()
    stack.setinputstream(io.StringIO("x"), False)
    assert stack.pgetc() == "x"
    assert stack.pgetc() is PEOF
    stack.pungetc()
    assert stack.pgetc() is PEOF


def test_pfgets_splits_lines():
    stack = InputStack()
    stack.setinputstring("one\ntwo\nthree", False)
    assert stack.pfgets(100) == "one\n"
    assert stack.pfgets(100) == "two\n"
    assert stack.pfgets(100) == "three"
    assert stack.pfgets(100) is None


def test_pfgets_respects_limit():
    stack = InputStack()
    stack.setinputstring("abcdef\n", False)
    line = stack.pfgets(4)
    assert line == "abc"
    assert stack.pfgets(100) == "def\n"


def test_pushstring_then_resume():
    stack = InputStack()
    stack.setinputstring("xyz", False)
    assert stack.pgetc() == "x"
    stack.pushstring("AB", None)
    assert _drain(stack) == "AByz"


def test_nested_pushstrings():
    stack = InputStack()
    stack.setinputstring("tail", False)
    stack.pushstring("outer ", None)
    assert stack.pgetc() == "o"
    stack.pushstring("inner ", None)
    assert _drain(stack) == "inner uter tail"


def test_alias_flag_tracks_pushed_string():
    stack = InputStack()
    stack.setinputstring(";", False)
    alias = _Alias()
    stack.pushstring("ls", alias)
    assert alias.in_use is True
    assert stack.pgetc() == "l"
    assert stack.pgetc() == "s"
    assert alias.in_use is True
    assert stack.pgetc() == ";"
    assert alias.in_use is False


def test_popstring_without_push_raises():
    stack = InputStack()
    stack.setinputstring("a", False)
    with pytest.raises(ShellError):
        stack.popstring()


def test_stream_input_drops_nul_characters():
    stack = InputStack()
    stack.setinputstream(io.StringIO("a\0b\n\0\0\nc"), False)
    assert _drain(stack) == "ab\n\nc"


def test_setinputfile_reads_file(tmp_path):
    path = tmp_path / "script.sh"
    path.write_text("echo one\necho two\n")
    stack = InputStack()
    stack.setinputfile(str(path), False)
    assert _drain(stack) == "echo one\necho two\n"


def test_setinputfile_missing_raises(tmp_path):
    stack = InputStack()
    with pytest.raises(ShellError, match="Can't open"):
        stack.setinputfile(str(tmp_path / "absent"), False)


def test_push_and_pop_file_restores_position_and_line():
    stack = InputStack()
    stack.setinputstring("abc", False)
    assert stack.pgetc() == "a"
    stack.plinno = 7
    inner = io.StringIO("inner\n")
    stack.setinputstream(inner, True)
    assert stack.depth == 1
    assert stack.plinno == 1
    assert _drain(stack) == "inner\n"
    stack.popfile()
    assert stack.depth == 0
    assert stack.plinno == 7
    assert inner.closed
    assert _drain(stack) == "bc"


def test_popfile_at_top_level_raises():
    stack = InputStack()
    stack.setinputstring("a", False)
    with pytest.raises(ShellError):
        stack.popfile()


def test_popallfiles_returns_to_base():
    stack = InputStack()
    stack.setinputstring("base", False)
    stack.setinputstring("one", True)
    stack.setinputstring("two", True)
    assert stack.depth == 2
    stack.popallfiles()
    assert stack.depth == 0
    assert _drain(stack) == "base"


def test_popfile_releases_pushed_aliases():
    stack = InputStack()
    stack.setinputstring("base", False)
    stack.setinputstring("file", True)
    alias = _Alias()
    stack.pushstring("al", alias)
    stack.popfile()
    assert alias.in_use is False


def test_closescript_closes_streams():
    stack = InputStack()
    base = io.StringIO("base\n")
    stack.setinputstream(base, False)
    pushed = io.StringIO("pushed\n")
    stack.setinputstream(pushed, True)
    stack.closescript()
    assert pushed.closed
    assert base.closed
    assert stack.depth == 0


def test_verbose_output_echoes_lines():
    echo = io.StringIO()
    stack = InputStack(echo)
    stack.setinputstream(io.StringIO("first\nsecond\n"), False)
    assert stack.pfgets() == "first\n"
    assert echo.getvalue() == "first\n"
    assert stack.pfgets() == "second\n"
    assert echo.getvalue() == "first\nsecond\n"


def test_string_input_is_not_echoed():
    echo = io.StringIO()
    stack = InputStack(echo)
    stack.setinputstring("quiet\n", False)
    assert _drain(stack) == "quiet\n"
    assert echo.getvalue() == ""


def test_replacing_stream_closes_previous():
    stack = InputStack()
    first = io.StringIO("a")
    stack.setinputstream(first, False)
    stack.setinputstream(io.StringIO("b"), False)
    assert first.closed
    assert _drain(stack) == "b"