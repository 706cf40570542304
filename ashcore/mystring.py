"""Small string helpers used throughout the shell."""

from __future__ import annotations


class ShellError(Exception):
    """An error reported by the shell to the user."""


def prefix(pfx: str, string: str) -> bool:
    """Return True if ``pfx`` is a prefix of ``string``."""
    return string.startswith(pfx)


def is_number(s: str) -> bool:
    """Return True if ``s`` is a non-empty string of ASCII digits."""
    return bool(s) and all("0" <= ch <= "9" for ch in s)


def number(s: str) -> int:
    """Convert a string of digits to an integer, raising ShellError otherwise."""
    if not is_number(s):
        raise ShellError(f"Illegal number: {s}")
    return int(s)


def scopyn(s: str, size: int) -> str:
    """Return ``s`` truncated to fit a buffer of ``size`` characters.

    One position of the buffer is reserved for the terminator, so at most
    ``size - 1`` characters are kept.
    """
    return s[: max(size - 1, 0)]