"""Checking mailboxes for newly arrived mail."""

from __future__ import annotations

import os
from typing import Optional

MAXMBOXES = 10

DEFAULT_MESSAGE = "you have mail"


def parse_mailpath(value: str) -> list[tuple[str, Optional[str]]]:
    """Split a MAIL or MAILPATH value into ``(path, message)`` entries.

    Entries are separated by colons; an entry may end in ``%message`` to
    give the text announced when that mailbox grows.  Empty entries are
    kept as empty paths so that mailbox positions stay stable.
    """
    if not value:
        return []
    entries: list[tuple[str, Optional[str]]] = []
    for entry in value.split(":"):
        path, sep, message = entry.partition("%")
        entries.append((path, message if sep else None))
    return entries


def _mailbox_size(path: str) -> int:
    try:
        return os.stat(path).st_size
    except OSError:
        return 0


class MailChecker:
    """Remembers mailbox sizes and reports mailboxes that have grown."""

    def __init__(self) -> None:
        self._nmboxes = 0
        self._sizes = [0] * MAXMBOXES

    def check(self, mailpath: str, silent: bool) -> list[str]:
        """Check the mailboxes named by ``mailpath``.

        Returns the messages to announce, one per grown mailbox.  When
        ``silent`` is true (the mail path has just changed) the sizes are
        only recorded.  Nothing is checked until a silent check has run.
        """
        if silent:
            self._nmboxes = MAXMBOXES
        if self._nmboxes == 0:
            return []
        messages: list[str] = []
        entries = parse_mailpath(mailpath)
        count = 0
        for index, (path, message) in enumerate(entries[: self._nmboxes]):
            count = index + 1
            if not path:
                continue
            size = _mailbox_size(path)
            if size > self._sizes[index] and not silent:
                messages.append(message if message is not None else DEFAULT_MESSAGE)
            self._sizes[index] = size
        self._nmboxes = count
        return messages