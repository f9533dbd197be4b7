"""Small read helpers shared by the kernel data source readers."""

from __future__ import annotations

import os
from typing import List

from blkinfo.utils.errors import InvalidStateError, NotFoundError

QUOTE_CHARS = ('"', "'")


def read_text(path: str) -> str:
    """Return the whitespace-trimmed contents of ``path``.

    A missing file raises :class:`NotFoundError`, a directory raises
    :class:`InvalidStateError`; any other ``OSError`` propagates unchanged.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="surrogateescape") as handle:
            return handle.read().strip()
    except FileNotFoundError as exc:
        raise NotFoundError(f"{path} not found") from exc
    except IsADirectoryError as exc:
        raise InvalidStateError(f"{path} is a directory, expected a file") from exc


def read_lines(path: str) -> List[str]:
    return read_text(path).splitlines()


def list_names(path: str) -> List[str]:
    """Return sorted entry names of a directory, or [] when it does not exist."""
    try:
        return sorted(os.listdir(path))
    except FileNotFoundError:
        return []


def trim_quotes(value: str) -> str:
    """Strip one matching pair of surrounding quotes.

    >>> trim_quotes('"foo"')
    'foo'
    >>> trim_quotes('"foo')
    '"foo'
    """
    for quote in QUOTE_CHARS:
        if len(value) >= 2 and value.startswith(quote) and value.endswith(quote):
            return value[1:-1]
    return value
