"""Escaping of the characters Perforce reserves in file specifications.

`@`, `#`, `*` and `%` have a meaning of their own in a file spec (revision,
changelist, wildcard, escape). Paths holding them must be written as `%XX`
codes before being handed to p4, and p4 reports them that way too.
"""

from __future__ import annotations

import string

from p4_listing.exceptions import EscapeSequenceError

RESERVED_ESCAPES: dict[str, str] = {
    "@": "%40",
    "#": "%23",
    "*": "%2A",
    "%": "%25",
}

_ESCAPE_TABLE = str.maketrans(RESERVED_ESCAPES)
_HEX_DIGITS = frozenset(string.hexdigits)


def escape_path(path: str) -> str:
    """Replace each reserved character of `path` by its `%XX` code.

    Args:
        path (str): the raw path, any other character is kept as is

    Returns:
        str: the escaped path
    """
    return path.translate(_ESCAPE_TABLE)


def unescape_path(path: str) -> str:
    """Decode every `%XX` code of `path` back to the character it stands for.

    Args:
        path (str): an escaped path

    Raises:
        EscapeSequenceError: if a `%` is not followed by two hexadecimal digits.

    Returns:
        str: the unescaped path
    """
    parts: list[str] = []
    start = 0
    pos = path.find("%")
    while pos >= 0:
        code = path[pos + 1 : pos + 3]
        if len(code) < 2 or not _HEX_DIGITS.issuperset(code):  # noqa: PLR2004
            raise EscapeSequenceError(path=path, fragment=path[pos : pos + 3])
        parts.append(path[start:pos])
        parts.append(chr(int(code, 16)))
        start = pos + 3
        pos = path.find("%", start)
    parts.append(path[start:])
    return "".join(parts)
