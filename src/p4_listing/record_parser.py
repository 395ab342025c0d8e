"""Parsing of `p4 -z tag` output into file records.

Tagged output holds one field per line, `... <tag> <value>`, and ends every
record with a blank line. The separator between a tag and its value may be
a space, a tab or nothing at all::

    ... depotFile //UE4/Release/Engine/foo.cpp
    ... headAction edit
    ... headChange 1234
    ... headType text
    ... digest 0CC175B9C0F1B6A831C399E269772661

"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from p4_listing.config import DEPOT_FILE_TAG, RECORD_MARKER, TAG_FIELDS, FileRecord, RecordField
from p4_listing.depot_paths import depot_prefix
from p4_listing.exceptions import MalformedLineError, MissingContextError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence


def _tagged_body(line: str) -> str:
    if len(line) <= len(RECORD_MARKER) or not line.startswith(RECORD_MARKER):
        raise MalformedLineError(line=line)
    body = line[len(RECORD_MARKER) :]
    if body[0].isspace():
        raise MalformedLineError(line=line)
    return body


def split_tagged_line(line: str) -> tuple[str, str]:
    """Split a non-blank tagged line into its tag and its value, on the first space.

    Args:
        line (str): a line such as '... headChange 1234', without surrounding whitespace

    Raises:
        MalformedLineError: if the line does not start with '... ' followed by a tag.

    Returns:
        tuple[str, str]: the tag and the value, the value being empty when absent
    """
    tag, _, value = _tagged_body(line).partition(" ")
    return tag, value.strip()


def match_known_tag(line: str, tags: Sequence[str]) -> tuple[str, str] | None:
    """Find which of `tags` a tagged line holds, whatever separates the tag from its value.

    `tags` are tried in order, so longer tags must come first. A tag directly
    followed by a letter, digit or underscore is another tag ('actionOwner' is
    not 'action').

    Args:
        line (str): a line such as '... headAction edit', without surrounding whitespace
        tags (Sequence[str]): the known tags, longest first

    Raises:
        MalformedLineError: if the line does not start with '... ' followed by a tag.

    Returns:
        tuple[str, str] | None: the tag and its value, or None for an unknown tag
    """
    body = _tagged_body(line)
    for tag in tags:
        if not body.startswith(tag):
            continue
        rest = body[len(tag) :]
        if rest and (rest[0].isalnum() or rest[0] == "_"):
            continue
        return tag, rest.strip()
    return None


def parse_spec(text: str) -> dict[str, str]:
    """Parse the tagged output of a spec command (`p4 -z tag client -o`...) into a mapping.

    Lines without the tag marker, such as continuation lines of a multi-line
    Description, are skipped.

    Args:
        text (str): the whole output of the command

    Returns:
        dict[str, str]: the value of each field, keyed by field name, in output order
    """
    spec: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line.startswith(RECORD_MARKER):
            continue
        tag, value = split_tagged_line(line)
        spec[tag] = value
    return spec


def order_records(records: Iterable[FileRecord]) -> list[FileRecord]:
    """Sort records by path, ignoring case; equal paths keep their original order."""
    return sorted(records, key=lambda rec: rec.path.lower())


@dataclass
class _PendingRecord:
    """Fields of the record being read, before its closing blank line."""

    values: dict[RecordField, str] = field(default_factory=dict)
    ranks: dict[RecordField, int] = field(default_factory=dict)

    def assign(self, target: RecordField, rank: int, value: str) -> None:
        if rank < self.ranks.get(target, 0):
            return
        self.values[target] = value
        self.ranks[target] = rank

    @property
    def path(self) -> str:
        return self.values.get(RecordField.PATH, "")

    def to_record(self) -> FileRecord:
        return FileRecord(**{str(key): value for key, value in self.values.items()})


class RecordParser:
    """Rebuild file records from tagged lines, one line at a time.

    The parser is meant to be handed to a line streamer as its line handler
    (`executor.stream_lines(args, parser.feed)`). Records are only kept once
    their closing blank line has been read.

    Paths are reported relative to the stream root. The root is computed once,
    from the first depot path seen, keeping `depth` segments after '//'. It is
    then removed from every path by length, since the depot part of a path may
    differ in case from one file to another.
    """

    def __init__(self, depth: int) -> None:
        if depth < 1:
            raise MissingContextError(subject=str(depth), reason="stream depth must be at least 1")
        self.depth = depth
        self.prefix = ""
        self.records: list[FileRecord] = []
        self._current = _PendingRecord()
        self._handlers: dict[str, Callable[[str], None]] = {DEPOT_FILE_TAG: self._on_depot_file}
        for tag, (target, rank) in TAG_FIELDS.items():
            self._handlers[tag] = partial(self._assign, target, rank)
        self._tags = sorted(self._handlers, key=len, reverse=True)

    def feed(self, raw_line: str) -> None:
        """Consume one line of output.

        Args:
            raw_line (str): the line, with or without surrounding whitespace

        Raises:
            MalformedLineError: if a non-blank line is not a tagged line.
            MissingContextError: if the stream root cannot be found in the first depot path.
        """
        line = raw_line.strip()
        if not line:
            self._flush()
            return
        match = match_known_tag(line, self._tags)
        if match is not None:
            tag, value = match
            self._handlers[tag](value)

    def feed_lines(self, lines: Iterable[str]) -> list[FileRecord]:
        """Consume every line of `lines`, then return the ordered records."""
        for line in lines:
            self.feed(line)
        return self.results()

    def results(self) -> list[FileRecord]:
        """Get the complete records read so far, sorted by path ignoring case."""
        return order_records(self.records)

    def _flush(self) -> None:
        if self._current.path:
            self.records.append(self._current.to_record())
        self._current = _PendingRecord()

    def _assign(self, target: RecordField, rank: int, value: str) -> None:
        self._current.assign(target, rank, value)

    def _on_depot_file(self, value: str) -> None:
        if not self.prefix:
            self.prefix = depot_prefix(value, self.depth)
        self._current.assign(RecordField.PATH, 0, value[len(self.prefix) :])


def parse_records(lines: Sequence[str], depth: int) -> list[FileRecord]:
    """Parse already captured tagged output into sorted file records."""
    return RecordParser(depth).feed_lines(lines)
