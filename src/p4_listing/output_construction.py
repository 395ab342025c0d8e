from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import yaml

from p4_listing.settings import OutputFormat

if TYPE_CHECKING:
    from collections.abc import Sequence

    from p4_listing.config import FileRecord


def build_text(recs: Sequence[FileRecord]) -> str:
    """Build one tab-separated line per record: path, action, change, type and digest.

    Args:
        recs (Sequence[FileRecord]): the records to render

    Returns:
        str: the rendered records, empty when there are none
    """
    out = io.StringIO()
    for rec in recs:
        out.write("\t".join((rec.path, rec.action, rec.change_number, rec.type, rec.digest)))
        out.write("\n")
    return out.getvalue()


def build_jsonl(recs: Sequence[FileRecord]) -> str:
    """Build one JSON object per line and per record."""
    buf = io.StringIO()
    for rec in recs:
        buf.write(json.dumps(rec.model_dump(), ensure_ascii=False) + "\n")
    return buf.getvalue()


def build_yaml(recs: Sequence[FileRecord]) -> str:
    return yaml.safe_dump(
        [rec.model_dump() for rec in recs],
        sort_keys=False,
        allow_unicode=True,
    )


def render_records(recs: Sequence[FileRecord], output_format: OutputFormat) -> str:
    """Render records in the requested format.

    Args:
        recs (Sequence[FileRecord]): the records to render, already ordered
        output_format (OutputFormat): text, jsonl or yaml

    Returns:
        str: the rendered records
    """
    if output_format is OutputFormat.JSONL:
        return build_jsonl(recs)
    if output_format is OutputFormat.YAML:
        return build_yaml(recs)
    return build_text(recs)
