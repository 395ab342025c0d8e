from __future__ import annotations

from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field

RECORD_MARKER = "... "
"""Every non-blank line of `p4 -z tag` output starts with this marker."""

DEFAULT_FILE_SPEC = "..."

FSTAT_FIELDS: tuple[str, ...] = ("depotFile", "headAction", "headChange", "headType", "digest")

FSTAT_DELETED_FILTER = (
    "^(headAction=move/delete | headAction=purge | headAction=archive | headAction=delete)"
)

ENV_VARIABLES: dict[str, str] = {
    "port": "P4PORT",
    "user": "P4USER",
    "client": "P4CLIENT",
    "charset": "P4CHARSET",
}


class RecordField(StrEnum):
    """Attributes of a `FileRecord` that tagged lines can set."""

    PATH = auto()
    ACTION = auto()
    CHANGE_NUMBER = auto()
    TYPE = auto()
    DIGEST = auto()


# tag -> (field, rank); a value is only replaced by a tag of equal or higher rank,
# so the head* variants win over their plain counterparts whatever the line order.
TAG_FIELDS: dict[str, tuple[RecordField, int]] = {
    "action": (RecordField.ACTION, 0),
    "headAction": (RecordField.ACTION, 1),
    "change": (RecordField.CHANGE_NUMBER, 0),
    "headChange": (RecordField.CHANGE_NUMBER, 1),
    "type": (RecordField.TYPE, 0),
    "headType": (RecordField.TYPE, 1),
    "digest": (RecordField.DIGEST, 0),
}

DEPOT_FILE_TAG = "depotFile"


class FileRecord(BaseModel):
    """One file reported by `p4 fstat` (or any tagged command listing depot files).

    Attributes:
        path: Path relative to the stream root, ie 'Engine/foo', not '//UE4/Release/Engine/foo'.
        action: Last action on the file (add, edit, delete...), may be empty.
        change_number: Changelist of that action.
        type: Perforce file type (text, binary+l...), may be empty.
        digest: MD5 digest of the head revision, may be empty.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path relative to the stream root")
    action: str = Field("", description="Last known file action")
    change_number: str = Field("", description="Changelist of the last action")
    type: str = Field("", description="Perforce file type")
    digest: str = Field("", description="Content digest")
