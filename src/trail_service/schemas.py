"""
schemas.py
-----------
JSON schemas for the RPC inputs, and the small input objects built from them.

UpdateTrackInput has to tell an omitted description apart from an explicit
null, so fields the caller didn't send are left as UNSET rather than None.
"""

from dataclasses import dataclass
from typing import Any

from jsonschema import Draft7Validator

from .db.models import FileType
from .errors import ValidationError

TITLE_MAX_LENGTH = 200
# ids and sizes are stored in 32-bit INTEGER columns
INT32_MIN = -2147483648
INT32_MAX = 2147483647


class _Unset:
    """Marks a field the caller did not send."""

    def __repr__(self):
        return "UNSET"


UNSET = _Unset()

_ID = {"type": "integer", "minimum": INT32_MIN, "maximum": INT32_MAX}
_TITLE = {"type": "string", "minLength": 1, "maxLength": TITLE_MAX_LENGTH}

# Unknown keys are allowed and ignored
CREATE_TRACK_SCHEMA = {
    "type": "object",
    "required": ["title", "description", "file_name", "file_type", "file_size", "track_data"],
    "properties": {
        "title": _TITLE,
        # required key, but may be null
        "description": {"type": ["string", "null"]},
        "file_name": {"type": "string", "minLength": 1},
        "file_type": {"enum": [file_type.value for file_type in FileType]},
        "file_size": {"type": "integer", "exclusiveMinimum": 0, "maximum": INT32_MAX},
        "track_data": {"type": "string", "minLength": 1},
    },
}

UPDATE_TRACK_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": _ID,
        # title may be omitted but never null
        "title": _TITLE,
        "description": {"type": ["string", "null"]},
    },
}

GET_TRACK_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {"id": _ID},
}

DELETE_TRACK_SCHEMA = GET_TRACK_SCHEMA


@dataclass(frozen=True)
class CreateTrackInput:
    title: str
    description: Any
    file_name: str
    file_type: FileType
    file_size: int
    track_data: str


@dataclass(frozen=True)
class UpdateTrackInput:
    id: int
    title: Any = UNSET
    description: Any = UNSET


@dataclass(frozen=True)
class GetTrackInput:
    id: int


@dataclass(frozen=True)
class DeleteTrackInput:
    id: int


def validate_input(schema, data, name):
    """
    Check data against schema.
    Raises ValidationError listing every failing field, sorted by field path.
    """
    errors = sorted(Draft7Validator(schema).iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return

    issues = [
        {
            "path": [str(part) for part in error.path],
            "message": error.message,
            "type": error.validator,
        }
        for error in errors
    ]
    summary = "; ".join(f"{'.'.join(issue['path']) or 'input'}: {issue['message']}" for issue in issues)
    raise ValidationError(f"Invalid {name}: {summary}", issues)


def parse_create_track(data):
    validate_input(CREATE_TRACK_SCHEMA, data, "CreateTrackInput")
    return CreateTrackInput(
        title=data["title"],
        description=data["description"],
        file_name=data["file_name"],
        file_type=FileType(data["file_type"]),
        file_size=int(data["file_size"]),
        track_data=data["track_data"],
    )


def parse_update_track(data):
    validate_input(UPDATE_TRACK_SCHEMA, data, "UpdateTrackInput")
    return UpdateTrackInput(
        id=int(data["id"]),
        title=data.get("title", UNSET),
        description=data.get("description", UNSET),
    )


def parse_get_track(data):
    validate_input(GET_TRACK_SCHEMA, data, "GetTrackInput")
    return GetTrackInput(id=int(data["id"]))


def parse_delete_track(data):
    validate_input(DELETE_TRACK_SCHEMA, data, "DeleteTrackInput")
    return DeleteTrackInput(id=int(data["id"]))
