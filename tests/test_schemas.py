"""
Tests for the RPC input schemas and the parse_* helpers built on them.
"""

import pytest

from trail_service.db.models import FileType
from trail_service.errors import ValidationError
from trail_service.schemas import (
    GET_TRACK_SCHEMA,
    INT32_MAX,
    INT32_MIN,
    UNSET,
    parse_create_track,
    parse_delete_track,
    parse_get_track,
    parse_update_track,
    validate_input,
)

VALID_CREATE = {
    "title": "Hike",
    "description": None,
    "file_name": "hike.gpx",
    "file_type": "gpx",
    "file_size": 10,
    "track_data": "<gpx/>",
}


def test_create_input_accepts_valid_data():
    data = parse_create_track(VALID_CREATE)
    assert data.file_type == FileType.GPX
    assert data.description is None
    assert data.file_size == 10


def test_create_input_title_limits():
    assert parse_create_track(dict(VALID_CREATE, title="x" * 200)).title == "x" * 200
    with pytest.raises(ValidationError):
        parse_create_track(dict(VALID_CREATE, title="x" * 201))


def test_create_input_file_size_must_be_a_number_not_text():
    with pytest.raises(ValidationError):
        parse_create_track(dict(VALID_CREATE, file_size="10"))
    with pytest.raises(ValidationError):
        parse_create_track(dict(VALID_CREATE, file_size=10.5))


def test_create_input_ignores_unknown_keys():
    data = parse_create_track(dict(VALID_CREATE, owner="someone"))
    assert not hasattr(data, "owner")


def test_validation_error_lists_every_bad_field():
    with pytest.raises(ValidationError) as excinfo:
        parse_create_track(dict(VALID_CREATE, title="", track_data=""))

    paths = [issue["path"] for issue in excinfo.value.issues]
    assert paths == [["title"], ["track_data"]]
    assert all(issue["type"] == "minLength" for issue in excinfo.value.issues)
    assert "CreateTrackInput" in excinfo.value.message


def test_missing_key_is_reported_at_the_top_level():
    data = dict(VALID_CREATE)
    del data["file_type"]

    with pytest.raises(ValidationError) as excinfo:
        parse_create_track(data)

    issue = excinfo.value.issues[0]
    assert issue["path"] == []
    assert issue["type"] == "required"
    assert "file_type" in issue["message"]


def test_update_input_tells_omitted_from_null():
    omitted = parse_update_track({"id": 1})
    cleared = parse_update_track({"id": 1, "description": None})

    assert omitted.description is UNSET
    assert omitted.title is UNSET
    assert cleared.description is None


def test_update_input_rejects_empty_title():
    with pytest.raises(ValidationError):
        parse_update_track({"id": 1, "title": ""})


@pytest.mark.parametrize("parse", [parse_get_track, parse_delete_track, parse_update_track])
def test_id_is_required_and_integer(parse):
    with pytest.raises(ValidationError):
        parse({})
    with pytest.raises(ValidationError):
        parse({"id": "1"})
    assert parse({"id": 7}).id == 7


@pytest.mark.parametrize("data", [[1, 2, 3], None, "7"])
def test_non_object_input_is_rejected(data):
    with pytest.raises(ValidationError):
        parse_get_track(data)


def test_validate_input_passes_good_data():
    assert validate_input(GET_TRACK_SCHEMA, {"id": 3}, "GetTrackInput") is None


@pytest.mark.parametrize("parse", [parse_get_track, parse_delete_track, parse_update_track])
def test_id_must_fit_the_id_column(parse):
    assert parse({"id": INT32_MAX}).id == INT32_MAX
    assert parse({"id": INT32_MIN}).id == INT32_MIN

    for too_big in (INT32_MAX + 1, 2 ** 64, 1e300):
        with pytest.raises(ValidationError) as excinfo:
            parse({"id": too_big})
        assert excinfo.value.issues[0]["path"] == ["id"]
        assert excinfo.value.issues[0]["type"] == "maximum"

    with pytest.raises(ValidationError):
        parse({"id": INT32_MIN - 1})


@pytest.mark.parametrize("file_size", [INT32_MAX + 1, 2 ** 64, 1e300])
def test_create_input_file_size_upper_bound(file_size):
    with pytest.raises(ValidationError) as excinfo:
        parse_create_track(dict(VALID_CREATE, file_size=file_size))

    assert excinfo.value.issues[0]["path"] == ["file_size"]


def test_create_input_largest_file_size_is_accepted():
    assert parse_create_track(dict(VALID_CREATE, file_size=INT32_MAX)).file_size == INT32_MAX
