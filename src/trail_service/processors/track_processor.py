"""
track_processor.py
This code creates, reads, updates and deletes GPS tracks in the database.
Every function takes an open SQLAlchemy session; the caller owns the session
and closes it (the RPC layer opens one per request).

Lookups that may miss (get_track, update_track) return a tagged result,
either Found(track) or NotFound(track_id). delete_track raises
TrackNotFoundError instead. Callers rely on that difference, keep it.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import FileType, Track, utcnow
from ..errors import TrackNotFoundError
from ..schemas import (
    UNSET,
    CreateTrackInput,
    DeleteTrackInput,
    GetTrackInput,
    UpdateTrackInput,
    parse_create_track,
    parse_delete_track,
    parse_get_track,
    parse_update_track,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    track: dict


@dataclass(frozen=True)
class NotFound:
    track_id: int


def _as_input(input_class, parse, data):
    """Accept either an already validated input object or raw request data."""
    if isinstance(data, input_class):
        return data
    return parse(data)


def serialize_track(track):
    """Convert a Track row into a plain dictionary."""
    return {
        "id": track.id,
        "title": track.title,
        "description": track.description,
        "file_name": track.file_name,
        "file_type": FileType(track.file_type).value,
        "file_size": track.file_size,
        "track_data": track.track_data,
        "created_at": track.created_at,
        "updated_at": track.updated_at,
    }


def _lock_track(session, track_id):
    """Select one track by id, locking its row until the transaction ends."""
    statement = select(Track).where(Track.id == track_id).with_for_update()
    return session.scalars(statement).first()


def create_track(session: Session, data) -> dict:
    """
    Insert a new track and return it as stored.
    track_data is saved verbatim, nothing is parsed or de-duplicated.
    """
    data = _as_input(CreateTrackInput, parse_create_track, data)

    # Both timestamps come from the same clock reading
    now = utcnow()
    track = Track(
        title=data.title,
        description=data.description,
        file_name=data.file_name,
        file_type=data.file_type,
        file_size=data.file_size,
        track_data=data.track_data,
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(track)
        session.flush()
        record = serialize_track(track)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Track creation failed: {e}")
        raise

    logger.info(f"Created track {record['id']} ({record['file_name']}, {record['file_size']} bytes)")
    return record


def get_tracks(session: Session) -> list:
    """Return every track in insertion order. Empty list if there are none."""
    try:
        result = session.scalars(select(Track).order_by(Track.id))
        return [serialize_track(track) for track in result]
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch tracks: {e}")
        raise


def get_track(session: Session, data):
    """Return Found(track) for the given id, or NotFound(id) if there is no such track."""
    data = _as_input(GetTrackInput, parse_get_track, data)

    try:
        track = session.get(Track, data.id)
    except SQLAlchemyError as e:
        logger.error(f"Track retrieval failed: {e}")
        raise

    if track is None:
        return NotFound(data.id)
    return Found(serialize_track(track))


def update_track(session: Session, data):
    """
    Change title and/or description of a track.

    Only the fields present in the input are applied: an omitted description
    stays as it is, an explicit None clears it. updated_at is always refreshed,
    even when neither field is given. File fields and created_at are never touched.

    Returns Found(updated track) or NotFound(id).
    """
    data = _as_input(UpdateTrackInput, parse_update_track, data)
    try:
        track = _lock_track(session, data.id)
        if track is None:
            session.rollback()
            return NotFound(data.id)

        if data.title is not UNSET:
            track.title = data.title
        if data.description is not UNSET:
            track.description = data.description

        # updated_at must move forward even if the clock hasn't ticked
        now = utcnow()
        if track.updated_at is not None and now <= track.updated_at:
            now = track.updated_at + timedelta(microseconds=1)
        track.updated_at = now

        session.flush()
        record = serialize_track(track)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Track update failed: {e}")
        raise

    logger.info(f"Updated track {data.id}")
    return Found(record)


def delete_track(session: Session, data) -> dict:
    """
    Delete a track permanently.
    Raises TrackNotFoundError if no track has the given id.
    """
    data = _as_input(DeleteTrackInput, parse_delete_track, data)

    try:
        track = _lock_track(session, data.id)
        if track is None:
            session.rollback()
            raise TrackNotFoundError(data.id)

        session.delete(track)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Track deletion failed: {e}")
        raise
    except TrackNotFoundError as e:
        logger.error(f"Track deletion failed: {e}")
        raise

    logger.info(f"Deleted track {data.id}")
    return {
        "success": True,
        "message": f"Track with ID {data.id} has been deleted successfully",
    }
