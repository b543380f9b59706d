"""
PostgreSQL CRUD test for the track processor.
Runs the five track operations against a real PostgreSQL (settings from .env / PG_* variables).
Skipped when the database is not reachable.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from trail_service.config import build_database_url
from trail_service.db.session import create_db_engine, create_session_factory, create_tables
from trail_service.processors.track_processor import (
    NotFound,
    create_track,
    delete_track,
    get_track,
    get_tracks,
    update_track,
)

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def SessionLocal():
    url = build_database_url()
    if not url.startswith("postgresql"):
        pytest.skip("DATABASE_URL does not point at PostgreSQL")

    engine = create_db_engine(url)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError:
        pytest.skip("PostgreSQL not available")

    create_tables(engine)
    yield create_session_factory(engine)
    engine.dispose()


def test_postgresql_crud(SessionLocal):
    """Create, read, update and delete one track on PostgreSQL."""
    with SessionLocal() as session:
        created = create_track(session, {
            "title": "Integration Track",
            "description": None,
            "file_name": "integration.gpx",
            "file_type": "gpx",
            "file_size": 64,
            "track_data": '<gpx version="1.1"></gpx>',
        })

    with SessionLocal() as session:
        assert get_track(session, {"id": created["id"]}).track == created
        assert created["id"] in [t["id"] for t in get_tracks(session)]

    with SessionLocal() as session:
        updated = update_track(session, {"id": created["id"], "description": "Checked"}).track
        assert updated["description"] == "Checked"
        assert updated["updated_at"] > created["updated_at"]

    with SessionLocal() as session:
        assert delete_track(session, {"id": created["id"]})["success"] is True

    with SessionLocal() as session:
        assert get_track(session, {"id": created["id"]}) == NotFound(created["id"])
