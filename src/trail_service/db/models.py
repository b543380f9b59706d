"""
models.py
----------
Defines the PostgreSQL table for TrailShare using SQLAlchemy ORM.
There is a single table: one row per uploaded GPS track file.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from .session import Base


def utcnow():
    """Current UTC time as a naive datetime (the columns store no timezone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FileType(str, enum.Enum):
    """Supported GPS track formats."""
    GPX = "gpx"
    KML = "kml"


class Track(Base):
    """
    Represents one uploaded GPS track (GPX or KML).

    Columns:
        id          - primary key, generated on insert
        title       - display title, 1-200 characters
        description - free text, can be NULL
        file_name   - original name of the uploaded file
        file_type   - 'gpx' or 'kml'
        file_size   - size of the uploaded file in bytes
        track_data  - raw file contents, stored verbatim
        created_at  - set once on insert
        updated_at  - set on insert, refreshed on every update

    file_name, file_type, file_size and track_data never change after insert.
    """
    __tablename__ = "tracks"

    # Primary key: automatically incremented ID
    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    file_name = Column(Text, nullable=False)

    # Stored as the enum values ('gpx', 'kml'), not the member names
    file_type = Column(
        Enum(FileType, name="file_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    file_size = Column(Integer, nullable=False)
    track_data = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Track(id={self.id}, title={self.title!r}, file_type={self.file_type})>"
