"""
errors.py
----------
Exceptions raised by the TrailShare handlers.

Database failures are not wrapped: they surface as SQLAlchemyError
exactly as SQLAlchemy raised them.
"""


class TrailShareError(Exception):
    """Base class for errors raised on purpose by this service."""


class ValidationError(TrailShareError):
    """
    The input did not match its schema. Raised before the store is touched.

    issues is a list of {"path": [...], "message": str, "type": str} dicts,
    one per failing field.
    """

    def __init__(self, message, issues=None):
        super().__init__(message)
        self.message = message
        self.issues = issues or []


class TrackNotFoundError(TrailShareError):
    """Raised by delete when no track has the given id."""

    def __init__(self, track_id):
        super().__init__(f"Track with ID {track_id} not found")
        self.track_id = track_id
