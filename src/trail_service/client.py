"""
client.py
This code calls the TrailShare RPC endpoint from Python (scripts, smoke tests).

Here is how you use it:
    client = TrailShareClient("http://localhost:2022")
    track = client.create_track(title="Morning Hike", description=None,
                                file_name="hike.gpx", file_type="gpx",
                                file_size=1024, track_data="<gpx>...</gpx>")
    client.get_track(track["id"])
"""

import json
import logging

import requests

logger = logging.getLogger(__name__)

# Marks an argument the caller did not pass (None means "set to null")
_UNSET = object()


class RPCError(Exception):
    """The server rejected a call. code is the RPC error code, e.g. NOT_FOUND."""

    def __init__(self, code, message, http_status=None, issues=None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.http_status = http_status
        self.issues = issues or []


class TrailShareClient:
    def __init__(self, base_url="http://localhost:2022", timeout=10, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _unwrap(self, procedure, response):
        try:
            payload = response.json()
        except ValueError:
            response.raise_for_status()
            raise RPCError("PARSE_ERROR", f"{procedure} returned a non-JSON response",
                           response.status_code)

        if "error" in payload:
            error = payload["error"]
            logger.error(f"RPC {procedure} failed: {error.get('message')}")
            raise RPCError(
                error.get("code", "INTERNAL_SERVER_ERROR"),
                error.get("message", ""),
                error.get("httpStatus", response.status_code),
                error.get("issues"),
            )
        return payload["result"]["data"]

    def query(self, procedure, data=None):
        """Call a query procedure (GET)."""
        params = {"input": json.dumps(data)} if data is not None else None
        response = self.session.get(f"{self.base_url}/trpc/{procedure}",
                                    params=params, timeout=self.timeout)
        return self._unwrap(procedure, response)

    def mutate(self, procedure, data):
        """Call a mutation procedure (POST)."""
        response = self.session.post(f"{self.base_url}/trpc/{procedure}",
                                     json=data, timeout=self.timeout)
        return self._unwrap(procedure, response)

    def healthcheck(self):
        return self.query("healthcheck")

    def create_track(self, title, description, file_name, file_type, file_size, track_data):
        return self.mutate("createTrack", {
            "title": title,
            "description": description,
            "file_name": file_name,
            "file_type": file_type,
            "file_size": file_size,
            "track_data": track_data,
        })

    def get_tracks(self):
        return self.query("getTracks")

    def get_track(self, track_id):
        """Returns the track dict, or None if there is no such track."""
        return self.query("getTrack", {"id": track_id})

    def update_track(self, track_id, title=_UNSET, description=_UNSET):
        """
        Only the arguments actually passed are sent, so
        update_track(1, description=None) clears the description while
        update_track(1) leaves it alone. Returns None if there is no such track.
        """
        data = {"id": track_id}
        if title is not _UNSET:
            data["title"] = title
        if description is not _UNSET:
            data["description"] = description
        return self.mutate("updateTrack", data)

    def delete_track(self, track_id):
        """Raises RPCError with code NOT_FOUND if there is no such track."""
        return self.mutate("deleteTrack", {"id": track_id})
