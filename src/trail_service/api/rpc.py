# src/trail_service/api/rpc.py

"""
RPC router for TrailShare.

Every procedure lives under one endpoint, /trpc/<procedure>:
    - queries are called with GET, input as URL-encoded JSON in ?input=
    - mutations are called with POST, input as the JSON body

Responses:
    success  {"result": {"data": ...}}
    failure  {"error": {"code": ..., "message": ..., "path": ..., "httpStatus": ...}}
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ..errors import TrackNotFoundError, ValidationError
from ..processors import track_processor
from ..processors.track_processor import Found, NotFound

logger = logging.getLogger(__name__)

QUERY = "query"
MUTATION = "mutation"


@dataclass(frozen=True)
class Procedure:
    name: str
    kind: str
    # handler(session, raw_input) -> JSON-ready value
    handler: Callable
    takes_input: bool = True
    needs_session: bool = True


class RPCError(Exception):
    """An error that maps straight onto an error envelope."""

    def __init__(self, code, message, http_status, issues=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.issues = issues


def _dump(value):
    """Turn handler results into plain JSON values. NotFound becomes null."""
    if isinstance(value, Found):
        return _dump(value.track)
    if isinstance(value, NotFound):
        return None
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    if isinstance(value, datetime):
        # stored as naive UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat(timespec="microseconds")
    return value


def healthcheck():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat(timespec="microseconds")}


def build_procedures():
    """The static route table: procedure name -> Procedure."""
    procedures = [
        Procedure("healthcheck", QUERY, lambda session, _: healthcheck(),
                  takes_input=False, needs_session=False),
        Procedure("createTrack", MUTATION, track_processor.create_track),
        Procedure("getTracks", QUERY, lambda session, _: track_processor.get_tracks(session),
                  takes_input=False),
        Procedure("getTrack", QUERY, track_processor.get_track),
        Procedure("updateTrack", MUTATION, track_processor.update_track),
        Procedure("deleteTrack", MUTATION, track_processor.delete_track),
    ]
    return {procedure.name: procedure for procedure in procedures}


def _read_input(procedure):
    """Pull the raw input for procedure out of the current request."""
    if not procedure.takes_input:
        return None

    if procedure.kind == QUERY:
        raw = request.args.get("input")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            raise RPCError("BAD_REQUEST", "Query input is not valid JSON", 400)

    if not request.get_data(cache=True):
        return None
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        raise RPCError("BAD_REQUEST", "Request body is not valid JSON", 400)
    return payload


def _error_response(name, error):
    body = {
        "code": error.code,
        "message": error.message,
        "path": name,
        "httpStatus": error.http_status,
    }
    if error.issues:
        body["issues"] = error.issues
    return jsonify({"error": body}), error.http_status


def create_rpc_blueprint(SessionLocal, procedures: Optional[dict] = None):
    """
    Factory that creates the RPC blueprint with access to SessionLocal.
    Each call gets its own session, closed when the call returns.
    """
    bp = Blueprint("rpc", __name__, url_prefix="/trpc")
    table = procedures if procedures is not None else build_procedures()

    @bp.route("/<name>", methods=["GET", "POST"])
    def call(name):
        procedure = table.get(name)
        try:
            if procedure is None:
                raise RPCError("NOT_FOUND", f"No procedure named '{name}'", 404)

            expected = "GET" if procedure.kind == QUERY else "POST"
            if request.method != expected:
                raise RPCError(
                    "METHOD_NOT_SUPPORTED",
                    f"'{name}' is a {procedure.kind}, call it with {expected}",
                    405,
                )

            raw_input = _read_input(procedure)

            if not procedure.needs_session:
                result = procedure.handler(None, raw_input)
            else:
                with SessionLocal() as session:
                    result = procedure.handler(session, raw_input)

            return jsonify({"result": {"data": _dump(result)}}), 200

        except RPCError as e:
            return _error_response(name, e)
        except ValidationError as e:
            logger.warning(f"RPC {name}: {e.message}")
            return _error_response(name, RPCError("BAD_REQUEST", e.message, 400, e.issues))
        except TrackNotFoundError as e:
            return _error_response(name, RPCError("NOT_FOUND", str(e), 404))
        except SQLAlchemyError as e:
            logger.error(f"RPC {name} failed on the database: {e}")
            return _error_response(
                name, RPCError("INTERNAL_SERVER_ERROR", "Database error", 500)
            )
        except HTTPException:
            # e.g. 413 from an oversized body, handled by the app error handlers
            raise
        except Exception:
            logger.error(f"RPC {name} failed", exc_info=True)
            return _error_response(
                name, RPCError("INTERNAL_SERVER_ERROR", "Internal server error", 500)
            )

    return bp
