"""
app.py: Main Flask application for TrailShare.

This service stores GPS track files (GPX/KML) and their metadata:
- RPC endpoint /trpc/<procedure> for creating, listing, reading, updating and deleting tracks.
- Browser client at / for browsing, uploading and viewing tracks.
- Open API (Swagger) integration for documentation.
- Uses SQLAlchemy for PG interactions.

Run with: python -m trail_service.app (starts on port 2022).
"""

import atexit
import dataclasses
import io
import logging

from flask import Flask, jsonify, render_template, send_file
from flask_cors import CORS
from flask_swagger_ui import get_swaggerui_blueprint
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from .api.rpc import create_rpc_blueprint
from .config import Config
from .db.models import FileType, Track
from .db.session import create_db_engine, create_session_factory, create_tables
from .schemas import CREATE_TRACK_SCHEMA, DELETE_TRACK_SCHEMA, GET_TRACK_SCHEMA, UPDATE_TRACK_SCHEMA

logger = logging.getLogger(__name__)

# Swagger UI configuration
SWAGGER_URL = '/swagger'  # URL for Swagger UI (e.g., http://localhost:2022/swagger)
API_URL = '/swagger.json'

SWAGGER_CONFIG = {
    'app_name': "TrailShare API",
    'deepLinking': True,
    'defaultModelsExpandDepth': -1,
}

CONTENT_TYPES = {
    FileType.GPX: "application/gpx+xml",
    FileType.KML: "application/vnd.google-earth.kml+xml",
}


def create_app(config=None, database_url=None):
    """
    Build the Flask app: database engine, tables, RPC blueprint, pages.

    config defaults to Config.from_env(); database_url overrides its URL
    (tests pass "sqlite://").
    """
    config = config or Config.from_env()
    if database_url is not None:
        config = dataclasses.replace(config, database_url=database_url)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes
    app.config["TRAILSHARE"] = config

    # Make sure INFO-level logs show up
    app.logger.setLevel(config.log_level)

    # Use Flask CORS to allow the RPC endpoint to be called from other sites
    CORS(app, resources={r"/trpc/*": {"origins": config.cors_origins}})

    # Database engine (shared across requests)
    engine = create_db_engine(config.database_url, echo=config.sql_echo)
    create_tables(engine)
    SessionLocal = create_session_factory(engine)
    app.extensions["trailshare.engine"] = engine
    app.extensions["trailshare.sessions"] = SessionLocal

    app.register_blueprint(create_rpc_blueprint(SessionLocal))
    app.register_blueprint(get_swaggerui_blueprint(SWAGGER_URL, API_URL, config=SWAGGER_CONFIG))

    @app.route('/')
    @app.route('/index.htm')
    def main():
        """The landing page for the front-end"""
        return render_template("index.htm")

    @app.route('/tracks/<int:track_id>/download')
    def download_track(track_id):
        """Send the stored GPX/KML file back exactly as it was uploaded."""
        with SessionLocal() as session:
            track = session.get(Track, track_id)
            if track is None:
                return jsonify({"error": f"Track with ID {track_id} not found"}), 404
            # send_file quotes the name and adds filename* for non-ASCII names
            return send_file(
                io.BytesIO(track.track_data.encode("utf-8")),
                mimetype=CONTENT_TYPES[track.file_type],
                as_attachment=True,
                download_name=track.file_name,
            )

    # Basic health check endpoint (checks the database connection)
    @app.route('/health', methods=['GET'])
    def health():
        """
        Health check: verifies the database connection.
        Returns: {"status": "ok", "service": "trail_service", "database": true}
        """
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            database_status = True
        except OperationalError as e:
            app.logger.error(f"Database health check failed: {e}")
            database_status = False

        return jsonify({
            "status": "ok" if database_status else "error",
            "service": "trail_service",
            "database": database_status,
        })

    @app.route('/swagger.json', methods=['GET'])
    def swagger_spec():
        """Open API spec for the TrailShare endpoints."""
        return jsonify(openapi_spec())

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({"error": "Upload too large"}), 413

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "Internal server error"}), 500

    return app


CREATE_TRACK_EXAMPLE = {
    "title": "Morning Hike to Eagle Peak",
    "description": None,
    "file_name": "eagle_peak.gpx",
    "file_type": "gpx",
    "file_size": 1024,
    "track_data": "<gpx version=\"1.1\">...</gpx>",
}


def _openapi_schema(schema):
    """
    Rewrite a Draft 7 input schema in the OpenAPI 3.0 dialect:
    ["string", "null"] becomes nullable, a numeric exclusiveMinimum becomes
    minimum + exclusiveMinimum: true.
    """
    if isinstance(schema, list):
        return [_openapi_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    result = {key: _openapi_schema(value) for key, value in schema.items()}
    types = result.get("type")
    if isinstance(types, list):
        other = [t for t in types if t != "null"]
        result["type"] = other[0]
        if "null" in types:
            result["nullable"] = True
    if "exclusiveMinimum" in result:
        result["minimum"] = result["exclusiveMinimum"]
        result["exclusiveMinimum"] = True
    if "enum" in result and "type" not in result:
        result["type"] = "string"
    return result


def _procedure_path(name, summary, method, description, input_ref=None):
    operation = {
        "summary": summary,
        "tags": ["Tracks"] if name != "healthcheck" else ["Service"],
        "description": description,
        "responses": {
            "200": {"description": "Envelope {\"result\": {\"data\": ...}}"},
            "400": {"description": "Input failed validation (BAD_REQUEST)"},
            "500": {"description": "Database error (INTERNAL_SERVER_ERROR)"},
        },
    }
    if input_ref and method == "get":
        operation["parameters"] = [{
            "name": "input",
            "in": "query",
            "required": True,
            "description": f"URL-encoded JSON matching {input_ref}",
            "schema": {"type": "string"},
        }]
    elif input_ref:
        operation["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{input_ref}"}}},
        }
    return {method: operation}


def openapi_spec():
    """OpenAPI 3 document describing the RPC procedures and plain routes."""
    return {
        "openapi": "3.0.0",
        "info": {"title": "TrailShare API", "version": "1.0.0"},
        "paths": {
            "/health": {
                "get": {
                    "summary": "Health check",
                    "responses": {"200": {"description": "OK"}}
                }
            },
            "/trpc/healthcheck": _procedure_path(
                "healthcheck", "RPC health check", "get",
                "Returns {status, timestamp}."),
            "/trpc/createTrack": _procedure_path(
                "createTrack", "Upload a new GPS track", "post",
                "Stores the track file content verbatim and returns the saved track.",
                "CreateTrackInput"),
            "/trpc/getTracks": _procedure_path(
                "getTracks", "List all tracks", "get",
                "Returns every stored track, unpaginated."),
            "/trpc/getTrack": _procedure_path(
                "getTrack", "Get one track", "get",
                "Returns the track, or null if no track has that id.",
                "GetTrackInput"),
            "/trpc/updateTrack": _procedure_path(
                "updateTrack", "Update title/description", "post",
                "Omitted fields are kept, a null description clears it. "
                "Returns the updated track, or null if no track has that id.",
                "UpdateTrackInput"),
            "/trpc/deleteTrack": _procedure_path(
                "deleteTrack", "Delete a track", "post",
                "Deletes the track. Fails with NOT_FOUND (404) if no track has that id.",
                "DeleteTrackInput"),
            "/tracks/{track_id}/download": {
                "get": {
                    "summary": "Download the original GPX/KML file",
                    "tags": ["Tracks"],
                    "parameters": [{"name": "track_id", "in": "path", "required": True, "schema": {"type": "integer"}}],
                    "responses": {
                        "200": {"description": "The raw file"},
                        "404": {"description": "No such track"}
                    }
                }
            },
        },
        "components": {
            "schemas": {
                "CreateTrackInput": dict(_openapi_schema(CREATE_TRACK_SCHEMA), example=CREATE_TRACK_EXAMPLE),
                "GetTrackInput": _openapi_schema(GET_TRACK_SCHEMA),
                "UpdateTrackInput": _openapi_schema(UPDATE_TRACK_SCHEMA),
                "DeleteTrackInput": _openapi_schema(DELETE_TRACK_SCHEMA),
            }
        },
    }


def main():
    """Called when this app is started."""
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    app = create_app(config)
    # open at start, closed at shutdown
    atexit.register(app.extensions["trailshare.engine"].dispose)

    logger.info(f"TrailShare server listening at port: {config.server_port}")
    app.run(host=config.server_host, port=config.server_port, debug=config.debug)


if __name__ == '__main__':
    main()
