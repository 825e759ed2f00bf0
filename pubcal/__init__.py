from flask import Flask, Response, jsonify, request

from .config import PubcalConfig
from .exceptions import (
    ArtifactNotFoundError,
    CalendarNotFoundError,
    ConflictError,
    PubcalError,
    ValidationError,
)
from .processing.calendar_manager import CalendarManager

_STATUS_CODES = {
    ValidationError: 400,
    CalendarNotFoundError: 404,
    ArtifactNotFoundError: 404,
    ConflictError: 409,
}


def _status_code(error: PubcalError) -> int:
    for error_type, status in _STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 500


def create_app(
    config: PubcalConfig | None = None, manager: CalendarManager | None = None
):
    app = Flask(__name__)
    config = config or PubcalConfig.from_env()
    manager = manager or CalendarManager.from_config(config)
    app.config["PUBCAL"] = config
    app.extensions["pubcal_manager"] = manager

    @app.errorhandler(PubcalError)
    def calendar_error(error: PubcalError):
        app.logger.error(f"{type(error).__name__}: {error}")
        body = {"status": "failed", "error": str(error)}
        if error.outcome is not None:
            body["outcome"] = error.outcome.value
        return jsonify(body), _status_code(error)

    def _calendar_payload():
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or "calendar" not in body:
            return None
        return body["calendar"]

    @app.route("/calendars/new", methods=["POST"])
    def create_calendar():
        payload = _calendar_payload()
        if payload is None:
            app.logger.warning("No calendar found in request")
            return jsonify({"status": "failed", "error": "no calendar"}), 400

        record = manager.create_calendar(payload)
        return jsonify({"status": "success", "id": record.id})

    @app.route("/calendars/<calendar_id>", methods=["PUT"])
    def update_calendar(calendar_id):
        payload = _calendar_payload()
        if payload is None:
            return jsonify({"status": "failed", "error": "no calendar"}), 400

        record = manager.update_calendar(calendar_id, payload)
        return jsonify({"status": "success", "id": record.id})

    @app.route("/calendars/<calendar_id>", methods=["DELETE"])
    def delete_calendar(calendar_id):
        manager.delete_calendar(calendar_id)
        return jsonify({"status": "success"})

    @app.route("/calendars/<calendar_id>", methods=["GET"])
    @app.route("/calendars/<calendar_id>/json", methods=["GET"])
    def get_calendar(calendar_id):
        """Calendar record without storage internals."""
        record = manager.get_calendar(calendar_id)
        return jsonify(record.public_dict())

    @app.route("/calendars/<calendar_id>/download", methods=["GET"])
    def download_calendar(calendar_id):
        """Serve the published calendar file."""
        record = manager.get_calendar(calendar_id)
        ical_content = manager.get_artifact_bytes(calendar_id)
        return Response(
            ical_content,
            content_type="text/calendar; charset=utf-8",
            headers={
                "Content-Disposition": f"attachment; filename={record.artifact_filename}"
            },
        )

    @app.route("/calendars/search", methods=["POST"])
    def search_calendars():
        body = request.get_json(silent=True) or {}
        query = body.get("query", "")
        try:
            skip = int(body.get("skip", 0))
        except (TypeError, ValueError):
            return jsonify({"status": "failed", "error": "skip must be a number"}), 400

        records = manager.search_calendars(
            query, skip=skip, limit=config.search_page_size
        )
        return jsonify([r.public_dict() for r in records])

    return app
