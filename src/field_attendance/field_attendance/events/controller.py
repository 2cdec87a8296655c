from __future__ import annotations

from flask import Flask, current_app, jsonify, request

from ..attendance.controller import error_response, outcome_response
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    processor = container.event_processor

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="device_scan")
    def device_scan():
        """Reader posts ``{card_uid, deviceId, scanId?}`` and gets the outcome back."""
        try:
            return outcome_response(processor.handle_scan(request.get_json(silent=True) or {}))
        except Exception as e:
            return error_response(e)

    @app.route("/api/iot/logs", methods=["POST"], endpoint="iot_log_push")
    def iot_log_push():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"success": False, "message": "JSON object required"}), 400
        try:
            event_id = container.event_queue.push_event(payload)
            return jsonify({"success": True, "eventId": event_id}), 202
        except Exception as e:
            return error_response(e)

    @app.route("/api/iot/drain", methods=["POST"], endpoint="iot_drain")
    def iot_drain():
        try:
            limit = int(request.args.get("limit", current_app.config.get("IOT_DRAIN_LIMIT", 100)))
            if limit < 1:
                raise ValidationError("limit must be positive")
            report = processor.drain(limit)
            return jsonify(
                {
                    "success": True,
                    "processed": report.processed,
                    "malformed": report.malformed,
                    "outcomes": report.outcomes,
                }
            ), 200
        except ValueError:
            return error_response(ValidationError("limit must be an integer"))
        except Exception as e:
            return error_response(e)
