from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import parse_flag, require_non_empty
from ..container import Container
from ..core.enums import ConflictReason, OutcomeKind
from ..core.exceptions import DataIntegrityError, StoreUnavailableError, ValidationError
from ..geo.model import Coordinate
from .model import AttendanceSession, GeofenceCheck, ReconcileOutcome

logger = logging.getLogger(__name__)

CONFLICT_MESSAGES = {
    ConflictReason.ALREADY_OPEN: "Already checked in",
    ConflictReason.NO_OPEN_SESSION: "No active session to check out of",
    ConflictReason.EVENT_ALREADY_APPLIED: "Scan already recorded",
}

OUTCOME_STATUS_CODES = {
    OutcomeKind.CHECKED_IN: 201,
    OutcomeKind.CHECKED_OUT: 200,
    OutcomeKind.CONFLICT: 409,
    OutcomeKind.UNRESOLVED_IDENTITY: 404,
}


def _coord_json(coord: Optional[Coordinate]):
    if coord is None:
        return None
    return {"latitude": coord.latitude, "longitude": coord.longitude}


def _iso(value):
    return value.isoformat() if value else None


def _geofence_json(check: Optional[GeofenceCheck]):
    if check is None:
        return None
    return {
        "fieldId": check.field_id,
        "status": check.status.value,
        "mismatch": check.mismatch,
        "distanceMeters": round(check.distance_m, 1) if check.distance_m is not None else None,
    }


def outcome_message(outcome: ReconcileOutcome) -> str:
    if outcome.kind == OutcomeKind.CHECKED_IN:
        return "Checked in"
    if outcome.kind == OutcomeKind.CHECKED_OUT:
        return "Checked out"
    if outcome.kind == OutcomeKind.UNRESOLVED_IDENTITY:
        return "Card not recognized"
    return CONFLICT_MESSAGES.get(outcome.reason, "Conflict")


def outcome_response(outcome: ReconcileOutcome):
    body = {
        "success": outcome.ok,
        "kind": outcome.kind.value,
        "sessionId": outcome.session_id,
        "workerId": outcome.worker_id,
        "reason": outcome.reason.value if outcome.reason else None,
        "message": outcome_message(outcome),
        "geofence": _geofence_json(outcome.geofence),
    }
    return jsonify(body), OUTCOME_STATUS_CODES[outcome.kind]


def session_json(s: AttendanceSession) -> dict:
    return {
        "id": s.session_id,
        "workerId": s.worker_id,
        "fieldId": s.field_id,
        "checkInTime": _iso(s.check_in_time),
        "checkInLocation": _coord_json(s.check_in_location),
        "checkInMethod": s.check_in_method.value,
        "checkInGeofence": s.check_in_geofence.value,
        "checkOutTime": _iso(s.check_out_time),
        "checkOutLocation": _coord_json(s.check_out_location),
        "checkOutMethod": s.check_out_method.value if s.check_out_method else None,
        "checkOutGeofence": s.check_out_geofence.value if s.check_out_geofence else None,
        "status": s.status.value,
        "supervisorVerified": s.verified,
        "verifiedAt": _iso(s.verified_at),
        "verifierId": s.verifier_id,
    }


def request_object() -> dict:
    """JSON body of the current request; an absent body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(exc: Exception):
    """Map engine exceptions onto HTTP errors."""
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    if isinstance(exc, StoreUnavailableError):
        return jsonify({"success": False, "message": "Attendance store unavailable, retry later", "retryable": True}), 503
    if isinstance(exc, DataIntegrityError):
        return jsonify({"success": False, "message": "Attendance data needs operator attention"}), 500
    logger.exception("unexpected error")
    return jsonify({"success": False, "message": "Internal error"}), 500


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _gps_payload():
        data = request_object()
        worker_id = require_non_empty(data.get("workerId"), "workerId")
        location = Coordinate.checked(data.get("latitude"), data.get("longitude"))
        return worker_id, location

    @app.route("/api/attendance/gps/check-in", methods=["POST"], endpoint="gps_check_in")
    def gps_check_in():
        try:
            worker_id, location = _gps_payload()
            return outcome_response(service.check_in_gps(worker_id, location))
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/gps/check-out", methods=["POST"], endpoint="gps_check_out")
    def gps_check_out():
        try:
            worker_id, location = _gps_payload()
            return outcome_response(service.check_out_gps(worker_id, location))
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    def attendance_list():
        try:
            start = request.args.get("startDate")
            end = request.args.get("endDate")
            rows = service.list_sessions(
                worker_id=request.args.get("workerId") or None,
                field_id=request.args.get("fieldId") or None,
                start=parse_iso_datetime(start) if start else None,
                end=parse_iso_datetime(end) if end else None,
                limit=int(request.args.get("limit", 50)),
            )
            return jsonify([session_json(s) for s in rows]), 200
        except ValueError as e:
            return error_response(ValidationError(str(e)))
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/open/<worker_id>", methods=["GET"], endpoint="attendance_open")
    def attendance_open(worker_id: str):
        try:
            session = service.get_open_session(worker_id)
            return jsonify({"open": session is not None, "session": session_json(session) if session else None}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/<int:session_id>/verify", methods=["POST"], endpoint="attendance_verify")
    def attendance_verify(session_id: int):
        try:
            data = request_object()
            session = service.verify_session(
                session_id,
                approve=parse_flag(data.get("approve"), "approve", default=True),
                verifier_id=data.get("verifierId"),
            )
            return jsonify(session_json(session)), 200
        except Exception as e:
            return error_response(e)
