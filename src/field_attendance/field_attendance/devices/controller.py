from __future__ import annotations

from flask import Flask, jsonify, request

from ..attendance.controller import error_response, request_object
from ..container import Container
from .model import Device


def _device_json(d: Device) -> dict:
    return {
        "id": d.device_id,
        "assignedFieldId": d.assigned_field_id,
        "assignedGateName": d.gate_name,
        "status": d.status.value,
        "firmware": d.firmware,
        "model": d.model,
        "createdAt": d.created_at.isoformat() if d.created_at else None,
    }


def register(app: Flask, container: Container) -> None:
    service = container.device_service

    @app.route("/api/devices/register", methods=["POST"], endpoint="device_register")
    def device_register():
        """Reader first boot: ``{chipId, firmware?, model?}``."""
        try:
            data = request_object()
            device, created = service.register_device(data.get("chipId"), firmware=data.get("firmware"), model=data.get("model"))
            return jsonify(_device_json(device)), 201 if created else 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/devices/assign", methods=["POST"], endpoint="device_assign")
    def device_assign():
        try:
            data = request_object()
            device = service.assign_device(data.get("deviceId"), data.get("assignedFieldId"), data.get("assignedGateName"))
            return jsonify(_device_json(device)), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/devices/unassigned", methods=["GET"], endpoint="device_unassigned")
    def device_unassigned():
        try:
            return jsonify([_device_json(d) for d in service.list_unassigned()]), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/devices", methods=["GET"], endpoint="device_list")
    def device_list():
        try:
            devices = service.list_devices(field_id=request.args.get("fieldId") or None)
            return jsonify([_device_json(d) for d in devices]), 200
        except Exception as e:
            return error_response(e)
