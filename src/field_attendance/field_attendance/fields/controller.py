from __future__ import annotations

from flask import Flask, jsonify

from ..attendance.controller import error_response, request_object
from ..container import Container
from ..core.exceptions import ValidationError
from ..geo.geojson import polygon_from_geojson, polygon_to_geojson
from ..geo.geometry import is_point_in_polygon
from ..geo.model import Coordinate, Polygon
from .model import Field, FieldBoundary


def _polygon_from_request(data: dict) -> Polygon:
    """Accept a GeoJSON ``boundary`` or a plain list of ``points``."""
    if data.get("boundary") is not None:
        return polygon_from_geojson(data["boundary"])
    points = data.get("points")
    if not isinstance(points, list) or not all(isinstance(p, dict) for p in points):
        raise ValidationError("Missing boundary (GeoJSON Polygon) or points")
    return tuple(Coordinate.checked(p.get("latitude"), p.get("longitude")) for p in points)


def _boundary_json(boundary: FieldBoundary) -> dict:
    return {
        "boundary": polygon_to_geojson(boundary.polygon),
        "areaSqMeters": round(boundary.area_sq_m, 2),
        "areaAcres": round(boundary.area_acres, 4),
    }


def _field_json(field: Field) -> dict:
    body = {
        "id": field.field_id,
        "name": field.name,
        "cropType": field.crop_type,
        "managerId": field.manager_id,
        "status": field.status.value,
    }
    body.update(_boundary_json(field.boundary))
    return body


def register(app: Flask, container: Container) -> None:
    service = container.field_service

    @app.route("/api/fields", methods=["POST"], endpoint="field_create")
    def field_create():
        try:
            data = request_object()
            field = service.create_field(
                name=data.get("name"),
                polygon=_polygon_from_request(data),
                crop_type=data.get("cropType"),
                manager_id=data.get("managerId"),
            )
            return jsonify(_field_json(field)), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/fields", methods=["GET"], endpoint="field_list")
    def field_list():
        try:
            return jsonify([_field_json(f) for f in service.list_fields()]), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/fields/<field_id>", methods=["GET"], endpoint="field_get")
    def field_get(field_id: str):
        try:
            return jsonify(_field_json(service.get_field(field_id))), 200
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except Exception as e:
            return error_response(e)

    @app.route("/api/fields/<field_id>/boundary", methods=["PUT"], endpoint="field_update_boundary")
    def field_update_boundary(field_id: str):
        try:
            data = request_object()
            boundary = service.update_boundary(field_id, _polygon_from_request(data))
            return jsonify(_boundary_json(boundary)), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/geometry/preview", methods=["POST"], endpoint="geometry_preview")
    def geometry_preview():
        """Area of a boundary being drawn, plus containment of an optional point."""
        try:
            data = request_object()
            boundary = FieldBoundary.from_polygon(_polygon_from_request(data))
            body = _boundary_json(boundary)
            body["pointCount"] = len(boundary.polygon)
            point = data.get("point")
            if isinstance(point, dict):
                coord = Coordinate.checked(point.get("latitude"), point.get("longitude"))
                body["contains"] = is_point_in_polygon(coord, boundary.polygon)
            return jsonify(body), 200
        except Exception as e:
            return error_response(e)
