from __future__ import annotations

import pytest

INSIDE = {"latitude": 12.0004, "longitude": 75.0004}


def _gps(client, action, worker_id="W", **coords):
    body = {"workerId": worker_id, **(coords or INSIDE)}
    return client.post(f"/api/attendance/gps/{action}", json=body)


def test_gps_check_in_then_duplicate(client):
    first = _gps(client, "check-in")
    assert first.status_code == 201
    assert first.get_json()["geofence"]["status"] == "inside"

    second = _gps(client, "check-in")
    assert second.status_code == 409
    body = second.get_json()
    assert body["message"] == "Already checked in"
    assert body["reason"] == "already_open"


def test_gps_check_out_without_session(client):
    resp = _gps(client, "check-out")

    assert resp.status_code == 409
    assert resp.get_json()["message"] == "No active session to check out of"


def test_gps_rejects_bad_coordinates(client, attendance_repo):
    resp = _gps(client, "check-in", latitude=123.0, longitude=75.0)

    assert resp.status_code == 400
    assert attendance_repo.sessions == {}


def test_gps_requires_worker(client):
    resp = client.post("/api/attendance/gps/check-in", json=INSIDE)

    assert resp.status_code == 400


def test_scan_with_unknown_card(client):
    resp = client.post("/api/attendance/scan", json={"card_uid": "ZZZZ", "deviceId": "D1"})

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Card not recognized"


def test_scan_toggles_session(client):
    checked_in = client.post("/api/attendance/scan", json={"card_uid": "CARD-W", "deviceId": "D1"})
    checked_out = client.post("/api/attendance/scan", json={"card_uid": "CARD-W", "deviceId": "D1"})

    assert checked_in.status_code == 201
    assert checked_out.status_code == 200
    assert checked_out.get_json()["sessionId"] == checked_in.get_json()["sessionId"]


def test_scan_without_card_is_bad_request(client):
    resp = client.post("/api/attendance/scan", json={"deviceId": "D1"})

    assert resp.status_code == 400


def test_open_session_and_history(client):
    _gps(client, "check-in")

    open_resp = client.get("/api/attendance/open/W")
    assert open_resp.get_json()["open"] is True
    assert open_resp.get_json()["session"]["checkInMethod"] == "gps"

    history = client.get("/api/attendance?workerId=W").get_json()
    assert len(history) == 1
    assert history[0]["supervisorVerified"] is False
    assert history[0]["checkInLocation"] == INSIDE


def test_history_rejects_bad_dates(client):
    resp = client.get("/api/attendance?startDate=yesterday")

    assert resp.status_code == 400


def test_supervisor_verify(client):
    session_id = _gps(client, "check-in").get_json()["sessionId"]

    resp = client.post(f"/api/attendance/{session_id}/verify", json={"approve": True, "verifierId": "sup-1"})

    assert resp.status_code == 200
    assert resp.get_json()["supervisorVerified"] is True
    assert resp.get_json()["verifierId"] == "sup-1"


def test_verify_unknown_session(client):
    resp = client.post("/api/attendance/999/verify", json={"approve": True})

    assert resp.status_code == 400


def test_store_outage_is_retryable(client, attendance_repo, monkeypatch):
    from field_attendance.core.exceptions import StoreUnavailableError

    def offline(worker_id):
        raise StoreUnavailableError("connection lost")

    monkeypatch.setattr(attendance_repo, "find_open_session", offline)

    resp = _gps(client, "check-in")

    assert resp.status_code == 503
    assert resp.get_json()["retryable"] is True


def test_create_and_get_field(client, square_factory):
    square = square_factory(10.0, 76.0, 100.0)
    points = [{"latitude": c.latitude, "longitude": c.longitude} for c in square]

    created = client.post("/api/fields", json={"name": "South Plot", "points": points, "cropType": "rice"})
    assert created.status_code == 201
    body = created.get_json()
    assert abs(body["areaSqMeters"] - 10000.0) < 100.0
    assert body["boundary"]["type"] == "Polygon"

    fetched = client.get(f"/api/fields/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.get_json()["name"] == "South Plot"


def test_create_field_needs_three_points(client):
    points = [{"latitude": 10.0, "longitude": 76.0}, {"latitude": 10.001, "longitude": 76.0}]

    resp = client.post("/api/fields", json={"name": "Line", "points": points})

    assert resp.status_code == 400


def test_unknown_field_is_404(client):
    assert client.get("/api/fields/nope").status_code == 404


def test_update_field_boundary(client, square_factory):
    square = square_factory(12.0, 75.0, 200.0)
    points = [{"latitude": c.latitude, "longitude": c.longitude} for c in square]

    resp = client.put("/api/fields/F/boundary", json={"points": points})

    assert resp.status_code == 200
    assert abs(resp.get_json()["areaSqMeters"] - 40000.0) < 400.0


def test_geometry_preview(client):
    boundary = {
        "type": "Polygon",
        "coordinates": [[[75.0, 12.0], [75.001, 12.0], [75.001, 12.001], [75.0, 12.001], [75.0, 12.0]]],
    }

    resp = client.post(
        "/api/geometry/preview",
        json={"boundary": boundary, "point": {"latitude": 12.0005, "longitude": 75.0005}},
    )

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["pointCount"] == 4
    assert body["contains"] is True
    assert body["areaAcres"] > 0


def test_iot_push_then_drain(client, attendance_repo):
    pushed = client.post("/api/iot/logs", json={"cardId": "CARD-W", "deviceId": "D1"})
    assert pushed.status_code == 202
    assert pushed.get_json()["eventId"] == "log-1"

    drained = client.post("/api/iot/drain")

    assert drained.status_code == 200
    assert drained.get_json()["outcomes"] == {"checked_in": 1}
    assert len(attendance_repo.open_for("W")) == 1


def test_iot_push_requires_object(client):
    assert client.post("/api/iot/logs", json=["x"]).status_code == 400


@pytest.mark.parametrize(
    "method, url",
    [
        ("post", "/api/attendance/scan"),
        ("post", "/api/attendance/gps/check-in"),
        ("post", "/api/attendance/gps/check-out"),
        ("post", "/api/attendance/1/verify"),
        ("post", "/api/fields"),
        ("put", "/api/fields/F/boundary"),
        ("post", "/api/geometry/preview"),
        ("post", "/api/devices/register"),
        ("post", "/api/devices/assign"),
    ],
)
def test_array_body_is_bad_request(client, attendance_repo, method, url):
    resp = getattr(client, method)(url, json=["CARD-W", 1, 2])

    assert resp.status_code == 400
    assert attendance_repo.sessions == {}


def test_field_with_non_list_ring_is_bad_request(client):
    resp = client.post("/api/fields", json={"name": "Bad", "boundary": {"type": "Polygon", "coordinates": [5]}})

    assert resp.status_code == 400


def test_verify_accepts_string_false(client):
    session_id = _gps(client, "check-in").get_json()["sessionId"]

    resp = client.post(f"/api/attendance/{session_id}/verify", json={"approve": "false", "verifierId": "sup-1"})

    assert resp.status_code == 200
    assert resp.get_json()["supervisorVerified"] is False


def test_verify_rejects_unclear_approval(client):
    session_id = _gps(client, "check-in").get_json()["sessionId"]

    resp = client.post(f"/api/attendance/{session_id}/verify", json={"approve": "maybe"})

    assert resp.status_code == 400


@pytest.mark.parametrize("limit", ["abc", "0"])
def test_drain_rejects_bad_limit(client, limit):
    assert client.post(f"/api/iot/drain?limit={limit}").status_code == 400


def test_list_fields(client):
    resp = client.get("/api/fields")

    assert resp.status_code == 200
    assert [f["id"] for f in resp.get_json()] == ["F"]


def test_register_and_assign_device(client):
    registered = client.post("/api/devices/register", json={"chipId": "esp32-9", "firmware": "1.2.0"})
    assert registered.status_code == 201
    assert registered.get_json()["status"] == "unassigned"
    assert client.post("/api/devices/register", json={"chipId": "esp32-9"}).status_code == 200

    unassigned = client.get("/api/devices/unassigned").get_json()
    assert [d["id"] for d in unassigned] == ["esp32-9"]

    assigned = client.post(
        "/api/devices/assign",
        json={"deviceId": "esp32-9", "assignedFieldId": "F", "assignedGateName": "East gate"},
    )
    assert assigned.status_code == 200
    assert assigned.get_json()["assignedFieldId"] == "F"
    assert client.get("/api/devices/unassigned").get_json() == []
    assert len(client.get("/api/devices?fieldId=F").get_json()) == 2


def test_assign_device_to_unknown_field(client):
    client.post("/api/devices/register", json={"chipId": "esp32-9"})

    resp = client.post(
        "/api/devices/assign",
        json={"deviceId": "esp32-9", "assignedFieldId": "nope", "assignedGateName": "East gate"},
    )

    assert resp.status_code == 400
