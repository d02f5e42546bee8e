from datetime import datetime, timedelta

from stureg.schemas.student import StudentSubmit
from stureg.utils import records


def _submit(client, make_payload, **overrides):
    resp = client.post("/api/submit", json=make_payload(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def test_empty_store_summary(client, auth_headers):
    resp = client.get("/api/students", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["students"] == []
    assert body["total"] == 0
    assert body["todayCount"] == 0
    assert "lastSubmissionTime" not in body


def test_summary_counts_only_today(client, db, auth_headers, make_payload):
    old = StudentSubmit.model_validate(make_payload(studentId="old", idCard="old")).model_dump()
    records.insert_student(db, old, now=datetime(2020, 1, 1, 9, 30))
    _submit(client, make_payload)

    resp = client.get("/api/students", headers=auth_headers)
    body = resp.json()
    assert body["total"] == 2
    assert body["todayCount"] == 1
    assert [s["studentId"] for s in body["students"]] == ["20240001", "old"]
    assert body["lastSubmissionTime"] == body["students"][0]["submitTime"]


def test_summary_uses_caller_time_zone(client, db, auth_headers, make_payload):
    # запись старше суток в «сегодня» не попадает
    yesterday = records.utcnow() - timedelta(days=1, minutes=1)
    data = StudentSubmit.model_validate(make_payload()).model_dump()
    records.insert_student(db, data, now=yesterday)

    resp = client.get("/api/students", params={"tz": "UTC"}, headers=auth_headers)
    assert resp.json()["todayCount"] == 0


def test_unknown_time_zone(client, auth_headers):
    resp = client.get("/api/students", params={"tz": "Mars/Olympus"}, headers=auth_headers)
    assert resp.status_code == 400
    assert "未知时区" in resp.json()["message"]


def test_search_matches_regardless_of_case(client, auth_headers, make_payload):
    _submit(client, make_payload, name="Zhang San", studentId="1", idCard="A1")
    _submit(client, make_payload, name="wang wu", studentId="2", idCard="A2")

    for term in ("zhang", "ZHANG", "ZhAnG"):
        resp = client.get("/api/students", params={"search": term}, headers=auth_headers)
        assert [s["name"] for s in resp.json()["students"]] == ["Zhang San"]

    resp = client.get("/api/students", params={"search": "WANG"}, headers=auth_headers)
    assert [s["name"] for s in resp.json()["students"]] == ["wang wu"]
    assert resp.json()["total"] == 1


def test_major_filter_and_order(client, auth_headers, make_payload):
    _submit(client, make_payload, major="Physics", studentId="1", idCard="A1", serialNumber="2")
    _submit(client, make_payload, major="Physics", studentId="2", idCard="A2", serialNumber="1")
    _submit(client, make_payload, major="History", studentId="3", idCard="A3", serialNumber="3")

    resp = client.get(
        "/api/students", params={"major": "Physics", "order": "serialNumber"}, headers=auth_headers
    )
    assert [s["serialNumber"] for s in resp.json()["students"]] == ["1", "2"]


def test_unknown_order(client, auth_headers):
    resp = client.get("/api/students", params={"order": "idCard"}, headers=auth_headers)
    assert resp.status_code == 400


def test_get_unknown_student(client, auth_headers):
    resp = client.get("/api/students/missing", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_get_student_requires_token(client, make_payload):
    record_id = _submit(client, make_payload)
    resp = client.get(f"/api/students/{record_id}")
    assert resp.status_code == 401
    assert "student" not in resp.json()
