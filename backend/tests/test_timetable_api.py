def request_payload(code, faculty, *, kind="theory", sessions=3, section="A"):
    return {
        "subjectId": code.lower(),
        "subjectCode": code,
        "subjectName": f"{code} Subject",
        "facultyId": faculty.lower(),
        "facultyName": f"Prof {faculty}",
        "section": section,
        "kind": kind,
        "sessionsPerWeek": sessions,
    }


def session_payload(session_id, code, faculty, day, periods, *, kind="theory", section="A"):
    return {
        "id": session_id,
        "subjectId": code.lower(),
        "subjectCode": code,
        "subjectName": f"{code} Subject",
        "facultyId": faculty.lower(),
        "facultyName": f"Prof {faculty}",
        "section": section,
        "day": day,
        "periodIndices": periods,
        "kind": kind,
    }


def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"
    assert "X-Process-Time-Ms" in live.headers
    assert live.headers["X-Content-Type-Options"] == "nosniff"


def test_calendar_endpoint(client):
    response = client.get("/api/calendar")
    assert response.status_code == 200
    payload = response.json()
    assert payload["days"][0] == "Monday"
    assert payload["halfDays"] == ["Saturday"]
    assert payload["morningCutoff"] == 3
    assert [period["index"] for period in payload["periods"] if period["isLunch"]] == [3]


def test_generate_returns_placement_workloads_and_notes(client):
    response = client.post(
        "/api/timetable/generate",
        json={
            "requests": [
                request_payload("CS201", "Rao"),
                request_payload("CS201L", "Rao", kind="lab", sessions=1),
                request_payload("CS202", "Iyer"),
            ]
        },
    )
    assert response.status_code == 200
    payload = response.json()

    assert len(payload["placement"]) == 7
    assert payload["placement"][0]["kind"] == "lab"
    assert len(payload["placement"][0]["periodIndices"]) == 2
    assert payload["shortfalls"] == []
    assert {item["facultyName"] for item in payload["workloads"]} == {"Prof Rao", "Prof Iyer"}
    rao = next(item for item in payload["workloads"] if item["facultyId"] == "rao")
    assert rao["totalSessions"] == 4
    assert rao["totalPeriods"] == 4
    assert payload["notes"][0] == "Placed 7 of 7 requested session(s) across 3 subject request(s)."


def test_generate_rejects_unknown_kind(client):
    bad = request_payload("CS201", "Rao")
    bad["kind"] = "seminar"
    response = client.post("/api/timetable/generate", json={"requests": [bad]})
    assert response.status_code == 422


def test_add_slot_conflict_returns_409(client):
    placement = [session_payload("ds-1", "CS201", "Rao", "Monday", [0])]
    response = client.post(
        "/api/timetable/slots",
        json={"placement": placement, "session": session_payload("x", "CS299", "Das", "Monday", [0])},
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["conflictType"] == "section_conflict"
    assert detail["existing"]["subjectCode"] == "CS201"


def test_add_slot_success(client):
    placement = [session_payload("ds-1", "CS201", "Rao", "Monday", [0])]
    response = client.post(
        "/api/timetable/slots",
        json={"placement": placement, "session": session_payload("x", "CS299", "Das", "Monday", [1])},
    )
    assert response.status_code == 201
    payload = response.json()
    assert len(payload["placement"]) == 2
    assert payload["session"]["startTime"] == "10:00"


def test_move_slot(client):
    placement = [
        session_payload("ds-1", "CS201", "Rao", "Monday", [0]),
        session_payload("os-1", "CS202", "Iyer", "Monday", [1]),
    ]
    moved = client.put(
        "/api/timetable/slots/os-1",
        json={"placement": placement, "day": "Wednesday", "startPeriod": 4},
    )
    assert moved.status_code == 200
    assert moved.json()["session"]["day"] == "Wednesday"

    clash = client.put(
        "/api/timetable/slots/os-1",
        json={"placement": placement, "day": "Monday", "startPeriod": 0},
    )
    assert clash.status_code == 409

    missing = client.put(
        "/api/timetable/slots/nope",
        json={"placement": placement, "day": "Monday", "startPeriod": 2},
    )
    assert missing.status_code == 404
    assert missing.json()["details"] == {"session_id": "nope"}


def test_remove_slot(client):
    placement = [
        session_payload("ds-1", "CS201", "Rao", "Monday", [0]),
        session_payload("os-1", "CS202", "Iyer", "Monday", [1]),
    ]
    response = client.post("/api/timetable/slots/ds-1/remove", json={"placement": placement})
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["placement"]] == ["os-1"]


def test_duplicate_session_ids_are_rejected(client):
    placement = [
        session_payload("ds-1", "CS201", "Rao", "Monday", [0]),
        session_payload("ds-1", "CS202", "Iyer", "Monday", [1]),
    ]
    response = client.post("/api/timetable/workloads", json={"placement": placement})
    assert response.status_code == 422


def test_workloads_endpoint(client):
    placement = [
        session_payload("ds-1", "CS201", "Rao", "Monday", [0]),
        session_payload("lab-1", "CS201L", "Rao", "Tuesday", [4, 5], kind="lab"),
    ]
    response = client.post("/api/timetable/workloads", json={"placement": placement})
    assert response.status_code == 200
    (workload,) = response.json()
    assert workload["morningPeriods"] == 1
    assert workload["afternoonPeriods"] == 1
    assert workload["totalPeriods"] == 2
    assert workload["periodsPerDay"]["Tuesday"] == 1
    assert [item["id"] for item in workload["daySchedule"]["Tuesday"]] == ["lab-1"]


def test_detect_conflicts_endpoint(client):
    placement = [
        session_payload("ds-1", "CS201", "Rao", "Monday", [0]),
        session_payload("ds-2", "CS202", "Rao", "Monday", [0], section="B"),
        session_payload("lunch-1", "CS203", "Das", "Monday", [3]),
    ]
    response = client.post("/api/conflicts/detect", json={"placement": placement})
    assert response.status_code == 200
    report = response.json()
    types = sorted(item["conflict_type"] for item in report["conflicts"])
    assert types == ["faculty_conflict", "lunch_break"]
    assert report["suggested_resolutions"]
    assert {item["action_type"] for item in report["suggested_resolutions"]} == {"move_slot", "remove_slot"}


def test_oversized_body_is_rejected(client):
    response = client.post(
        "/api/timetable/generate",
        content=b" " * 1_100_000,
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 413
