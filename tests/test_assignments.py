"""
OneSim Backend: Case Assignment Tests
=====================================

What:  POST /api/assign-case end to end, including the real-time push, and
       the student assignment listing that reads the persisted rows.
How:   TestClient for HTTP and WebSocket; the broadcaster is replaced by a
       spy where the test needs to prove nothing was sent.

Test Strategy:
    ✅ Valid assignment: one row per student, 200 with newActivity
    ✅ Every client connected at broadcast time gets the event exactly once
    ✅ Clients that connect later do not get earlier events
    ✅ Empty student list: 400, no rows written, no broadcast
    ✅ Structured fields round-trip; malformed stored values come back raw
"""

from unittest.mock import AsyncMock, MagicMock

from onesim.dependencies import get_broadcaster


class TestAssignCase:

    def test_assign_case_success(self, client, assignment_payload):
        response = client.post("/api/assign-case", json=assignment_payload)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Case assigned successfully!"
        activity = body["newActivity"]
        assert activity["type"] == "assignment"
        assert activity["caseKey"] == "CASE-7"
        assert activity["title"] == "Acute chest pain"
        assert activity["assignedStudents"] == ["alice", "bob"]
        assert activity["timestamp"]

    def test_assign_case_persists_one_row_per_student(self, client, assignment_payload):
        client.post("/api/assign-case", json=assignment_payload)

        for student in ("alice", "bob"):
            response = client.get(f"/api/student-assignments/{student}")
            assert response.status_code == 200
            assert [row["caseId"] for row in response.json()] == ["CASE-7"]

    def test_empty_students_rejected_without_side_effects(self, app, client, assignment_payload):
        spy = MagicMock()
        spy.broadcast = AsyncMock(return_value=0)
        app.dependency_overrides[get_broadcaster] = lambda: spy
        try:
            response = client.post(
                "/api/assign-case",
                json={**assignment_payload, "assignedStudents": []},
            )
        finally:
            app.dependency_overrides.pop(get_broadcaster, None)

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Invalid payload. Case ID, title, scenarios, questions, "
            "and assigned students are required."
        )
        spy.broadcast.assert_not_awaited()
        assert client.get("/api/student-assignments/alice").status_code == 404

    def test_missing_title_rejected(self, client, assignment_payload):
        payload = dict(assignment_payload)
        del payload["title"]
        assert client.post("/api/assign-case", json=payload).status_code == 400


class TestRealtimeDelivery:

    def test_each_connected_client_gets_event_once(self, client, assignment_payload):
        with client.websocket_connect("/ws") as first, client.websocket_connect("/") as second:
            client.post("/api/assign-case", json=assignment_payload)
            client.post(
                "/api/assign-case",
                json={**assignment_payload, "caseKey": "CASE-8", "title": "Sepsis"},
            )

            for ws in (first, second):
                # Exactly one copy of the first event, then the second event
                assert ws.receive_json()["caseKey"] == "CASE-7"
                assert ws.receive_json()["caseKey"] == "CASE-8"

    def test_event_matches_http_response(self, client, assignment_payload):
        with client.websocket_connect("/ws") as ws:
            response = client.post("/api/assign-case", json=assignment_payload)
            pushed = ws.receive_json()

        assert pushed == response.json()["newActivity"]

    def test_late_client_misses_earlier_events(self, client, assignment_payload):
        with client.websocket_connect("/ws") as early:
            client.post("/api/assign-case", json=assignment_payload)
            assert early.receive_json()["caseKey"] == "CASE-7"

            with client.websocket_connect("/ws") as late:
                client.post(
                    "/api/assign-case",
                    json={**assignment_payload, "caseKey": "CASE-9"},
                )
                assert late.receive_json()["caseKey"] == "CASE-9"
                assert early.receive_json()["caseKey"] == "CASE-9"

    def test_health_counts_connected_clients(self, client):
        with client.websocket_connect("/ws"):
            assert client.get("/health").json()["connected_clients"] == 1


class TestStudentAssignments:

    def test_structured_fields_round_trip(self, client, assignment_payload):
        client.post("/api/assign-case", json=assignment_payload)

        [row] = client.get("/api/student-assignments/alice").json()

        assert row["title"] == "Acute chest pain"
        assert row["scenarios"] == assignment_payload["scenarios"]
        assert row["questions"] == assignment_payload["questions"]
        assert row["assignedAt"]

    def test_malformed_stored_value_returned_raw(self, client, assignment_payload):
        client.post(
            "/api/assign-case",
            json={**assignment_payload, "scenarios": "{not json"},
        )

        [row] = client.get("/api/student-assignments/alice").json()

        assert row["scenarios"] == "{not json"
        assert row["questions"] == assignment_payload["questions"]

    def test_stored_non_list_json_becomes_empty_list(self, client, assignment_payload):
        client.post(
            "/api/assign-case",
            json={**assignment_payload, "questions": {"q1": "not a list"}},
        )

        [row] = client.get("/api/student-assignments/alice").json()

        assert row["questions"] == []

    def test_unknown_student_is_404(self, client):
        response = client.get("/api/student-assignments/nobody")
        assert response.status_code == 404
        assert response.json()["error"] == "No assignments found for this student."
