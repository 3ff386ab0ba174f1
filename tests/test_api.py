"""
HTTP surface tests through FastAPI's TestClient.
"""
import uuid

import pytest

API = "/api/v1"
STAFF = {"X-User-Id": "staff-1"}
SUPERVISOR = {"X-User-Id": "lecturer-9"}


def create_application(client, required_approvals=0):
    response = client.post(
        f"{API}/applications",
        json={"student_id": "6401234", "company_name": "Siam Robotics", "required_approvals": required_approvals},
        headers={"X-User-Id": "6401234"},
    )
    assert response.status_code == 201
    return response.json()["id"]


def move_to(client, application_id, *statuses):
    for status in statuses:
        response = client.post(
            f"{API}/applications/{application_id}/status", json={"status": status}, headers=STAFF
        )
        assert response.status_code == 200, response.json()


def staff_action(client, application_id, action):
    return client.post(
        f"{API}/workflow/staff/actions",
        json={"application_id": application_id, "action": action},
        headers=STAFF,
    )


@pytest.fixture
def approved_id(client):
    application_id = create_application(client)
    move_to(client, application_id, "under_review", "approved")
    return application_id


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestApplications:

    def test_create_and_get(self, client):
        application_id = create_application(client, required_approvals=2)

        response = client.get(f"{API}/applications/{application_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "submitted"
        assert data["required_approvals"] == 2
        assert data["current_approvals"] == 0

    def test_unknown_application_is_404(self, client):
        response = client.get(f"{API}/applications/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    def test_invalid_transition_is_409_with_expected(self, client):
        application_id = create_application(client)

        response = client.post(
            f"{API}/applications/{application_id}/status", json={"status": "approved"}, headers=STAFF
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "invalid_transition"
        assert detail["expected"] == ["under_review"]

    def test_history(self, client, approved_id):
        response = client.get(f"{API}/applications/{approved_id}/history")

        assert response.status_code == 200
        assert [h["to_status"] for h in response.json()] == ["submitted", "under_review", "approved"]

    def test_resubmit(self, client):
        application_id = create_application(client)
        move_to(client, application_id, "under_review", "needs_changes")

        response = client.post(f"{API}/applications/{application_id}/resubmit", json={"notes": "Added transcript"})

        assert response.status_code == 200
        assert response.json()["status"] == "under_review"

    def test_complete_reports_blockers(self, client, approved_id):
        response = client.post(f"{API}/applications/{approved_id}/complete", headers=STAFF)

        assert response.status_code == 409
        assert response.json()["detail"]["expected"] == ["sent_to_company"]

    def test_override_requires_reason(self, client, approved_id):
        response = client.post(
            f"{API}/applications/{approved_id}/override",
            json={"status": "submitted", "reason": ""},
            headers={"X-User-Id": "admin-1"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "validation"

    def test_override(self, client, approved_id):
        response = client.post(
            f"{API}/applications/{approved_id}/override",
            json={"status": "under_review", "reason": "Approved in error"},
            headers={"X-User-Id": "admin-1"},
        )

        assert response.status_code == 200
        history = client.get(f"{API}/applications/{approved_id}/history").json()
        assert history[-1]["is_override"] is True


class TestWorkflowEndpoints:

    def test_staff_out_of_order(self, client, approved_id):
        response = staff_action(client, approved_id, "reviewed")

        assert response.status_code == 409
        assert response.json()["detail"]["expected"] == "received"

    def test_staff_flow_and_status(self, client, approved_id):
        assert staff_action(client, approved_id, "received").status_code == 200
        response = staff_action(client, approved_id, "reviewed")

        assert response.status_code == 200
        data = response.json()
        assert data["received"] is True
        assert data["reviewed"] is True
        assert data["approved"] is False
        assert data["current_step"] == "approved"

        status = client.get(f"{API}/workflow/staff/{approved_id}").json()
        assert status["steps"][0]["completed_by"] == "staff-1"

    def test_supervisor_flow(self, client, approved_id):
        for action in ("received", "reviewed", "approved"):
            assert staff_action(client, approved_id, action).status_code == 200

        response = client.post(
            f"{API}/applications/{approved_id}/supervisor", json={"supervisor_id": "lecturer-9"}, headers=STAFF
        )
        assert response.status_code == 200
        assert response.json()["supervisor_id"] == "lecturer-9"

        wrong = client.post(
            f"{API}/workflow/supervisor/actions",
            json={"application_id": approved_id, "action": "assignment_received"},
            headers={"X-User-Id": "lecturer-3"},
        )
        assert wrong.status_code == 403
        assert wrong.json()["detail"]["code"] == "not_assigned"

        for action in ("assignment_received", "confirmed"):
            response = client.post(
                f"{API}/workflow/supervisor/actions",
                json={"application_id": approved_id, "action": action},
                headers=SUPERVISOR,
            )
            assert response.status_code == 200

        missing_date = client.post(
            f"{API}/workflow/supervisor/actions",
            json={"application_id": approved_id, "action": "appointment_scheduled"},
            headers=SUPERVISOR,
        )
        assert missing_date.status_code == 400

        scheduled = client.post(
            f"{API}/workflow/supervisor/actions",
            json={
                "application_id": approved_id,
                "action": "appointment_scheduled",
                "appointment_date": "2025-07-15T10:00:00",
                "appointment_location": "Building 3",
            },
            headers=SUPERVISOR,
        )
        assert scheduled.status_code == 200
        assert scheduled.json()["is_completed"] is True

        status = client.get(f"{API}/workflow/supervisor/{approved_id}").json()
        assert status["appointment_scheduled"] is True
        assert status["appointment_location"] == "Building 3"


class TestCommitteeEndpoints:

    def test_decisions_and_summary(self, client):
        application_id = create_application(client, required_approvals=2)

        first = client.post(
            f"{API}/committee/decisions",
            json={"application_id": application_id, "member_id": "member-1", "status": "approved"},
        )
        assert first.status_code == 201
        assert first.json()["quorum_satisfied"] is False

        duplicate = client.post(
            f"{API}/committee/decisions",
            json={"application_id": application_id, "member_id": "member-1", "status": "approved"},
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"]["code"] == "duplicate"

        # Member defaults to the caller
        second = client.post(
            f"{API}/committee/decisions",
            json={"application_id": application_id, "status": "approved"},
            headers={"X-User-Id": "member-2"},
        )
        assert second.status_code == 201
        assert second.json()["current_approvals"] == 2
        assert second.json()["quorum_satisfied"] is True

        summary = client.get(f"{API}/committee/{application_id}").json()
        assert summary["rejections"] == 0
        assert [d["member_id"] for d in summary["decisions"]] == ["member-1", "member-2"]

    def test_rejection_without_reason(self, client):
        application_id = create_application(client, required_approvals=1)

        response = client.post(
            f"{API}/committee/decisions",
            json={"application_id": application_id, "member_id": "member-1", "status": "rejected"},
        )

        assert response.status_code == 400


class TestDocumentEndpoints:

    def test_template_roundtrip_and_generation(self, client):
        response = client.put(
            f"{API}/documents/number-templates/thai",
            json={"prefix": "มทร", "digit_width": 6, "suffix": "/2568"},
        )
        assert response.status_code == 200
        assert response.json()["current_number"] == 1

        preview = client.get(f"{API}/documents/number-templates/thai/next").json()
        assert preview["document_number"] == "มทร๐๐๐๐๐๑/๒๕๖๘"

        generated = client.post(f"{API}/documents/number", json={"language": "thai"})
        assert generated.status_code == 201
        assert generated.json()["document_number"] == "มทร๐๐๐๐๐๑/๒๕๖๘"

        template = client.get(f"{API}/documents/number-templates/thai").json()
        assert template["current_number"] == 2

    def test_lowering_current_number_is_refused(self, client):
        client.put(f"{API}/documents/number-templates/english", json={"current_number": 20})

        response = client.put(f"{API}/documents/number-templates/english", json={"current_number": 5})

        assert response.status_code == 400
        assert response.json()["detail"]["expected"] == 20


class TestPrintEndpoints:

    def test_print_batch_and_reprint(self, client, approved_id):
        missing = str(uuid.uuid4())

        response = client.post(
            f"{API}/print",
            json={"application_ids": [approved_id, missing], "document_date": "2025-06-02", "language": "english"},
            headers=STAFF,
        )
        assert response.status_code == 200
        data = response.json()
        assert [r["document_number"] for r in data["printed"]] == ["DOC000001"]
        assert data["failed"][0]["application_id"] == missing
        assert data["failed"][0]["code"] == "not_found"

        again = client.post(
            f"{API}/print",
            json={"application_ids": [approved_id], "document_date": "2025-06-02", "language": "english"},
        ).json()
        assert again["printed"] == []
        assert again["already_printed"][0]["document_number"] == "DOC000001"

        reprint = client.post(f"{API}/print/{approved_id}/reprint", headers=STAFF)
        assert reprint.status_code == 200
        assert reprint.json()["document_number"] == "DOC000001"
        assert reprint.json()["print_count"] == 2

        printable = client.get(f"{API}/print/applications").json()
        assert printable[0]["print_record"]["document_number"] == "DOC000001"

    def test_reprint_never_printed_is_404(self, client, approved_id):
        response = client.post(f"{API}/print/{approved_id}/reprint")

        assert response.status_code == 404
