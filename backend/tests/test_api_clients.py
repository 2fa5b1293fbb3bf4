import uuid
from datetime import timedelta
from proptrack.db.models import utcnow


def _inquiry(property_id, **overrides):
    payload = {
        "name": "Layla Haddad",
        "email": "Layla@Example.com",
        "phone": "+971501234567",
        "message": "Is the villa still available?",
        "propertyId": str(property_id),
        "budget": {"min": 900000, "max": 1200000},
    }
    payload.update(overrides)
    return payload


class TestInquirySubmission:
    """Public inquiry form"""

    def test_submit_inquiry_without_token(self, client, make_property):
        prop = make_property()
        response = client.post("/api/clients", json=_inquiry(prop.id))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Inquiry submitted successfully"
        data = body["data"]
        assert data["email"] == "layla@example.com"
        assert data["status"] == "new"
        assert data["priority"] == "medium"
        assert data["formattedBudget"] == "AED 900,000 - AED 1,200,000"
        assert data["property"]["id"] == str(prop.id)
        assert data["lastContactedAt"] is None

    def test_unknown_property_is_404(self, client):
        response = client.post("/api/clients", json=_inquiry(uuid.uuid4()))
        assert response.status_code == 404
        assert response.json()["message"] == "Property not found"

    def test_invalid_email_is_400(self, client, make_property):
        prop = make_property()
        response = client.post("/api/clients", json=_inquiry(prop.id, email="not-an-email"))
        assert response.status_code == 400

    def test_inverted_budget_is_400(self, client, make_property):
        prop = make_property()
        response = client.post("/api/clients", json=_inquiry(prop.id, budget={"min": 5, "max": 1}))
        assert response.status_code == 400


class TestClientManagement:
    """Agent-side lead workflow"""

    def test_list_requires_token(self, client):
        assert client.get("/api/clients").status_code == 401

    def test_status_change_stamps_last_contacted(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())

        response = client.patch(
            f"/api/clients/{lead.id}/status", json={"status": "contacted"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "contacted"
        assert data["lastContactedAt"] is not None

    def test_invalid_status_is_400(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())
        response = client.patch(
            f"/api/clients/{lead.id}/status", json={"status": "ghosted"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_priority_and_notes(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())

        response = client.patch(
            f"/api/clients/{lead.id}/priority", json={"priority": "urgent"}, headers=auth_headers
        )
        assert response.json()["data"]["priority"] == "urgent"

        client.post(f"/api/clients/{lead.id}/notes", json={"note": "Called, no answer"}, headers=auth_headers)
        response = client.post(
            f"/api/clients/{lead.id}/notes",
            json={"note": "Prefers weekends", "important": True},
            headers=auth_headers,
        )

        notes = response.json()["data"]["agentNotes"]
        assert [n["content"] for n in notes] == ["Called, no answer", "Prefers weekends"]
        assert notes[1]["important"] is True

    def test_update_client(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())
        response = client.put(
            f"/api/clients/{lead.id}",
            json={"phone": "+971509999999", "budget": {"max": 2000000}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["phone"] == "+971509999999"
        assert data["formattedBudget"] == "Below AED 2,000,000"

    def test_delete_is_soft(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())

        response = client.delete(f"/api/clients/{lead.id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Client deleted successfully"

        listed = client.get("/api/clients", headers=auth_headers).json()
        assert listed["data"] == []

        inactive = client.get("/api/clients", params={"isActive": "false"}, headers=auth_headers).json()
        assert [c["id"] for c in inactive["data"]] == [str(lead.id)]

        fetched = client.get(f"/api/clients/{lead.id}", headers=auth_headers)
        assert fetched.json()["data"]["isActive"] is False

    def test_unknown_client_is_404(self, client, auth_headers):
        response = client.get(f"/api/clients/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404


class TestClientQueues:
    """Lists, work queues and stats"""

    def test_list_filters_by_status_csv(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        make_client(prop, status="new")
        make_client(prop, status="contacted")
        make_client(prop, status="closed")

        response = client.get("/api/clients", params={"status": "new,contacted"}, headers=auth_headers)

        body = response.json()
        assert {c["status"] for c in body["data"]} == {"new", "contacted"}
        assert body["pagination"]["totalClients"] == 2

    def test_search_matches_name(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        make_client(prop, name="Omar Khalid")
        make_client(prop, name="Priya Nair")

        response = client.get("/api/clients", params={"search": "omar"}, headers=auth_headers)
        assert [c["name"] for c in response.json()["data"]] == ["Omar Khalid"]

    def test_urgent_list_excludes_closed(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        high = make_client(prop, priority="high")
        urgent = make_client(prop, priority="urgent")
        make_client(prop, priority="urgent", status="closed")
        make_client(prop, priority="low")

        response = client.get("/api/clients/urgent/list", headers=auth_headers)

        assert [c["id"] for c in response.json()["data"]] == [str(urgent.id), str(high.id)]

    def test_due_follow_ups(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        now = utcnow()
        overdue = make_client(prop, next_follow_up_at=now - timedelta(days=2))
        due = make_client(prop, next_follow_up_at=now - timedelta(hours=1))
        make_client(prop, next_follow_up_at=now + timedelta(days=1))
        make_client(prop, next_follow_up_at=now - timedelta(days=1), status="lost")

        response = client.get("/api/clients/followups/due", headers=auth_headers)

        assert [c["id"] for c in response.json()["data"]] == [str(overdue.id), str(due.id)]

    def test_schedule_follow_up(self, client, auth_headers, make_property, make_client):
        lead = make_client(make_property())
        response = client.patch(
            f"/api/clients/{lead.id}/followup",
            json={"followUpDate": "2030-06-01T09:00:00+04:00"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["nextFollowUpAt"].startswith("2030-06-01T05:00:00")

    def test_clients_for_property(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        other = make_property()
        lead = make_client(prop)
        make_client(other)

        response = client.get(f"/api/clients/property/{prop.id}", headers=auth_headers)
        assert [c["id"] for c in response.json()["data"]] == [str(lead.id)]

    def test_stats(self, client, auth_headers, make_property, make_client):
        prop = make_property()
        make_client(prop)
        make_client(prop, priority="urgent", status="contacted")
        make_client(prop, is_active=False)

        response = client.get("/api/clients/stats/overview", headers=auth_headers)

        data = response.json()["data"]
        assert data["total"] == 2
        assert data["new"] == 1
        assert data["urgent"] == 1
        assert data["todayInquiries"] == 2
        assert data["statusBreakdown"]["general"] == {"totalClients": 3, "activeClients": 2}
