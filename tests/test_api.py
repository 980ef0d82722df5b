"""HTTP-level tests for the FastAPI routes."""

import uuid

from catalog import DAVID_KIM_ID, EMILY_RODRIGUEZ_ID, MIKE_CHEN_ID, SARAH_JOHNSON_ID

API = "/api/v1"


def _create_project(client, **overrides):
    body = {"name": "Claims Triage", "description": "Routes insurance claims", "priority": "high"}
    body.update(overrides)
    resp = client.post(f"{API}/projects", json=body, headers={"X-Actor-Id": str(SARAH_JOHNSON_ID)})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestHealthAndReference:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_workflow_stages(self, client):
        stages = client.get(f"{API}/workflow/stages").json()["data"]
        assert [s["id"] for s in stages][:2] == ["initial_assessment", "legal_review"]
        assert [s["order"] for s in stages] == list(range(1, 8))

    def test_users(self, client):
        users = client.get(f"{API}/users", params={"role": "approver"}).json()["data"]
        assert [u["name"] for u in users] == ["David Kim"]
        assert client.get(f"{API}/users/{uuid.uuid4()}").status_code == 404


class TestProjects:
    def test_create_uses_actor_header(self, client):
        project = _create_project(client)
        assert project["created_by"] == str(SARAH_JOHNSON_ID)
        assert project["audit_trail"][0]["description"] == "Project created by Sarah Johnson"

    def test_default_actor_without_header(self, client):
        resp = client.post(f"{API}/projects", json={"name": "No header"})
        assert resp.json()["data"]["created_by"] == str(MIKE_CHEN_ID)

    def test_malformed_actor_header(self, client):
        resp = client.post(f"{API}/projects", json={"name": "x"}, headers={"X-Actor-Id": "nobody"})
        assert resp.status_code == 422

    def test_invalid_priority_rejected(self, client):
        resp = client.post(f"{API}/projects", json={"name": "x", "priority": "urgent"})
        assert resp.status_code == 422

    def test_list_with_filters(self, client):
        _create_project(client)
        _create_project(client, name="Voice Cloning", priority="low")
        data = client.get(f"{API}/projects", params={"priority": "low"}).json()["data"]
        assert [p["name"] for p in data] == ["Voice Cloning"]
        data = client.get(f"{API}/projects", params={"search": "TRIAGE"}).json()["data"]
        assert [p["name"] for p in data] == ["Claims Triage"]

    def test_unknown_project_404(self, client):
        resp = client.get(f"{API}/projects/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert "not found" in resp.json()["detail"]

    def test_patch(self, client):
        pid = _create_project(client)["id"]
        resp = client.patch(f"{API}/projects/{pid}", json={"tags": ["nlp", "nlp", "pii"]})
        assert resp.status_code == 200
        assert resp.json()["data"]["tags"] == ["nlp", "pii"]

    def test_status_lifecycle(self, client):
        pid = _create_project(client)["id"]
        resp = client.post(f"{API}/projects/{pid}/status", json={"status": "in_review"})
        assert resp.json()["data"]["status"] == "in_review"
        resp = client.post(f"{API}/projects/{pid}/status", json={"status": "completed"})
        assert resp.status_code == 422


class TestStageWorkflow:
    def test_advance_without_body(self, client):
        pid = _create_project(client)["id"]
        data = client.post(f"{API}/projects/{pid}/advance").json()["data"]
        assert data["outcome"] == "advanced"
        assert data["project"]["stage"] == "legal_review"

    def test_advance_past_last_stage(self, client):
        pid = _create_project(client)["id"]
        client.post(f"{API}/projects/{pid}/advance", json={"target_stage": "monitoring"})
        resp = client.post(f"{API}/projects/{pid}/advance")
        assert resp.status_code == 200
        assert resp.json()["data"]["outcome"] == "no_next_stage"
        assert resp.json()["data"]["project"]["stage"] == "monitoring"

    def test_strict_mode_lists_unmet(self, strict_client):
        pid = _create_project(strict_client)["id"]
        data = strict_client.post(f"{API}/projects/{pid}/advance").json()["data"]
        assert data["outcome"] == "requirements_not_met"
        assert {u["requirement"] for u in data["unmet_requirements"]} == {
            str(EMILY_RODRIGUEZ_ID), "project_scope", "risk_assessment",
        }

    def test_revert(self, client):
        pid = _create_project(client)["id"]
        client.post(f"{API}/projects/{pid}/advance", json={"target_stage": "technical_review"})
        resp = client.post(f"{API}/projects/{pid}/revert", json={"target_stage": "legal_review"})
        assert resp.json()["data"]["stage"] == "legal_review"
        resp = client.post(f"{API}/projects/{pid}/revert", json={"target_stage": "compliance_check"})
        assert resp.status_code == 422

    def test_advance_backwards_rejected(self, client):
        pid = _create_project(client)["id"]
        client.post(f"{API}/projects/{pid}/advance", json={"target_stage": "implementation"})
        resp = client.post(f"{API}/projects/{pid}/advance", json={"target_stage": "legal_review"})
        assert resp.status_code == 422
        assert client.get(f"{API}/projects/{pid}").json()["data"]["stage"] == "implementation"

    def test_stage_progress(self, client):
        pid = _create_project(client)["id"]
        data = client.get(f"{API}/projects/{pid}/stage").json()["data"]
        assert data["current_stage"]["id"] == "initial_assessment"
        assert data["next_stage"]["id"] == "legal_review"
        assert data["ready_to_advance"] is False


class TestEvidenceAndApprovals:
    def test_evidence_flow(self, client):
        pid = _create_project(client)["id"]
        resp = client.post(
            f"{API}/projects/{pid}/evidence",
            json={"type": "assessment", "title": "Risk memo", "category": "risk_assessment"},
        )
        assert resp.status_code == 201
        eid = resp.json()["data"]["id"]
        verify = f"{API}/projects/{pid}/evidence/{eid}/verify"
        resp = client.post(verify, headers={"X-Actor-Id": str(EMILY_RODRIGUEZ_ID)})
        assert resp.json()["data"]["verified_by"] == str(EMILY_RODRIGUEZ_ID)
        assert client.post(verify).status_code == 422
        assert client.post(f"{API}/projects/{pid}/evidence/{uuid.uuid4()}/verify").status_code == 404

    def test_approval_flow(self, client):
        pid = _create_project(client)["id"]
        resp = client.post(f"{API}/projects/{pid}/approvals", json={"approver_id": str(DAVID_KIM_ID)})
        assert resp.status_code == 201
        approval = resp.json()["data"]
        assert approval["approver_name"] == "David Kim"
        decision = f"{API}/projects/{pid}/approvals/{approval['id']}/decision"
        resp = client.post(decision, json={"decision": "rejected", "comments": "Missing DPIA"},
                           headers={"X-Actor-Id": str(DAVID_KIM_ID)})
        assert resp.json()["data"]["status"] == "rejected"
        assert client.post(decision, json={"decision": "approved"}).status_code == 422

    def test_audit_trail_grows(self, client):
        pid = _create_project(client)["id"]
        client.post(f"{API}/projects/{pid}/advance")
        actions = [e["action"] for e in client.get(f"{API}/projects/{pid}/audit").json()["data"]]
        assert actions == ["project_created", "stage_advanced"]
        rows = client.get(f"{API}/projects/{pid}/audit/export").json()["data"]
        assert rows[1]["stage"] == "legal_review"


class TestDashboard:
    def test_histogram(self, client):
        _create_project(client)
        data = client.get(f"{API}/dashboard").json()["data"]
        assert data["total"] == 1
        assert sum(data["stage_histogram"].values()) == 1
        assert len(data["stage_histogram"]) == 7


class TestRoadmaps:
    def test_generate_and_fetch(self, client):
        resp = client.post(f"{API}/roadmaps", json={"description": "Clinical trial matching", "industry": "pharmaceutical"})
        assert resp.status_code == 201
        plan = resp.json()["data"]
        assert plan["complexity"] == "enterprise"
        assert len(plan["gates"]) == 8
        fetched = client.get(f"{API}/roadmaps/{plan['id']}").json()["data"]
        assert fetched["id"] == plan["id"]
        assert [p["id"] for p in client.get(f"{API}/roadmaps").json()["data"]] == [plan["id"]]

    def test_industries_route_not_shadowed(self, client):
        data = client.get(f"{API}/roadmaps/industries").json()["data"]
        assert {i["key"] for i in data} == {"technology", "pharmaceutical"}

    def test_unknown_industry(self, client):
        plan = client.post(f"{API}/roadmaps", json={"description": "Reef survey", "industry": "marine_biology"}).json()["data"]
        assert plan["industry"] == "marine_biology"
        assert len(plan["gates"]) == 7
        assert "Security vulnerabilities and data breaches" not in plan["risks"]

    def test_empty_description_rejected(self, client):
        assert client.post(f"{API}/roadmaps", json={"description": ""}).status_code == 422


class TestActivity:
    def test_record_and_list(self, client):
        client.post(f"{API}/activity/forms", json={"form_name": "Fairness", "form_data": {"ok": True}})
        client.post(f"{API}/activity/compliance-checks", json={"check_type": "EU AI Act", "status": "passed"})
        client.post(f"{API}/activity/privacy", json={"evidence_type": "document", "file_name": "dpia.pdf"})
        client.post(f"{API}/activity/chat", json={"message": "hi"})
        client.post(f"{API}/activity/monitoring", json={"action": "drift_check", "description": "Drift ok"})
        data = client.get(f"{API}/activity", params={"limit": 2}).json()["data"]
        assert [e["action"] for e in data] == ["drift_check", "chat_message_sent"]
        data = client.get(f"{API}/activity", params={"category": "compliance"}).json()["data"]
        assert data[0]["description"] == "Compliance check performed: EU AI Act - passed"

    def test_invalid_compliance_status(self, client):
        resp = client.post(f"{API}/activity/compliance-checks", json={"check_type": "x", "status": "maybe"})
        assert resp.status_code == 422
