from tests.factories import ITEM_STEPS


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


class TestItemRequestRoutes:
    def test_create_submit_and_approve(self, client, users, item_workflow):
        response = client.post("/api/v1/requests/", json={
            "actor_id": users.requestor.id,
            "reason": "Replacement keyboard",
            "priority": "high",
            "items": [{"category": "peripheral", "item_description": "Keyboard", "quantity": 2}],
        })
        assert response.status_code == 201
        request_id = response.json()["id"]

        response = client.post(f"/api/v1/requests/{request_id}/submit", json={"actor_id": users.requestor.id})
        assert response.status_code == 200
        assert response.json()["next_approver"]["email"] == users.hr_approver.email

        response = client.get(f"/api/v1/requests/{request_id}/current-step", params={"actor_id": users.hr_approver.id})
        assert response.json()["can_act"] is True
        assert response.json()["step_name"] == "Department Approval"

        response = client.post(f"/api/v1/requests/{request_id}/approve", json={"actor_id": users.hr_approver.id})
        assert response.status_code == 200
        assert response.json()["status"] == "department_approved"

        body = client.get(f"/api/v1/requests/{request_id}").json()
        assert body["status"] == "department_approved"
        assert {a["approval_type"] for a in body["approvals"]} == {"department_approval", "it_manager_approval"}

    def test_error_mapping(self, client, users):
        response = client.get("/api/v1/requests/999")
        assert response.status_code == 404

        response = client.post("/api/v1/requests/", json={"actor_id": users.it_manager.id, "items": []})
        assert response.status_code == 403

        draft = client.post("/api/v1/requests/", json={"actor_id": users.requestor.id, "items": []}).json()
        response = client.post(f"/api/v1/requests/{draft['id']}/submit", json={"actor_id": users.requestor.id})
        assert response.status_code == 400

    def test_list_stats_and_track(self, client, users):
        created = client.post("/api/v1/requests/", json={
            "actor_id": users.requestor.id,
            "reason": "Headset",
            "items": [{"category": "peripheral", "item_description": "Headset"}],
        }).json()
        client.post(f"/api/v1/requests/{created['id']}/submit", json={"actor_id": users.requestor.id})

        listing = client.get("/api/v1/requests/", params={"actor_id": users.hr_approver.id}).json()
        assert listing["total_count"] == 1
        assert listing["requests"][0]["id"] == created["id"]
        assert client.get("/api/v1/requests/", params={"actor_id": users.it_approver.id}).json()["total_count"] == 0

        stats = client.get("/api/v1/requests/stats/overview", params={"actor_id": users.it_manager.id}).json()
        assert stats["stats"]["submitted"] == 1
        assert stats["total"] == 1

        tracked = client.get(f"/api/v1/requests/track/{created['request_number']}").json()
        assert tracked["ticket_code"] == created["request_number"]
        assert tracked["timeline"][1]["is_pending"] is True
        assert client.get("/api/v1/requests/track/REQ-unknown").status_code == 404

    def test_decline_requires_comments(self, client, users):
        response = client.post("/api/v1/requests/1/decline", json={"actor_id": users.hr_approver.id, "comments": " "})
        assert response.status_code == 422

    def test_delete_draft(self, client, users):
        draft = client.post("/api/v1/requests/", json={"actor_id": users.requestor.id, "items": []}).json()
        response = client.delete(f"/api/v1/requests/{draft['id']}", params={"actor_id": users.requestor.id})
        assert response.status_code == 200
        assert client.get(f"/api/v1/requests/{draft['id']}").status_code == 404


class TestVehicleRequestRoutes:
    def test_legacy_flow_over_http(self, client, users):
        response = client.post("/api/v1/vehicle-requests/", json={
            "actor_id": users.requestor.id,
            "request_type": "pickup_passenger",
            "destination": "Head office",
        })
        assert response.status_code == 201
        created = response.json()

        client.post(f"/api/v1/vehicle-requests/{created['id']}/submit", json={"actor_id": users.requestor.id})
        response = client.post(
            f"/api/v1/vehicle-requests/{created['id']}/approve", json={"actor_id": users.odhc_approver.id}
        )
        assert response.status_code == 400
        assert "Assigned Driver" in response.json()["detail"]

        listing = client.get("/api/v1/vehicle-requests/", params={"actor_id": users.odhc_approver.id}).json()
        assert listing["total_count"] == 1
        assert listing["requests"][0]["is_pending_my_approval"] is True

        response = client.post(f"/api/v1/vehicle-requests/{created['id']}/assign", json={
            "actor_id": users.odhc_approver.id,
            "assigned_driver": "Dan Driver",
            "assigned_vehicle": "Van 7",
            "approval_date": "2026-11-01",
        })
        assert response.status_code == 200
        assert response.json()["assigned_vehicle"] == "Van 7"

        response = client.post(
            f"/api/v1/vehicle-requests/{created['id']}/approve", json={"actor_id": users.odhc_approver.id}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        tracked = client.get(f"/api/v1/vehicle-requests/track/{created['reference_code']}").json()
        assert tracked["status"] == "completed"
        assert tracked["approvals"][0]["step_name"] == "Department Approval"

        stats = client.get("/api/v1/vehicle-requests/stats/overview", params={"actor_id": users.requestor.id}).json()
        assert stats["stats"]["completed"] == 1
        assert stats["total"] == 1

    def test_assign_forbidden_for_requestor(self, client, users):
        created = client.post("/api/v1/vehicle-requests/", json={
            "actor_id": users.requestor.id,
            "request_type": "drop_passenger",
        }).json()
        response = client.post(f"/api/v1/vehicle-requests/{created['id']}/assign", json={
            "actor_id": users.requestor.id,
            "assigned_driver": "Dan Driver",
            "assigned_vehicle": "Van 7",
        })
        assert response.status_code == 403

    def test_reversed_travel_dates_rejected(self, client, users):
        response = client.post("/api/v1/vehicle-requests/", json={
            "actor_id": users.requestor.id,
            "request_type": "drop_passenger",
            "travel_date_from": "2026-11-03",
            "travel_date_to": "2026-11-01",
        })
        assert response.status_code == 422


class TestWorkflowRoutes:
    def step_payload(self):
        return [dict(step, approver_type="role") for step in ITEM_STEPS]

    def test_admin_workflow_lifecycle(self, client, users):
        response = client.post("/api/v1/workflows/", json={
            "actor_id": users.admin.id,
            "form_type": "item_request",
            "name": "Standard",
            "is_default": True,
            "steps": self.step_payload(),
        })
        assert response.status_code == 201
        workflow_id = response.json()["id"]

        active = client.get("/api/v1/workflows/active/item_request").json()
        assert active["id"] == workflow_id
        assert len(active["steps"]) == 3

        listing = client.get("/api/v1/workflows/", params={"actor_id": users.admin.id}).json()
        assert listing["total"] == 1

        report = client.get(f"/api/v1/workflows/{workflow_id}/validate", params={"actor_id": users.admin.id}).json()
        assert report["is_valid"] is True

        response = client.delete(f"/api/v1/workflows/{workflow_id}", params={"actor_id": users.admin.id})
        assert response.status_code == 400

    def test_non_admin_forbidden(self, client, users):
        response = client.get("/api/v1/workflows/", params={"actor_id": users.requestor.id})
        assert response.status_code == 403

    def test_no_active_workflow(self, client, users):
        assert client.get("/api/v1/workflows/active/vehicle_request").status_code == 404

    def test_duplicate_step_orders_rejected(self, client, users):
        steps = self.step_payload()
        steps[1]["step_order"] = 1
        response = client.post("/api/v1/workflows/", json={
            "actor_id": users.admin.id,
            "form_type": "item_request",
            "name": "Broken",
            "steps": steps,
        })
        assert response.status_code == 422
