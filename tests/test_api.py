from __future__ import annotations

from buildops.models import Notification, Role, User, WorkTask


def test_leave_request_round_trip(client, login_as, users):
    login_as(users.sales)
    response = client.post(
        "/api/approval-requests",
        json={
            "request_type": "LEAVE",
            "title": "Sister's wedding",
            "start_date": "2026-11-02",
            "end_date": "2026-11-04",
        },
    )
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["status"] == "PENDING"
    assert created["requester_user_id"] == users.sales.id

    login_as(users.manager)
    response = client.post(f"/api/approval-requests/{created['id']}/approve", json={"comments": "Enjoy"})
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "APPROVED"

    login_as(users.sales)
    mine = client.get("/api/approval-requests/mine").json()
    assert [r["id"] for r in mine] == [created["id"]]


def test_end_date_before_start_is_rejected(client, login_as, users):
    login_as(users.sales)
    response = client.post(
        "/api/approval-requests",
        json={"request_type": "LEAVE", "title": "Oops", "start_date": "2026-11-04", "end_date": "2026-11-02"},
    )
    assert response.status_code == 422


def test_requester_cannot_review_own_request(client, login_as, users):
    login_as(users.manager)
    created = client.post("/api/approval-requests", json={"request_type": "LEAVE", "title": "Day off"}).json()

    response = client.post(f"/api/approval-requests/{created['id']}/approve", json={})
    assert response.status_code == 403


def test_non_reviewer_is_forbidden(client, login_as, users):
    login_as(users.sales)
    created = client.post("/api/approval-requests", json={"request_type": "LEAVE", "title": "Day off"}).json()

    login_as(users.worker)
    response = client.post(f"/api/approval-requests/{created['id']}/reject", json={"comments": "No"})
    assert response.status_code == 403


def test_reject_needs_comments(client, login_as, users):
    login_as(users.sales)
    created = client.post("/api/approval-requests", json={"request_type": "LEAVE", "title": "Day off"}).json()

    login_as(users.manager)
    response = client.post(f"/api/approval-requests/{created['id']}/reject", json={"comments": "   "})
    assert response.status_code == 422

    response = client.post(f"/api/approval-requests/{created['id']}/reject", json={"comments": "Audit week"})
    assert response.status_code == 200
    assert response.json()["reviewer_comments"] == "Audit week"


def test_unknown_request_is_404(client, login_as, users):
    login_as(users.admin)
    assert client.post("/api/approval-requests/4040/approve", json={}).status_code == 404
    assert client.get("/api/approval-requests/4040").status_code == 404


def test_execution_flow_over_http(client, db, login_as, users, project):
    login_as(users.sales)
    created = client.post(
        "/api/approval-requests",
        json={
            "request_type": "EXECUTION_TOKEN",
            "title": "Kitchen execution",
            "context_id": project.id,
            "stages": [
                {"name": "Civil", "deadline": "2026-11-05T17:00:00+00:00"},
                {"name": "Finishing", "deadline": "2026-11-20T17:00:00+00:00"},
            ],
        },
    )
    assert created.status_code == 201, created.text
    request_id = created.json()["id"]
    assert [s["name"] for s in created.json()["stages"]] == ["Civil", "Finishing"]

    login_as(users.head)
    response = client.post(
        f"/api/approval-requests/{request_id}/approve",
        json={"assignee_user_id": users.worker.id},
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "AWAITING_EXECUTION_ACCEPTANCE"
    assert db.query(WorkTask).filter(WorkTask.approval_request_id == request_id).count() == 3

    login_as(users.worker)
    assigned = client.get("/api/approval-requests/assigned").json()
    assert [r["id"] for r in assigned] == [request_id]
    response = client.post(f"/api/approval-requests/{request_id}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"

    response = client.post(f"/api/approval-requests/{request_id}/accept")
    assert response.status_code == 409


def test_stages_on_leave_are_rejected(client, login_as, users):
    login_as(users.sales)
    response = client.post(
        "/api/approval-requests",
        json={
            "request_type": "LEAVE",
            "title": "Leave",
            "stages": [{"name": "x", "deadline": "2026-11-05T17:00:00+00:00"}],
        },
    )
    assert response.status_code == 422


def test_staff_registration_is_public_and_hides_credentials(client, db, login_as, users):
    response = client.post(
        "/api/approval-requests/staff-registration",
        json={"name": "Kiran Draft", "email": "kiran@example.com", "password": "drafting-2026"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert "password" not in body
    assert "password_hash" not in body
    assert body["requested_role"] == "Sales Team Member"

    duplicate = client.post(
        "/api/approval-requests/staff-registration",
        json={"name": "Kiran Again", "email": "kiran@example.com", "password": "drafting-2026"},
    )
    assert duplicate.status_code == 409

    login_as(users.admin)
    approved = client.post(f"/api/approval-requests/{body['id']}/approve", json={})
    assert approved.status_code == 200, approved.text
    assert approved.json()["requester_user_id"] is not None
    welcome = db.query(Notification).filter(Notification.user_id == approved.json()["requester_user_id"]).count()
    assert welcome == 1


def test_procurement_routes(client, login_as, users):
    login_as(users.procurement)
    response = client.post(
        "/api/cases/case-9/procurement-plans",
        json={
            "item_name": "Quartz countertop",
            "quantity": "2",
            "required_on": "2026-11-15",
            "vendor_id": "vendor-stone",
            "vendor_name": "Stone Works",
            "expected_delivery_date": "2026-11-12",
        },
    )
    assert response.status_code == 201, response.text
    plan_id = response.json()["id"]

    early = client.post(
        f"/api/cases/case-9/procurement-plans/{plan_id}/invoice",
        json={"purchase_invoice_id": "PI-7"},
    )
    assert early.status_code == 409

    delivered = client.post(f"/api/cases/case-9/procurement-plans/{plan_id}/deliver")
    assert delivered.status_code == 200
    assert delivered.json()["status"] == "DELIVERED"

    login_as(users.accounts)
    pending = client.get("/api/procurement-plans/pending-invoice").json()
    assert [p["id"] for p in pending] == [plan_id]

    invoiced = client.post(
        f"/api/cases/case-9/procurement-plans/{plan_id}/invoice",
        json={"purchase_invoice_id": "PI-7"},
    )
    assert invoiced.status_code == 200
    assert invoiced.json()["purchase_invoice_id"] == "PI-7"
    assert client.get("/api/procurement-plans/pending-invoice").json() == []
    assert len(client.get("/api/procurement-plans/by-vendor/vendor-stone").json()) == 1


def test_procurement_requires_role(client, login_as, users):
    login_as(users.sales)
    response = client.post("/api/cases/case-9/procurement-plans/1/deliver")
    assert response.status_code == 403


def test_validation_routes(client, login_as, users):
    login_as(users.sales)
    response = client.post(
        "/api/organizations/org-1/validation-requests",
        json={"type": "TRAVEL", "distance_km": "42.5", "description": "Client site trip"},
    )
    assert response.status_code == 201, response.text
    request_id = response.json()["id"]

    forbidden = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/decision",
        json={"approved": True},
    )
    assert forbidden.status_code == 403

    login_as(users.manager)
    decided = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/decision",
        json={"approved": True},
    )
    assert decided.status_code == 200
    assert decided.json()["status"] == "APPROVED"

    again = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/decision",
        json={"approved": False, "reason": "Too late"},
    )
    assert again.status_code == 409

    login_as(users.accounts)
    linked = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/salary-link",
        json={"salary_ledger_id": "ledger-11"},
    )
    assert linked.status_code == 200
    assert linked.json()["salary_ledger_id"] == "ledger-11"

    login_as(users.sales)
    mine = client.get("/api/organizations/org-1/validation-requests").json()
    assert [r["id"] for r in mine] == [request_id]


def test_other_organization_is_forbidden(client, login_as, users):
    login_as(users.sales)
    response = client.get("/api/organizations/org-2/validation-requests")
    assert response.status_code == 403


def test_approver_cannot_decide_own_claim(client, login_as, users):
    login_as(users.manager)
    response = client.post(
        "/api/organizations/org-1/validation-requests",
        json={"type": "EXPENSE", "amount": "800.00", "description": "Tile samples courier"},
    )
    assert response.status_code == 201, response.text
    request_id = response.json()["id"]

    own = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/decision",
        json={"approved": True},
    )
    assert own.status_code == 403
    assert own.json()["detail"] == "Claimants cannot decide their own requests"

    login_as(users.manager2)
    decided = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/decision",
        json={"approved": True},
    )
    assert decided.status_code == 200
    assert decided.json()["approved_by_user_id"] == users.manager2.id


def test_blank_salary_ledger_id_is_rejected(client, login_as, users):
    login_as(users.sales)
    request_id = client.post(
        "/api/organizations/org-1/validation-requests",
        json={"type": "EXPENSE", "amount": "120.00", "description": "Parking"},
    ).json()["id"]
    login_as(users.manager)
    client.post(f"/api/organizations/org-1/validation-requests/{request_id}/decision", json={"approved": True})

    login_as(users.accounts)
    response = client.post(
        f"/api/organizations/org-1/validation-requests/{request_id}/salary-link",
        json={"salary_ledger_id": "   "},
    )
    assert response.status_code == 422


def test_unaffiliated_user_cannot_reach_organizations(client, db, login_as, users):
    drifter = User(
        email="drifter@example.com",
        hashed_password="not-used",
        role=Role.SALES_TEAM_MEMBER,
        full_name="Dev Drifter",
        is_active=True,
        organization_id=None,
    )
    platform_admin = User(
        email="platform@example.com",
        hashed_password="not-used",
        role=Role.ADMIN,
        full_name="Pia Platform",
        is_active=True,
        organization_id=None,
    )
    db.add_all([drifter, platform_admin])
    db.commit()

    login_as(drifter)
    response = client.post(
        "/api/organizations/org-1/validation-requests",
        json={"type": "EXPENSE", "amount": "10.00", "description": "Snacks"},
    )
    assert response.status_code == 403
    assert client.get("/api/organizations/org-1/validation-requests").status_code == 403

    login_as(platform_admin)
    assert client.get("/api/organizations/org-1/validation-requests").status_code == 200


def test_list_limit_counts_only_visible_requests(client, login_as, users):
    login_as(users.sales)
    leave = client.post("/api/approval-requests", json={"request_type": "LEAVE", "title": "Day off"}).json()

    login_as(users.manager)
    for index in range(3):
        response = client.post(
            "/api/approval-requests",
            json={"request_type": "OTHER", "title": f"Vendor advance {index}", "target_role": "Accounts Team"},
        )
        assert response.status_code == 201, response.text

    login_as(users.sales)
    listed = client.get("/api/approval-requests", params={"limit": 1})
    assert listed.status_code == 200
    assert [r["id"] for r in listed.json()] == [leave["id"]]
