from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy import text

from buildops.core.security import verify_password
from buildops.models import (
    ActivityLog,
    CaseKind,
    LeadStatus,
    Notification,
    Project,
    ProjectStatus,
    RequestStatus,
    RequestType,
    Role,
    User,
    WorkTask,
)
from buildops.schemas.approval_request import ApprovalRequestCreate, Stage, StaffRegistrationCreate
from buildops.services.tasks import TaskDispatcher
from buildops.services.workflow import WorkflowEngine


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


def _notifications_for(db, request_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.related_entity_type == "approval_request", Notification.related_entity_id == str(request_id))
        .order_by(Notification.id.asc())
        .all()
    )


def _submit(engine, requester, request_type, **fields):
    fields.setdefault("title", f"{request_type.value} request")
    return engine.submit(ApprovalRequestCreate(request_type=request_type, **fields), requester=requester)


@pytest.fixture()
def engine(db):
    return WorkflowEngine(db)


@pytest.mark.parametrize(
    "request_type",
    [t for t in RequestType if t != RequestType.STAFF_REGISTRATION],
)
def test_approve_from_pending_reaches_expected_status(db, engine, users, request_type):
    request = _submit(engine, users.sales, request_type)
    assert request.status == RequestStatus.PENDING

    approved = engine.approve(request.id, users.admin.id, users.admin.display_name)

    expected = (
        RequestStatus.AWAITING_EXECUTION_ACCEPTANCE
        if request_type == RequestType.EXECUTION_TOKEN
        else RequestStatus.APPROVED
    )
    assert approved.status == expected
    assert approved.reviewed_by_user_id == users.admin.id
    assert approved.reviewer_name == "Asha Admin"
    assert approved.reviewed_at is not None


def test_leave_submit_and_reject_touches_nothing_else(db, engine, users, lead):
    request = _submit(
        engine,
        users.sales,
        RequestType.LEAVE,
        title="Family function",
        start_date=date(2026, 11, 2),
        end_date=date(2026, 11, 4),
        context_id=lead.id,
    )

    submitted = _notifications_for(db, request.id)
    assert request.status == RequestStatus.PENDING
    assert {n.user_id for n in submitted} == {users.manager.id, users.manager2.id}
    assert len(submitted) == 2

    rejected = engine.reject(request.id, users.manager.id, users.manager.display_name, "Peak season")

    assert rejected.status == RequestStatus.REJECTED
    assert rejected.reviewer_comments == "Peak season"
    to_requester = [n for n in _notifications_for(db, request.id) if n.user_id == users.sales.id]
    assert len(to_requester) == 1
    assert "Peak season" in to_requester[0].message
    assert db.query(WorkTask).count() == 0
    assert lead.status == LeadStatus.NEW_NOT_CONTACTED
    assert not lead.history_json


def test_submit_excludes_requester_from_reviewer_notifications(db, engine, users):
    request = _submit(engine, users.manager, RequestType.LEAVE)

    assert {n.user_id for n in _notifications_for(db, request.id)} == {users.manager2.id}


def test_target_role_overrides_routing(db, engine, users):
    request = _submit(engine, users.sales, RequestType.OTHER, target_role=Role.ACCOUNTS_TEAM)

    assert {n.user_id for n in _notifications_for(db, request.id)} == {users.accounts.id}


def test_execution_token_fans_out_stage_tasks(db, engine, users, project):
    names = ["Demolition", "Electrical", "Finishing"]
    deadlines = [datetime(2026, 11, day, 17, 0, tzinfo=timezone.utc) for day in (5, 12, 20)]
    request = _submit(
        engine,
        users.sales,
        RequestType.EXECUTION_TOKEN,
        title="Kitchen execution",
        context_id=project.id,
        stages=[Stage(name=name, deadline=deadline) for name, deadline in zip(names, deadlines)],
    )

    approved = engine.approve(
        request.id,
        users.head.id,
        users.head.display_name,
        assignee_id=users.worker.id,
    )

    assert approved.status == RequestStatus.AWAITING_EXECUTION_ACCEPTANCE
    tasks = TaskDispatcher(db).for_request(request.id)
    assert len(tasks) == 4
    assert all(task.assigned_to_user_id == users.worker.id for task in tasks)
    assert all(task.context_kind == CaseKind.PROJECT for task in tasks)
    stage_tasks = [task for task in tasks if task.stage_name]
    assert [task.stage_name for task in stage_tasks] == names
    assert [_naive(task.due_at) for task in stage_tasks] == [_naive(d) for d in deadlines]
    assert stage_tasks[0].title.startswith("Demolition")

    assert project.status == ProjectStatus.IN_EXECUTION
    assert len(project.history_json) == 1
    assert project.history_json[0]["action"] == "Execution approved"

    to_requester = [n for n in _notifications_for(db, request.id) if n.user_id == users.sales.id]
    assert len(to_requester) == 1
    assert "Uma Worker" in to_requester[0].message


def test_execution_token_without_stages_stores_empty_list(engine, users):
    request = _submit(engine, users.sales, RequestType.EXECUTION_TOKEN)

    assert request.stages_json == []


def test_stages_refused_on_other_categories(engine, users):
    request = _submit(engine, users.sales, RequestType.MODIFICATION)

    with pytest.raises(HTTPException) as excinfo:
        engine.approve(
            request.id,
            users.head.id,
            users.head.display_name,
            stages=[Stage(name="Paint", deadline=datetime(2026, 12, 1, tzinfo=timezone.utc))],
        )
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize("comments", ["", "   ", None])
def test_reject_requires_reason(engine, users, comments):
    request = _submit(engine, users.sales, RequestType.LEAVE)

    with pytest.raises(HTTPException) as excinfo:
        engine.reject(request.id, users.manager.id, users.manager.display_name, comments)

    assert excinfo.value.status_code == 400
    assert request.status == RequestStatus.PENDING


def test_site_visit_converts_lead_once(db, engine, users, lead):
    for _ in range(2):
        request = _submit(engine, users.sales, RequestType.SITE_VISIT, context_id=lead.id)
        engine.approve(request.id, users.manager.id, users.manager.display_name)

    projects = db.query(Project).filter(Project.lead_id == lead.id).all()
    assert len(projects) == 1
    assert lead.converted_project_id == projects[0].id
    assert lead.status == LeadStatus.SITE_VISIT_SCHEDULED
    assert projects[0].status == ProjectStatus.SITE_VISIT_PENDING
    actions = [entry["action"] for entry in lead.history_json]
    assert actions.count("Converted to project") == 1


def test_unresolved_context_uses_fallback_kind(db, engine, users):
    request = _submit(engine, users.sales, RequestType.SITE_VISIT, context_id="seed-lead-42")

    approved = engine.approve(
        request.id,
        users.manager.id,
        users.manager.display_name,
        assignee_id=users.worker.id,
    )

    assert approved.status == RequestStatus.APPROVED
    tasks = TaskDispatcher(db).for_request(request.id)
    assert len(tasks) == 1
    assert tasks[0].context_kind == CaseKind.LEAD
    assert db.query(Project).count() == 0


def test_approve_missing_request_is_noop(engine, users):
    assert engine.approve(9999, users.admin.id, users.admin.display_name) is None
    assert engine.reject(9999, users.admin.id, users.admin.display_name, "no") is None


def test_decided_request_cannot_be_decided_again(engine, users):
    request = _submit(engine, users.sales, RequestType.LEAVE)
    engine.approve(request.id, users.manager.id, users.manager.display_name)

    with pytest.raises(HTTPException) as excinfo:
        engine.reject(request.id, users.manager.id, users.manager.display_name, "Changed my mind")

    assert excinfo.value.status_code == 409
    assert request.status == RequestStatus.APPROVED


def test_concurrent_modification_is_a_conflict(db, engine, users):
    request = _submit(engine, users.sales, RequestType.LEAVE)
    # Another writer bumps the row version behind this session's back.
    db.execute(text("UPDATE approval_requests SET version = version + 1 WHERE id = :id"), {"id": request.id})

    with pytest.raises(HTTPException) as excinfo:
        engine.approve(request.id, users.manager.id, users.manager.display_name)

    assert excinfo.value.status_code == 409


def test_approve_logs_activity_against_context(db, engine, users, project):
    request = _submit(engine, users.sales, RequestType.PROCUREMENT_TOKEN, context_id=project.id)
    engine.approve(request.id, users.head.id, users.head.display_name)

    entry = (
        db.query(ActivityLog)
        .filter(ActivityLog.type == "REQUEST_APPROVED", ActivityLog.context_id == project.id)
        .one()
    )
    assert entry.team == "Procurement"
    assert entry.outcome == RequestStatus.APPROVED.value
    assert project.status == ProjectStatus.PROCUREMENT


def test_negotiate_then_accept(db, engine, users, project):
    request = _submit(engine, users.sales, RequestType.EXECUTION_TOKEN, context_id=project.id)
    counter = [
        Stage(name="Civil", deadline=datetime(2026, 12, 1, tzinfo=timezone.utc)),
        Stage(name="Handover", deadline=datetime(2026, 12, 15, tzinfo=timezone.utc)),
    ]

    negotiated = engine.negotiate(request.id, users.head.id, users.head.display_name, counter, comments="Tighter plan")
    assert negotiated.status == RequestStatus.NEGOTIATION
    assert [stage["name"] for stage in negotiated.stages_json] == ["Civil", "Handover"]

    approved = engine.approve(request.id, users.head.id, users.head.display_name, assignee_id=users.worker.id)
    assert approved.status == RequestStatus.AWAITING_EXECUTION_ACCEPTANCE
    assert len(TaskDispatcher(db).for_request(request.id)) == 3

    with pytest.raises(HTTPException) as excinfo:
        engine.accept_execution(request.id, users.sales.id)
    assert excinfo.value.status_code == 403

    accepted = engine.accept_execution(request.id, users.worker.id)
    assert accepted.status == RequestStatus.APPROVED
    assert accepted.accepted_at is not None
    notified = {n.user_id for n in _notifications_for(db, request.id) if n.title == "Execution accepted"}
    assert notified == {users.sales.id, users.head.id}


def test_negotiate_only_for_execution_requests(engine, users):
    request = _submit(engine, users.sales, RequestType.LEAVE)

    with pytest.raises(HTTPException) as excinfo:
        engine.negotiate(
            request.id,
            users.manager.id,
            users.manager.display_name,
            [Stage(name="x", deadline=datetime(2026, 12, 1, tzinfo=timezone.utc))],
        )
    assert excinfo.value.status_code == 400


def test_staff_registration_provisions_account(db, engine, users):
    request = engine.submit_staff_registration(
        StaffRegistrationCreate(
            name="Neha Site",
            email="Neha@Example.com",
            password="s3cret-pass",
            phone="+91 90000 00000",
            region="Bengaluru",
            requested_role=Role.SITE_ENGINEER,
        )
    )
    assert request.requester_user_id is None
    assert request.email == "neha@example.com"
    assert request.password_hash and request.password_hash != "s3cret-pass"
    assert {n.user_id for n in _notifications_for(db, request.id)} == {users.admin.id}

    approved = engine.approve(request.id, users.admin.id, users.admin.display_name)

    account = db.query(User).filter(User.email == "neha@example.com").one()
    assert approved.status == RequestStatus.APPROVED
    assert approved.requester_user_id == account.id
    assert approved.password_hash is None
    assert account.role == Role.SITE_ENGINEER
    assert verify_password("s3cret-pass", account.hashed_password)
    assert [n.user_id for n in _notifications_for(db, request.id) if n.user_id == account.id] == [account.id]


def test_staff_registration_refuses_known_email(engine, users):
    with pytest.raises(HTTPException) as excinfo:
        engine.submit_staff_registration(
            StaffRegistrationCreate(name="Dup", email="sales@example.com", password="s3cret-pass")
        )
    assert excinfo.value.status_code == 409


def test_staff_provisioning_failure_is_user_facing(db, engine, users):
    request = engine.submit_staff_registration(
        StaffRegistrationCreate(name="Late Joiner", email="late@example.com", password="s3cret-pass")
    )
    db.add(User(email="late@example.com", hashed_password="x", role=Role.DESIGNER, is_active=True))
    db.flush()

    with pytest.raises(HTTPException) as excinfo:
        engine.approve(request.id, users.admin.id, users.admin.display_name)

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail.startswith("Failed to create staff account")
    assert request.status == RequestStatus.PENDING
