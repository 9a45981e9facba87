"""Initial schema: users, approval requests, cases, tasks, notifications, activity,
procurement plans and validation requests.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from buildops.models.enums import (
    CaseKind,
    LeadStatus,
    NotificationSeverity,
    Priority,
    ProcurementPlanStatus,
    ProjectStatus,
    RequestStatus,
    RequestType,
    Role,
    TaskStatus,
    ValidationRequestStatus,
    ValidationRequestType,
)

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    "role": Role,
    "request_type": RequestType,
    "request_status": RequestStatus,
    "priority": Priority,
    "lead_status": LeadStatus,
    "project_status": ProjectStatus,
    "case_kind": CaseKind,
    "notification_severity": NotificationSeverity,
    "task_status": TaskStatus,
    "procurement_plan_status": ProcurementPlanStatus,
    "validation_request_type": ValidationRequestType,
    "validation_request_status": ValidationRequestStatus,
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; several tables share "role" and "priority".
    return postgresql.ENUM(*[member.name for member in ENUMS[name]], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, enum_cls in ENUMS.items():
        sa.Enum(*[member.name for member in enum_cls], name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("region", sa.String(50), nullable=True),
        sa.Column("role", _enum("role"), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("organization_id", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "approval_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_type", _enum("request_type"), nullable=False),
        sa.Column("status", _enum("request_status"), nullable=False),
        sa.Column("requester_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("requester_name", sa.String(255), nullable=False),
        sa.Column("requester_role", sa.String(64), nullable=True),
        sa.Column("assignee_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("target_role", _enum("role"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", _enum("priority"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("duration", sa.String(64), nullable=True),
        sa.Column("context_id", sa.String(64), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stages_json", sa.JSON(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("region", sa.String(50), nullable=True),
        sa.Column("requested_role", _enum("role"), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reviewer_name", sa.String(255), nullable=True),
        sa.Column("reviewer_comments", sa.Text(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    for column in ("id", "request_type", "status", "requester_user_id", "assignee_user_id", "context_id", "email", "requested_at"):
        op.create_index(f"ix_approval_requests_{column}", "approval_requests", [column])

    op.create_table(
        "leads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("project_name", sa.String(255), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("status", _enum("lead_status"), nullable=False),
        sa.Column("priority", _enum("priority"), nullable=False),
        sa.Column("assigned_to_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("history_json", sa.JSON(), nullable=True),
        sa.Column("converted_project_id", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_assigned_to_user_id", "leads", ["assigned_to_user_id"])

    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("lead_id", sa.String(36), sa.ForeignKey("leads.id"), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("project_name", sa.String(255), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", _enum("project_status"), nullable=False),
        sa.Column("history_json", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_lead_id", "projects", ["lead_id"])
    op.create_index("ix_projects_status", "projects", ["status"])

    op.create_table(
        "work_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", _enum("task_status"), nullable=False),
        sa.Column("assigned_to_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approval_request_id", sa.Integer(), sa.ForeignKey("approval_requests.id"), nullable=True),
        sa.Column("context_id", sa.String(64), nullable=True),
        sa.Column("context_kind", _enum("case_kind"), nullable=True),
        sa.Column("stage_name", sa.String(255), nullable=True),
        sa.Column("template_type", sa.String(100), nullable=True),
        *_timestamps(),
    )
    for column in ("id", "status", "assigned_to_user_id", "due_at", "created_by_user_id", "approval_request_id", "context_id"):
        op.create_index(f"ix_work_tasks_{column}", "work_tasks", [column])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", _enum("notification_severity"), nullable=False),
        sa.Column("related_entity_type", sa.String(64), nullable=True),
        sa.Column("related_entity_id", sa.String(64), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    for column in ("id", "user_id", "severity", "related_entity_id", "read_at"):
        op.create_index(f"ix_notifications_{column}", "notifications", [column])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("context_id", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("team", sa.String(64), nullable=True),
        sa.Column("outcome", sa.String(64), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    for column in ("id", "context_id", "actor_user_id", "type"):
        op.create_index(f"ix_activity_logs_{column}", "activity_logs", [column])

    op.create_table(
        "procurement_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("case_id", sa.String(36), nullable=False),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("catalog_item_id", sa.String(64), nullable=True),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("required_on", sa.Date(), nullable=False),
        sa.Column("day_work_description", sa.Text(), nullable=True),
        sa.Column("vendor_id", sa.String(64), nullable=False),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("expected_delivery_date", sa.Date(), nullable=False),
        sa.Column("status", _enum("procurement_plan_status"), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("purchase_invoice_id", sa.String(64), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    for column in ("id", "case_id", "organization_id", "vendor_id", "status", "purchase_invoice_id"):
        op.create_index(f"ix_procurement_plans_{column}", "procurement_plans", [column])

    op.create_table(
        "validation_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.String(64), nullable=False),
        sa.Column("type", _enum("validation_request_type"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("distance_km", sa.Numeric(10, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("receipt_url", sa.String(1024), nullable=True),
        sa.Column("leave_from", sa.Date(), nullable=True),
        sa.Column("leave_to", sa.Date(), nullable=True),
        sa.Column("status", _enum("validation_request_status"), nullable=False),
        sa.Column("approved_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("salary_ledger_id", sa.String(64), nullable=True),
        *_timestamps(),
    )
    for column in ("id", "organization_id", "user_id", "status"):
        op.create_index(f"ix_validation_requests_{column}", "validation_requests", [column])


def downgrade() -> None:
    for table in (
        "validation_requests",
        "procurement_plans",
        "activity_logs",
        "notifications",
        "work_tasks",
        "projects",
        "leads",
        "approval_requests",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name, enum_cls in ENUMS.items():
        sa.Enum(*[member.name for member in enum_cls], name=name).drop(bind, checkfirst=True)
