"""Import all models so SQLAlchemy metadata is fully registered."""

from buildops.db.base import Base

from buildops.models.approval_request import ApprovalRequest
from buildops.models.audit import ActivityLog
from buildops.models.case import Lead, Project
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
from buildops.models.notification import Notification
from buildops.models.procurement_plan import ProcurementPlan
from buildops.models.task import WorkTask
from buildops.models.user import User
from buildops.models.validation_request import ValidationRequest

__all__ = [
    "Base",
    "ActivityLog",
    "ApprovalRequest",
    "CaseKind",
    "Lead",
    "LeadStatus",
    "Notification",
    "NotificationSeverity",
    "Priority",
    "ProcurementPlan",
    "ProcurementPlanStatus",
    "Project",
    "ProjectStatus",
    "RequestStatus",
    "RequestType",
    "Role",
    "TaskStatus",
    "User",
    "ValidationRequest",
    "ValidationRequestStatus",
    "ValidationRequestType",
    "WorkTask",
]
