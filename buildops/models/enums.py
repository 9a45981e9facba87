from __future__ import annotations

import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "Super Admin"
    ADMIN = "Admin"
    MANAGER = "Manager"
    SALES_GENERAL_MANAGER = "Sales General Manager"
    SALES_TEAM_MEMBER = "Sales Team Member"
    DRAWING_TEAM = "Drawing Team"
    QUOTATION_TEAM = "Quotation Team"
    SITE_ENGINEER = "Site Engineer"
    PROCUREMENT_TEAM = "Procurement Team"
    EXECUTION_TEAM = "Execution Team"
    PROJECT_HEAD = "Project Head"
    ACCOUNTS_TEAM = "Accounts Team"
    DESIGNER = "Designer"


class RequestType(str, enum.Enum):
    LEAVE = "LEAVE"
    SITE_VISIT = "SITE_VISIT"
    SITE_VISIT_TOKEN = "SITE_VISIT_TOKEN"
    RESCHEDULE_SITE_VISIT = "RESCHEDULE_SITE_VISIT"
    START_DRAWING = "START_DRAWING"
    DESIGN_CHANGE = "DESIGN_CHANGE"
    DESIGN_TOKEN = "DESIGN_TOKEN"
    DRAWING_REVISIONS = "DRAWING_REVISIONS"
    REQUEST_FOR_QUOTATION = "REQUEST_FOR_QUOTATION"
    QUOTATION_TOKEN = "QUOTATION_TOKEN"
    QUOTATION_APPROVAL = "QUOTATION_APPROVAL"
    NEGOTIATION = "NEGOTIATION"
    MODIFICATION = "MODIFICATION"
    EXECUTION_TOKEN = "EXECUTION_TOKEN"
    PROCUREMENT_TOKEN = "PROCUREMENT_TOKEN"
    STAFF_REGISTRATION = "STAFF_REGISTRATION"
    OTHER = "OTHER"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    NEGOTIATION = "NEGOTIATION"
    AWAITING_EXECUTION_ACCEPTANCE = "AWAITING_EXECUTION_ACCEPTANCE"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Priority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class LeadStatus(str, enum.Enum):
    NEW_NOT_CONTACTED = "New - Not Contacted"
    CONTACTED_CALL_DONE = "Contacted - Call Done"
    SITE_VISIT_SCHEDULED = "Site Visit Scheduled"
    SITE_VISIT_RESCHEDULED = "Site Visit Rescheduled"
    WAITING_FOR_DRAWING = "Waiting for Drawing"
    DRAWING_IN_PROGRESS = "Drawing In Progress"
    DRAWING_REVISIONS = "Drawing Revisions"
    WAITING_FOR_QUOTATION = "Waiting for Quotation"
    QUOTATION_SENT = "Quotation Sent"
    NEGOTIATION = "Negotiation"
    IN_PROCUREMENT = "In Procurement"
    IN_EXECUTION = "In Execution"
    WON = "Won"
    LOST = "Lost"


class ProjectStatus(str, enum.Enum):
    PLANNING = "Planning"
    SITE_VISIT_PENDING = "Site Visit Pending"
    SITE_VISIT_RESCHEDULED = "Site Visit Rescheduled"
    AWAITING_DESIGN = "Awaiting Design"
    DESIGN_IN_PROGRESS = "Design In Progress"
    REVISIONS_REQUESTED = "Revisions Requested"
    AWAITING_QUOTATION = "Awaiting Quotation"
    QUOTATION_SENT = "Quotation Sent"
    NEGOTIATING = "Negotiating"
    PROCUREMENT = "Procurement"
    IN_EXECUTION = "In Execution"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CaseKind(str, enum.Enum):
    LEAD = "LEAD"
    PROJECT = "PROJECT"


class NotificationSeverity(str, enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    ACKNOWLEDGED = "ACKNOWLEDGED"


class ProcurementPlanStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    DELIVERED = "DELIVERED"
    INVOICED = "INVOICED"


class ValidationRequestType(str, enum.Enum):
    EXPENSE = "EXPENSE"
    TRAVEL = "TRAVEL"
    LEAVE = "LEAVE"
    OTHER = "OTHER"


class ValidationRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
