"""Per-category transition policies for workflow requests.

Each request category maps onto one ``TransitionPolicy`` describing who reviews
it, which status an approval lands in, how the approval projects onto the
lead or project it concerns, and whether it fans out stage tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from buildops.models.enums import CaseKind, LeadStatus, ProjectStatus, RequestStatus, RequestType, Role


@dataclass(frozen=True)
class TransitionPolicy:
    request_type: RequestType
    label: str
    team: str
    reviewer_roles: tuple[Role, ...]
    lead_status: Optional[LeadStatus] = None
    project_status: Optional[ProjectStatus] = None
    # Used when the context id resolves to neither a lead nor a project (seed/demo data).
    fallback_kind: Optional[CaseKind] = None
    converts_lead: bool = False
    requires_acceptance: bool = False
    fans_out_stages: bool = False

    def reviewable_from(self) -> frozenset[RequestStatus]:
        if self.requires_acceptance:
            return frozenset({RequestStatus.PENDING, RequestStatus.NEGOTIATION})
        return frozenset({RequestStatus.PENDING})

    def target_status(self, current: RequestStatus) -> RequestStatus:
        if self.requires_acceptance and current in (RequestStatus.PENDING, RequestStatus.NEGOTIATION):
            return RequestStatus.AWAITING_EXECUTION_ACCEPTANCE
        return RequestStatus.APPROVED

    def status_for(self, kind: CaseKind) -> Optional[LeadStatus | ProjectStatus]:
        if kind == CaseKind.LEAD:
            return self.lead_status
        return self.project_status


_SALES_REVIEW = (Role.SALES_GENERAL_MANAGER, Role.MANAGER)
_DESIGN_REVIEW = (Role.MANAGER, Role.PROJECT_HEAD)
_DELIVERY_REVIEW = (Role.PROJECT_HEAD, Role.MANAGER)


def _policies(*items: TransitionPolicy) -> dict[RequestType, TransitionPolicy]:
    return {item.request_type: item for item in items}


POLICIES: dict[RequestType, TransitionPolicy] = _policies(
    TransitionPolicy(RequestType.LEAVE, "Leave", "HR", (Role.MANAGER,)),
    TransitionPolicy(
        RequestType.SITE_VISIT,
        "Site Visit",
        "Sales",
        _SALES_REVIEW,
        lead_status=LeadStatus.SITE_VISIT_SCHEDULED,
        fallback_kind=CaseKind.LEAD,
        converts_lead=True,
    ),
    TransitionPolicy(
        RequestType.SITE_VISIT_TOKEN,
        "Site Visit",
        "Sales",
        _SALES_REVIEW,
        lead_status=LeadStatus.SITE_VISIT_SCHEDULED,
        fallback_kind=CaseKind.LEAD,
        converts_lead=True,
    ),
    TransitionPolicy(
        RequestType.RESCHEDULE_SITE_VISIT,
        "Site Visit Reschedule",
        "Sales",
        _SALES_REVIEW,
        lead_status=LeadStatus.SITE_VISIT_RESCHEDULED,
        project_status=ProjectStatus.SITE_VISIT_RESCHEDULED,
        fallback_kind=CaseKind.LEAD,
    ),
    TransitionPolicy(
        RequestType.START_DRAWING,
        "Drawing",
        "Drawing",
        _DESIGN_REVIEW,
        lead_status=LeadStatus.DRAWING_IN_PROGRESS,
        project_status=ProjectStatus.DESIGN_IN_PROGRESS,
        fallback_kind=CaseKind.LEAD,
    ),
    TransitionPolicy(
        RequestType.DESIGN_CHANGE,
        "Design Change",
        "Drawing",
        _DESIGN_REVIEW,
        lead_status=LeadStatus.DRAWING_REVISIONS,
        project_status=ProjectStatus.REVISIONS_REQUESTED,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(
        RequestType.DESIGN_TOKEN,
        "Design",
        "Drawing",
        _DESIGN_REVIEW,
        lead_status=LeadStatus.DRAWING_REVISIONS,
        project_status=ProjectStatus.REVISIONS_REQUESTED,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(
        RequestType.DRAWING_REVISIONS,
        "Drawing Revisions",
        "Drawing",
        _DESIGN_REVIEW,
        lead_status=LeadStatus.DRAWING_REVISIONS,
        project_status=ProjectStatus.REVISIONS_REQUESTED,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(
        RequestType.REQUEST_FOR_QUOTATION,
        "Quotation",
        "Quotation",
        _SALES_REVIEW,
        lead_status=LeadStatus.WAITING_FOR_QUOTATION,
        project_status=ProjectStatus.AWAITING_QUOTATION,
        fallback_kind=CaseKind.LEAD,
    ),
    TransitionPolicy(
        RequestType.QUOTATION_TOKEN,
        "Quotation",
        "Quotation",
        _SALES_REVIEW,
        lead_status=LeadStatus.WAITING_FOR_QUOTATION,
        project_status=ProjectStatus.AWAITING_QUOTATION,
        fallback_kind=CaseKind.LEAD,
    ),
    TransitionPolicy(
        RequestType.QUOTATION_APPROVAL,
        "Quotation Approval",
        "Quotation",
        _SALES_REVIEW,
        project_status=ProjectStatus.QUOTATION_SENT,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(
        RequestType.NEGOTIATION,
        "Negotiation",
        "Sales",
        _SALES_REVIEW,
        lead_status=LeadStatus.NEGOTIATION,
        project_status=ProjectStatus.NEGOTIATING,
        fallback_kind=CaseKind.LEAD,
    ),
    TransitionPolicy(
        RequestType.MODIFICATION,
        "Modification",
        "Execution",
        _DELIVERY_REVIEW,
        lead_status=LeadStatus.IN_EXECUTION,
        project_status=ProjectStatus.IN_EXECUTION,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(
        RequestType.EXECUTION_TOKEN,
        "Execution",
        "Execution",
        _DELIVERY_REVIEW,
        lead_status=LeadStatus.IN_EXECUTION,
        project_status=ProjectStatus.IN_EXECUTION,
        fallback_kind=CaseKind.PROJECT,
        requires_acceptance=True,
        fans_out_stages=True,
    ),
    TransitionPolicy(
        RequestType.PROCUREMENT_TOKEN,
        "Procurement",
        "Procurement",
        _DELIVERY_REVIEW,
        lead_status=LeadStatus.IN_PROCUREMENT,
        project_status=ProjectStatus.PROCUREMENT,
        fallback_kind=CaseKind.PROJECT,
    ),
    TransitionPolicy(RequestType.STAFF_REGISTRATION, "Staff Registration", "Admin", (Role.SUPER_ADMIN, Role.ADMIN)),
    TransitionPolicy(RequestType.OTHER, "Request", "General", (Role.MANAGER,)),
)


def policy_for(request_type: RequestType) -> TransitionPolicy:
    return POLICIES[request_type]
