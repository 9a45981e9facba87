from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session

from buildops.db.base import utcnow
from buildops.models.case import Lead, Project
from buildops.models.enums import CaseKind, ProjectStatus
from buildops.services.workflow_policies import TransitionPolicy

logger = logging.getLogger(__name__)

CaseRecord = Union[Lead, Project]


@dataclass
class ResolvedContext:
    context_id: str
    kind: Optional[CaseKind]
    record: Optional[CaseRecord] = None

    @property
    def resolved(self) -> bool:
        return self.record is not None


@dataclass
class ProjectionResult:
    previous_status: Optional[str]
    new_status: Optional[str]
    converted_project: Optional[Project] = None


def append_history(record: CaseRecord, *, action: str, user: str, notes: Optional[str] = None, **extra) -> dict:
    entry = {
        "action": action,
        "user": user,
        "timestamp": utcnow().isoformat(),
        "notes": notes,
    }
    entry.update(extra)
    # Reassign so the JSON column is marked dirty.
    record.history_json = [*(record.history_json or []), entry]
    return entry


class EntityStatusProjector:
    """Maps an approved request onto the lead or project it concerns."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve(self, context_id: Optional[str], policy: TransitionPolicy) -> Optional[ResolvedContext]:
        if not context_id:
            return None
        lead = self.db.get(Lead, context_id)
        if lead:
            return ResolvedContext(context_id, CaseKind.LEAD, lead)
        project = self.db.get(Project, context_id)
        if project:
            return ResolvedContext(context_id, CaseKind.PROJECT, project)
        logger.warning(
            "context_unresolved",
            extra={"context_id": context_id, "request_type": policy.request_type.value},
        )
        return ResolvedContext(context_id, policy.fallback_kind, None)

    def project(
        self,
        context: ResolvedContext,
        policy: TransitionPolicy,
        *,
        actor_name: str,
        request_id: int,
        notes: Optional[str] = None,
    ) -> Optional[ProjectionResult]:
        if not context.resolved or context.kind is None:
            return None
        record = context.record
        previous = record.status.value if record.status else None
        target = policy.status_for(context.kind)

        append_history(
            record,
            action=f"{policy.label} approved",
            user=actor_name,
            notes=notes,
            request_id=request_id,
        )
        if target is not None:
            record.status = target
        self.db.add(record)

        result = ProjectionResult(previous_status=previous, new_status=record.status.value)
        if policy.converts_lead and context.kind == CaseKind.LEAD:
            result.converted_project = self.convert_lead(record, actor_name=actor_name)
        self.db.flush()
        logger.info(
            "context_projected",
            extra={"context_id": context.context_id, "status": result.new_status},
        )
        return result

    def convert_lead(self, lead: Lead, *, actor_name: str) -> Optional[Project]:
        """Mirror a lead into a project once; later calls are no-ops."""
        if lead.converted_project_id:
            return None
        project = Project(
            lead_id=lead.id,
            client_name=lead.client_name,
            project_name=lead.project_name,
            value=lead.value,
            status=ProjectStatus.SITE_VISIT_PENDING,
        )
        append_history(project, action="Created from lead", user=actor_name, lead_id=lead.id)
        self.db.add(project)
        self.db.flush()

        lead.converted_project_id = project.id
        append_history(lead, action="Converted to project", user=actor_name, project_id=project.id)
        self.db.add(lead)
        self.db.flush()
        return project
