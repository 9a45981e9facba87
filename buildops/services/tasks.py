from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from buildops.models.enums import CaseKind, TaskStatus
from buildops.models.task import WorkTask


@dataclass(frozen=True)
class TaskLinkage:
    approval_request_id: Optional[int] = None
    context_id: Optional[str] = None
    context_kind: Optional[CaseKind] = None
    created_by_user_id: Optional[int] = None
    stage_name: Optional[str] = None
    template_type: Optional[str] = None


class TaskDispatcher:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(
        self,
        title: str,
        description: Optional[str],
        assignee_id: int,
        deadline: Optional[datetime] = None,
        linkage: Optional[TaskLinkage] = None,
    ) -> WorkTask:
        link = linkage or TaskLinkage()
        task = WorkTask(
            title=title,
            description=description,
            status=TaskStatus.PENDING,
            assigned_to_user_id=assignee_id,
            due_at=deadline,
            created_by_user_id=link.created_by_user_id,
            approval_request_id=link.approval_request_id,
            context_id=link.context_id,
            context_kind=link.context_kind,
            stage_name=link.stage_name,
            template_type=link.template_type,
        )
        self.db.add(task)
        self.db.flush()
        return task

    def for_request(self, approval_request_id: int) -> list[WorkTask]:
        return (
            self.db.query(WorkTask)
            .filter(WorkTask.approval_request_id == approval_request_id)
            .order_by(WorkTask.id.asc())
            .all()
        )
