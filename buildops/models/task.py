from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buildops.db.base import Base, IDMixin, TimestampMixin
from buildops.models.enums import CaseKind, TaskStatus


class WorkTask(IDMixin, TimestampMixin, Base):
    __tablename__ = "work_tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status"),
        default=TaskStatus.PENDING,
        nullable=False,
        index=True,
    )

    assigned_to_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    approval_request_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("approval_requests.id"),
        nullable=True,
        index=True,
    )
    context_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    context_kind: Mapped[Optional[CaseKind]] = mapped_column(Enum(CaseKind, name="case_kind"), nullable=True)
    stage_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    template_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    assignee: Mapped["User"] = relationship(back_populates="tasks_assigned", foreign_keys=[assigned_to_user_id])
