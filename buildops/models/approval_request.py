from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buildops.db.base import Base, IDMixin, TimestampMixin, utcnow
from buildops.models.enums import Priority, RequestStatus, RequestType, Role


class ApprovalRequest(IDMixin, TimestampMixin, Base):
    __tablename__ = "approval_requests"

    request_type: Mapped[RequestType] = mapped_column(
        Enum(RequestType, name="request_type"),
        nullable=False,
        index=True,
    )
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status"),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Null only while a staff registration waits for its account.
    requester_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_role: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    assignee_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    target_role: Mapped[Optional[Role]] = mapped_column(Enum(Role, name="role"), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[Priority] = mapped_column(Enum(Priority, name="priority"), default=Priority.MEDIUM, nullable=False)

    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    context_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Execution tokens only: [{"name": ..., "deadline": iso8601}, ...]
    stages_json: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    # Staff registration only. The password is hashed on submission and cleared once provisioned.
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    requested_role: Mapped[Optional[Role]] = mapped_column(Enum(Role, name="role"), nullable=True)

    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    reviewer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    requester: Mapped[Optional["User"]] = relationship(foreign_keys=[requester_user_id])
    assignee: Mapped[Optional["User"]] = relationship(foreign_keys=[assignee_user_id])

    @property
    def stages(self) -> Optional[list[dict]]:
        return self.stages_json
