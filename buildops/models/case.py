from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Enum, ForeignKey, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from buildops.db.base import Base, CaseIDMixin, TimestampMixin
from buildops.models.enums import LeadStatus, Priority, ProjectStatus


class Lead(CaseIDMixin, TimestampMixin, Base):
    __tablename__ = "leads"

    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[LeadStatus] = mapped_column(
        Enum(LeadStatus, name="lead_status"),
        default=LeadStatus.NEW_NOT_CONTACTED,
        nullable=False,
        index=True,
    )
    priority: Mapped[Priority] = mapped_column(Enum(Priority, name="priority"), default=Priority.MEDIUM, nullable=False)
    assigned_to_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    history_json: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    # Set once the lead has been mirrored into a project.
    converted_project_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)


class Project(CaseIDMixin, TimestampMixin, Base):
    __tablename__ = "projects"

    lead_id: Mapped[Optional[str]] = mapped_column(ForeignKey("leads.id"), nullable=True, index=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.PLANNING,
        nullable=False,
        index=True,
    )
    history_json: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
