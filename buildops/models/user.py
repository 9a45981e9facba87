from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, Enum, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buildops.db.base import Base, IDMixin, TimestampMixin
from buildops.models.enums import Role


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.SALES_TEAM_MEMBER, nullable=False, index=True)
    roles: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    organization_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    notifications: Mapped[List["Notification"]] = relationship(back_populates="user")
    tasks_assigned: Mapped[List["WorkTask"]] = relationship(
        back_populates="assignee",
        foreign_keys="WorkTask.assigned_to_user_id",
    )
    activities: Mapped[List["ActivityLog"]] = relationship(back_populates="actor")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
