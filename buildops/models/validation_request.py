from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buildops.db.base import Base, IDMixin, TimestampMixin
from buildops.models.enums import ValidationRequestStatus, ValidationRequestType


class ValidationRequest(IDMixin, TimestampMixin, Base):
    __tablename__ = "validation_requests"

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[ValidationRequestType] = mapped_column(
        Enum(ValidationRequestType, name="validation_request_type"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    distance_km: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    receipt_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    leave_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    leave_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[ValidationRequestStatus] = mapped_column(
        Enum(ValidationRequestStatus, name="validation_request_status"),
        default=ValidationRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    salary_ledger_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
