from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from buildops.db.base import Base, IDMixin, TimestampMixin
from buildops.models.enums import ProcurementPlanStatus


class ProcurementPlan(IDMixin, TimestampMixin, Base):
    __tablename__ = "procurement_plans"

    case_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    catalog_item_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    required_on: Mapped[date] = mapped_column(Date, nullable=False)
    day_work_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    vendor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    expected_delivery_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[ProcurementPlanStatus] = mapped_column(
        Enum(ProcurementPlanStatus, name="procurement_plan_status"),
        default=ProcurementPlanStatus.PLANNED,
        nullable=False,
        index=True,
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    purchase_invoice_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    created_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
