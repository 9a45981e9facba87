from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from buildops.models.enums import ProcurementPlanStatus
from buildops.schemas.base import ORMModel


class ProcurementPlanCreate(ORMModel):
    organization_id: Optional[str] = Field(default=None, max_length=64)
    catalog_item_id: Optional[str] = Field(default=None, max_length=64)
    item_name: str = Field(..., min_length=1, max_length=255)
    quantity: Decimal = Field(..., gt=Decimal("0"))
    required_on: date
    day_work_description: Optional[str] = None
    vendor_id: str = Field(..., min_length=1, max_length=64)
    vendor_name: str = Field(..., min_length=1, max_length=255)
    expected_delivery_date: date


class InvoiceLink(ORMModel):
    purchase_invoice_id: str = Field(..., max_length=64)

    @field_validator("purchase_invoice_id")
    @classmethod
    def require_invoice_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("purchase_invoice_id is required")
        return value.strip()


class ProcurementPlanRead(ORMModel):
    id: int
    case_id: str
    organization_id: str
    catalog_item_id: Optional[str] = None
    item_name: str
    quantity: Decimal
    required_on: date
    day_work_description: Optional[str] = None
    vendor_id: str
    vendor_name: str
    expected_delivery_date: date
    status: ProcurementPlanStatus
    delivered_at: Optional[datetime] = None
    purchase_invoice_id: Optional[str] = None
    created_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
