from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator, model_validator

from buildops.models.enums import ValidationRequestStatus, ValidationRequestType
from buildops.schemas.base import ORMModel


class ValidationRequestCreate(ORMModel):
    type: ValidationRequestType
    amount: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    distance_km: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    description: str = Field(..., min_length=1)
    receipt_url: Optional[str] = Field(default=None, max_length=1024)
    leave_from: Optional[date] = None
    leave_to: Optional[date] = None

    @model_validator(mode="after")
    def validate_leave_window(self) -> "ValidationRequestCreate":
        if self.leave_from and self.leave_to and self.leave_to < self.leave_from:
            raise ValueError("leave_to cannot be before leave_from")
        return self


class ValidationDecision(ORMModel):
    approved: bool
    reason: Optional[str] = Field(default=None, max_length=2000)


class SalaryLink(ORMModel):
    salary_ledger_id: str = Field(..., max_length=64)

    @field_validator("salary_ledger_id")
    @classmethod
    def require_ledger_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("salary_ledger_id is required")
        return value.strip()


class ValidationRequestRead(ORMModel):
    id: int
    organization_id: str
    type: ValidationRequestType
    user_id: int
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    amount: Optional[Decimal] = None
    distance_km: Optional[Decimal] = None
    description: str
    receipt_url: Optional[str] = None
    leave_from: Optional[date] = None
    leave_to: Optional[date] = None
    status: ValidationRequestStatus
    approved_by_user_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by_user_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    salary_ledger_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
