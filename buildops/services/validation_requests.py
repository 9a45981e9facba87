from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from buildops.db.base import utcnow
from buildops.models.enums import ValidationRequestStatus
from buildops.models.user import User
from buildops.models.validation_request import ValidationRequest
from buildops.schemas.validation_request import ValidationRequestCreate

logger = logging.getLogger(__name__)


class ValidationRequestTracker:
    """Expense, travel and leave claims: staff submit, an admin decides once, accounts link payroll."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, org_id: str, request_id: int) -> ValidationRequest:
        record = self.db.get(ValidationRequest, request_id)
        if not record or record.organization_id != org_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Validation request not found")
        return record

    def submit(self, org_id: str, user: User, data: ValidationRequestCreate) -> ValidationRequest:
        record = ValidationRequest(
            organization_id=org_id,
            type=data.type,
            user_id=user.id,
            user_name=user.display_name,
            user_email=user.email,
            amount=data.amount,
            distance_km=data.distance_km,
            description=data.description.strip(),
            receipt_url=data.receipt_url,
            leave_from=data.leave_from,
            leave_to=data.leave_to,
            status=ValidationRequestStatus.PENDING,
        )
        self.db.add(record)
        self.db.flush()
        logger.info(
            "validation_request_submitted",
            extra={"validation_request_id": record.id, "user_id": user.id},
        )
        return record

    def approve(
        self,
        org_id: str,
        request_id: int,
        approved: bool,
        user_id: int,
        reason: Optional[str] = None,
    ) -> ValidationRequest:
        record = self.get(org_id, request_id)
        if record.status != ValidationRequestStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Validation request already {record.status.value}",
            )
        now = utcnow()
        if approved:
            record.status = ValidationRequestStatus.APPROVED
            record.approved_by_user_id = user_id
            record.approved_at = now
        else:
            record.status = ValidationRequestStatus.REJECTED
            record.rejected_by_user_id = user_id
            record.rejected_at = now
            record.rejection_reason = (reason or "").strip() or None
        self.db.add(record)
        self.db.flush()
        logger.info(
            "validation_request_decided",
            extra={"validation_request_id": record.id, "status": record.status.value, "user_id": user_id},
        )
        return record

    def link_to_salary(self, org_id: str, request_id: int, salary_ledger_id: str) -> ValidationRequest:
        record = self.get(org_id, request_id)
        if record.status != ValidationRequestStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Only approved requests can be added to salary",
            )
        ledger_id = (salary_ledger_id or "").strip()
        if not ledger_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Salary ledger id is required")
        if record.salary_ledger_id and record.salary_ledger_id != ledger_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Already linked to salary ledger {record.salary_ledger_id}",
            )
        record.salary_ledger_id = ledger_id
        self.db.add(record)
        self.db.flush()
        return record

    def list_requests(
        self,
        org_id: str,
        *,
        user_id: Optional[int] = None,
        request_status: Optional[ValidationRequestStatus] = None,
    ) -> list[ValidationRequest]:
        query = self.db.query(ValidationRequest).filter(ValidationRequest.organization_id == org_id)
        if user_id is not None:
            query = query.filter(ValidationRequest.user_id == user_id)
        if request_status is not None:
            query = query.filter(ValidationRequest.status == request_status)
        return query.order_by(ValidationRequest.created_at.desc(), ValidationRequest.id.desc()).all()
