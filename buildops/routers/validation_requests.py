from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from buildops.core import rbac
from buildops.core.deps import get_current_user
from buildops.db.session import get_db
from buildops.models.enums import ValidationRequestStatus
from buildops.models.user import User
from buildops.schemas.validation_request import (
    SalaryLink,
    ValidationDecision,
    ValidationRequestCreate,
    ValidationRequestRead,
)
from buildops.services.validation_requests import ValidationRequestTracker

router = APIRouter(prefix="/api/organizations/{org_id}/validation-requests", tags=["validation-requests"])


def get_tracker(db: Session = Depends(get_db)) -> ValidationRequestTracker:
    return ValidationRequestTracker(db)


def _require_org_member(org_id: str, user: User) -> None:
    if user.organization_id is None and rbac.user_has_any_role(user, rbac.OVERSIGHT_ROLES):
        return
    if user.organization_id != org_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this organization")


@router.post("", response_model=ValidationRequestRead, status_code=status.HTTP_201_CREATED)
def submit_validation_request(
    org_id: str,
    request_in: ValidationRequestCreate,
    db: Session = Depends(get_db),
    tracker: ValidationRequestTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ValidationRequestRead:
    _require_org_member(org_id, current_user)
    record = tracker.submit(org_id, current_user, request_in)
    db.commit()
    db.refresh(record)
    return ValidationRequestRead.model_validate(record)


@router.get("", response_model=List[ValidationRequestRead])
def list_validation_requests(
    org_id: str,
    status_filter: Optional[ValidationRequestStatus] = Query(None, alias="status"),
    mine: bool = Query(False),
    tracker: ValidationRequestTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> List[ValidationRequestRead]:
    _require_org_member(org_id, current_user)
    privileged = rbac.user_has_any_role(current_user, rbac.VALIDATION_APPROVER_ROLES | rbac.ACCOUNTS_ROLES)
    user_id = current_user.id if mine or not privileged else None
    records = tracker.list_requests(org_id, user_id=user_id, request_status=status_filter)
    return [ValidationRequestRead.model_validate(r) for r in records]


@router.post("/{request_id}/decision", response_model=ValidationRequestRead)
def decide_validation_request(
    org_id: str,
    request_id: int,
    payload: ValidationDecision,
    db: Session = Depends(get_db),
    tracker: ValidationRequestTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ValidationRequestRead:
    _require_org_member(org_id, current_user)
    rbac.require_roles(current_user, rbac.VALIDATION_APPROVER_ROLES)
    if tracker.get(org_id, request_id).user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Claimants cannot decide their own requests")
    record = tracker.approve(org_id, request_id, payload.approved, current_user.id, payload.reason)
    db.commit()
    db.refresh(record)
    return ValidationRequestRead.model_validate(record)


@router.post("/{request_id}/salary-link", response_model=ValidationRequestRead)
def link_to_salary(
    org_id: str,
    request_id: int,
    payload: SalaryLink,
    db: Session = Depends(get_db),
    tracker: ValidationRequestTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ValidationRequestRead:
    _require_org_member(org_id, current_user)
    rbac.require_roles(current_user, rbac.ACCOUNTS_ROLES)
    record = tracker.link_to_salary(org_id, request_id, payload.salary_ledger_id)
    db.commit()
    db.refresh(record)
    return ValidationRequestRead.model_validate(record)
