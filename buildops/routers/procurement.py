from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from buildops.core import rbac
from buildops.core.deps import get_current_user
from buildops.db.session import get_db
from buildops.models.user import User
from buildops.schemas.procurement import InvoiceLink, ProcurementPlanCreate, ProcurementPlanRead
from buildops.services.procurement import ProcurementPlanTracker

case_router = APIRouter(prefix="/api/cases/{case_id}/procurement-plans", tags=["procurement"])
router = APIRouter(prefix="/api/procurement-plans", tags=["procurement"])


def get_tracker(db: Session = Depends(get_db)) -> ProcurementPlanTracker:
    return ProcurementPlanTracker(db)


@case_router.post("", response_model=ProcurementPlanRead, status_code=status.HTTP_201_CREATED)
def add_plan(
    case_id: str,
    plan_in: ProcurementPlanCreate,
    db: Session = Depends(get_db),
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ProcurementPlanRead:
    rbac.require_roles(current_user, rbac.PROCUREMENT_ROLES)
    plan = tracker.add_plan(case_id, plan_in, created_by_user_id=current_user.id)
    db.commit()
    db.refresh(plan)
    return ProcurementPlanRead.model_validate(plan)


@case_router.get("", response_model=List[ProcurementPlanRead])
def list_case_plans(
    case_id: str,
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> List[ProcurementPlanRead]:
    return [ProcurementPlanRead.model_validate(p) for p in tracker.list_for_case(case_id)]


@case_router.post("/{plan_id}/deliver", response_model=ProcurementPlanRead)
def mark_delivered(
    case_id: str,
    plan_id: int,
    db: Session = Depends(get_db),
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ProcurementPlanRead:
    rbac.require_roles(current_user, rbac.PROCUREMENT_ROLES)
    plan = tracker.set_delivered(case_id, plan_id)
    db.commit()
    db.refresh(plan)
    return ProcurementPlanRead.model_validate(plan)


@case_router.post("/{plan_id}/invoice", response_model=ProcurementPlanRead)
def mark_invoiced(
    case_id: str,
    plan_id: int,
    payload: InvoiceLink,
    db: Session = Depends(get_db),
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> ProcurementPlanRead:
    rbac.require_roles(current_user, rbac.ACCOUNTS_ROLES | rbac.PROCUREMENT_ROLES)
    plan = tracker.mark_invoiced(case_id, plan_id, payload.purchase_invoice_id)
    db.commit()
    db.refresh(plan)
    return ProcurementPlanRead.model_validate(plan)


@router.get("/pending-invoice", response_model=List[ProcurementPlanRead])
def pending_invoice(
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> List[ProcurementPlanRead]:
    rbac.require_roles(current_user, rbac.ACCOUNTS_ROLES | rbac.PROCUREMENT_ROLES)
    return [ProcurementPlanRead.model_validate(p) for p in tracker.pending_invoice()]


@router.get("/by-vendor/{vendor_id}", response_model=List[ProcurementPlanRead])
def plans_by_vendor(
    vendor_id: str,
    tracker: ProcurementPlanTracker = Depends(get_tracker),
    current_user: User = Depends(get_current_user),
) -> List[ProcurementPlanRead]:
    rbac.require_roles(current_user, rbac.ACCOUNTS_ROLES | rbac.PROCUREMENT_ROLES)
    return [ProcurementPlanRead.model_validate(p) for p in tracker.list_by_vendor(vendor_id)]
