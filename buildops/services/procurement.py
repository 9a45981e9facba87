from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from buildops.core.settings import settings
from buildops.db.base import utcnow
from buildops.models.enums import ProcurementPlanStatus
from buildops.models.procurement_plan import ProcurementPlan
from buildops.schemas.procurement import ProcurementPlanCreate

logger = logging.getLogger(__name__)


class ProcurementPlanTracker:
    """Material plans per case: PLANNED -> DELIVERED -> INVOICED, never backwards."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _get(self, case_id: str, plan_id: int) -> ProcurementPlan:
        plan = self.db.get(ProcurementPlan, plan_id)
        if not plan or plan.case_id != case_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Procurement plan not found")
        return plan

    def _require_status(self, plan: ProcurementPlan, expected: ProcurementPlanStatus) -> None:
        if plan.status != expected:
            logger.info(
                "procurement_transition_refused",
                extra={"plan_id": plan.id, "status": plan.status.value},
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Plan is {plan.status.value}; expected {expected.value}",
            )

    def add_plan(
        self,
        case_id: str,
        data: ProcurementPlanCreate,
        *,
        created_by_user_id: Optional[int] = None,
    ) -> ProcurementPlan:
        plan = ProcurementPlan(
            case_id=case_id,
            organization_id=data.organization_id or settings.default_organization_id,
            catalog_item_id=data.catalog_item_id,
            item_name=data.item_name.strip(),
            quantity=data.quantity,
            required_on=data.required_on,
            day_work_description=data.day_work_description,
            vendor_id=data.vendor_id,
            vendor_name=data.vendor_name.strip(),
            expected_delivery_date=data.expected_delivery_date,
            status=ProcurementPlanStatus.PLANNED,
            created_by_user_id=created_by_user_id,
        )
        self.db.add(plan)
        self.db.flush()
        logger.info("procurement_plan_added", extra={"plan_id": plan.id, "context_id": case_id})
        return plan

    def set_delivered(self, case_id: str, plan_id: int) -> ProcurementPlan:
        plan = self._get(case_id, plan_id)
        self._require_status(plan, ProcurementPlanStatus.PLANNED)
        plan.status = ProcurementPlanStatus.DELIVERED
        plan.delivered_at = utcnow()
        self.db.add(plan)
        self.db.flush()
        logger.info("procurement_plan_delivered", extra={"plan_id": plan.id, "context_id": case_id})
        return plan

    def mark_invoiced(self, case_id: str, plan_id: int, invoice_id: str) -> ProcurementPlan:
        invoice_id = (invoice_id or "").strip()
        if not invoice_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice id is required")
        plan = self._get(case_id, plan_id)
        self._require_status(plan, ProcurementPlanStatus.DELIVERED)
        plan.status = ProcurementPlanStatus.INVOICED
        plan.purchase_invoice_id = invoice_id
        self.db.add(plan)
        self.db.flush()
        logger.info("procurement_plan_invoiced", extra={"plan_id": plan.id, "context_id": case_id})
        return plan

    def list_for_case(self, case_id: str) -> list[ProcurementPlan]:
        return (
            self.db.query(ProcurementPlan)
            .filter(ProcurementPlan.case_id == case_id)
            .order_by(ProcurementPlan.required_on.asc(), ProcurementPlan.id.asc())
            .all()
        )

    def list_by_vendor(self, vendor_id: str) -> list[ProcurementPlan]:
        return (
            self.db.query(ProcurementPlan)
            .filter(ProcurementPlan.vendor_id == vendor_id)
            .order_by(ProcurementPlan.expected_delivery_date.asc(), ProcurementPlan.id.asc())
            .all()
        )

    def pending_invoice(self) -> list[ProcurementPlan]:
        """Delivered plans still waiting for a purchase invoice, across every case."""
        return (
            self.db.query(ProcurementPlan)
            .filter(
                ProcurementPlan.status == ProcurementPlanStatus.DELIVERED,
                ProcurementPlan.purchase_invoice_id.is_(None),
            )
            .order_by(ProcurementPlan.delivered_at.asc(), ProcurementPlan.id.asc())
            .all()
        )
