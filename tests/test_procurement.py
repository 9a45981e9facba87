from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from buildops.models.enums import ProcurementPlanStatus
from buildops.schemas.procurement import ProcurementPlanCreate
from buildops.services.procurement import ProcurementPlanTracker


def _plan_input(**overrides) -> ProcurementPlanCreate:
    fields = {
        "item_name": "18mm BWP plywood",
        "quantity": Decimal("24"),
        "required_on": date(2026, 11, 10),
        "day_work_description": "Carcass for kitchen base units",
        "vendor_id": "vendor-greenply",
        "vendor_name": "Greenply Traders",
        "expected_delivery_date": date(2026, 11, 8),
    }
    fields.update(overrides)
    return ProcurementPlanCreate(**fields)


@pytest.fixture()
def tracker(db):
    return ProcurementPlanTracker(db)


def test_plan_lifecycle(tracker, users):
    plan = tracker.add_plan("case-1", _plan_input(), created_by_user_id=users.procurement.id)
    assert plan.status == ProcurementPlanStatus.PLANNED
    assert plan.organization_id == "default-org"

    delivered = tracker.set_delivered("case-1", plan.id)
    assert delivered.status == ProcurementPlanStatus.DELIVERED
    assert delivered.delivered_at is not None
    assert [p.id for p in tracker.pending_invoice()] == [plan.id]

    invoiced = tracker.mark_invoiced("case-1", plan.id, " PI-2026-0042 ")
    assert invoiced.status == ProcurementPlanStatus.INVOICED
    assert invoiced.purchase_invoice_id == "PI-2026-0042"
    assert tracker.pending_invoice() == []


def test_invoice_requires_delivery(tracker):
    plan = tracker.add_plan("case-1", _plan_input())

    with pytest.raises(HTTPException) as excinfo:
        tracker.mark_invoiced("case-1", plan.id, "PI-1")

    assert excinfo.value.status_code == 409
    assert plan.status == ProcurementPlanStatus.PLANNED
    assert plan.purchase_invoice_id is None


def test_status_never_moves_backwards(tracker):
    plan = tracker.add_plan("case-1", _plan_input())
    tracker.set_delivered("case-1", plan.id)
    tracker.mark_invoiced("case-1", plan.id, "PI-1")

    with pytest.raises(HTTPException) as excinfo:
        tracker.set_delivered("case-1", plan.id)

    assert excinfo.value.status_code == 409
    assert plan.status == ProcurementPlanStatus.INVOICED


@pytest.mark.parametrize("invoice_id", ["", "   "])
def test_blank_invoice_id_is_refused(tracker, invoice_id):
    plan = tracker.add_plan("case-1", _plan_input())
    tracker.set_delivered("case-1", plan.id)

    with pytest.raises(HTTPException) as excinfo:
        tracker.mark_invoiced("case-1", plan.id, invoice_id)

    assert excinfo.value.status_code == 400
    assert plan.status == ProcurementPlanStatus.DELIVERED


def test_plan_is_scoped_to_its_case(tracker):
    plan = tracker.add_plan("case-1", _plan_input())

    with pytest.raises(HTTPException) as excinfo:
        tracker.set_delivered("case-2", plan.id)

    assert excinfo.value.status_code == 404


def test_listing_views(tracker):
    first = tracker.add_plan("case-1", _plan_input(required_on=date(2026, 11, 12)))
    second = tracker.add_plan("case-1", _plan_input(item_name="Hinges", required_on=date(2026, 11, 9)))
    other = tracker.add_plan("case-2", _plan_input(vendor_id="vendor-hettich", vendor_name="Hettich"))
    tracker.set_delivered("case-2", other.id)

    assert [p.id for p in tracker.list_for_case("case-1")] == [second.id, first.id]
    assert {p.id for p in tracker.list_by_vendor("vendor-greenply")} == {first.id, second.id}
    assert [p.id for p in tracker.pending_invoice()] == [other.id]
