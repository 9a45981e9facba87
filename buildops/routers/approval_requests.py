from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from buildops.core.deps import get_current_user
from buildops.db.session import get_db
from buildops.models.approval_request import ApprovalRequest
from buildops.models.enums import RequestStatus
from buildops.models.user import User
from buildops.schemas.approval_request import (
    ApprovalRequestCreate,
    ApprovalRequestRead,
    ApprovePayload,
    NegotiatePayload,
    RejectPayload,
    StaffRegistrationCreate,
)
from buildops.services.workflow import WorkflowEngine, can_review

router = APIRouter(prefix="/api/approval-requests", tags=["approval-requests"])


def get_engine(db: Session = Depends(get_db)) -> WorkflowEngine:
    return WorkflowEngine(db)


def _get_or_404(engine: WorkflowEngine, request_id: int) -> ApprovalRequest:
    request = engine.store.get(request_id)
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Approval request not found")
    return request


def _require_reviewer(request: ApprovalRequest, user: User) -> None:
    if request.requester_user_id is not None and request.requester_user_id == user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Requesters cannot decide their own requests")
    if not can_review(request, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorised to review this request")


def _can_view(request: ApprovalRequest, user: User) -> bool:
    return user.id in (request.requester_user_id, request.assignee_user_id) or can_review(request, user)


def _missing() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Approval request not found")


@router.post("", response_model=ApprovalRequestRead, status_code=status.HTTP_201_CREATED)
def submit_request(
    request_in: ApprovalRequestCreate,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    request = engine.submit(request_in, requester=current_user)
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)


@router.post("/staff-registration", response_model=ApprovalRequestRead, status_code=status.HTTP_201_CREATED)
def submit_staff_registration(
    registration_in: StaffRegistrationCreate,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
) -> ApprovalRequestRead:
    """Public self-service registration; an admin approves it into an account."""
    request = engine.submit_staff_registration(registration_in)
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)


@router.get("", response_model=List[ApprovalRequestRead])
def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    limit: int = Query(200, ge=1, le=500),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> List[ApprovalRequestRead]:
    requests = engine.store.list_by_status(status_filter) if status_filter else engine.store.list_all()
    visible = [r for r in requests if _can_view(r, current_user)]
    return [ApprovalRequestRead.model_validate(r) for r in visible[:limit]]


@router.get("/mine", response_model=List[ApprovalRequestRead])
def my_requests(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> List[ApprovalRequestRead]:
    return [ApprovalRequestRead.model_validate(r) for r in engine.store.list_by_requester(current_user.id)]


@router.get("/assigned", response_model=List[ApprovalRequestRead])
def assigned_requests(
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> List[ApprovalRequestRead]:
    return [ApprovalRequestRead.model_validate(r) for r in engine.store.list_by_assignee(current_user.id)]


@router.get("/{request_id}", response_model=ApprovalRequestRead)
def get_request(
    request_id: int,
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    request = _get_or_404(engine, request_id)
    if not _can_view(request, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorised to view this request")
    return ApprovalRequestRead.model_validate(request)


@router.post("/{request_id}/approve", response_model=ApprovalRequestRead)
def approve_request(
    request_id: int,
    payload: ApprovePayload,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    _require_reviewer(_get_or_404(engine, request_id), current_user)
    request = engine.approve(
        request_id,
        current_user.id,
        current_user.display_name,
        assignee_id=payload.assignee_user_id,
        comments=payload.comments,
        deadline=payload.deadline,
        stages=payload.stages,
    )
    if request is None:
        raise _missing()
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)


@router.post("/{request_id}/reject", response_model=ApprovalRequestRead)
def reject_request(
    request_id: int,
    payload: RejectPayload,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    _require_reviewer(_get_or_404(engine, request_id), current_user)
    request = engine.reject(request_id, current_user.id, current_user.display_name, payload.comments)
    if request is None:
        raise _missing()
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)


@router.post("/{request_id}/negotiate", response_model=ApprovalRequestRead)
def negotiate_request(
    request_id: int,
    payload: NegotiatePayload,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    _require_reviewer(_get_or_404(engine, request_id), current_user)
    request = engine.negotiate(
        request_id,
        current_user.id,
        current_user.display_name,
        payload.stages,
        comments=payload.comments,
    )
    if request is None:
        raise _missing()
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)


@router.post("/{request_id}/accept", response_model=ApprovalRequestRead)
def accept_request(
    request_id: int,
    db: Session = Depends(get_db),
    engine: WorkflowEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user),
) -> ApprovalRequestRead:
    request = engine.accept_execution(request_id, current_user.id)
    if request is None:
        raise _missing()
    db.commit()
    db.refresh(request)
    return ApprovalRequestRead.model_validate(request)
