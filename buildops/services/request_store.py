from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from buildops.models.approval_request import ApprovalRequest
from buildops.models.enums import RequestStatus

logger = logging.getLogger(__name__)


class RequestStore:
    """Persistence for approval requests. No business rules live here."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, **fields) -> ApprovalRequest:
        request = ApprovalRequest(**fields)
        self.db.add(request)
        self.db.flush()
        return request

    def get(self, request_id: int) -> Optional[ApprovalRequest]:
        return self.db.get(ApprovalRequest, request_id)

    def _ordered(self, query):
        return query.order_by(ApprovalRequest.requested_at.desc(), ApprovalRequest.id.desc())

    def list_by_requester(self, user_id: int) -> list[ApprovalRequest]:
        query = self.db.query(ApprovalRequest).filter(ApprovalRequest.requester_user_id == user_id)
        return self._ordered(query).all()

    def list_by_assignee(self, user_id: int) -> list[ApprovalRequest]:
        query = self.db.query(ApprovalRequest).filter(ApprovalRequest.assignee_user_id == user_id)
        return self._ordered(query).all()

    def list_by_status(self, request_status: RequestStatus) -> list[ApprovalRequest]:
        query = self.db.query(ApprovalRequest).filter(ApprovalRequest.status == request_status)
        return self._ordered(query).all()

    def list_all(self, limit: Optional[int] = None) -> list[ApprovalRequest]:
        query = self._ordered(self.db.query(ApprovalRequest))
        if limit:
            query = query.limit(limit)
        return query.all()

    def update_fields(self, request: ApprovalRequest, **fields) -> ApprovalRequest:
        for key, value in fields.items():
            setattr(request, key, value)
        self.db.add(request)
        try:
            self.db.flush()
        except StaleDataError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Request was modified concurrently",
            ) from exc
        return request

    def transition(
        self,
        request: ApprovalRequest,
        *,
        expected: Iterable[RequestStatus],
        **fields,
    ) -> ApprovalRequest:
        """Write ``fields`` only if the request is still in one of ``expected``.

        The version column turns a lost race into a 409 instead of a silent overwrite.
        """
        allowed = set(expected)
        if request.status not in allowed:
            logger.info(
                "transition_refused",
                extra={"approval_request_id": request.id, "status": request.status.value},
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Request is {request.status.value}; expected one of "
                + ", ".join(sorted(s.value for s in allowed)),
            )
        return self.update_fields(request, **fields)
