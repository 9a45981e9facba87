from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from buildops.models.enums import Priority, RequestStatus, RequestType, Role
from buildops.schemas.base import ORMModel


class Stage(ORMModel):
    name: str = Field(min_length=1, max_length=255)
    deadline: datetime


class ApprovalRequestCreate(ORMModel):
    request_type: RequestType
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[str] = None
    context_id: Optional[str] = None
    client_name: Optional[str] = None
    target_role: Optional[Role] = None
    stages: Optional[List[Stage]] = None

    @model_validator(mode="after")
    def validate_request(self) -> "ApprovalRequestCreate":
        if self.request_type == RequestType.STAFF_REGISTRATION:
            raise ValueError("staff registrations use the registration endpoint")
        if self.stages is not None and self.request_type != RequestType.EXECUTION_TOKEN:
            raise ValueError("stages are only accepted on EXECUTION_TOKEN requests")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class StaffRegistrationCreate(ORMModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    phone: Optional[str] = None
    region: Optional[str] = None
    requested_role: Optional[Role] = None


class ApprovalRequestRead(ORMModel):
    id: int
    request_type: RequestType
    status: RequestStatus
    requester_user_id: Optional[int] = None
    requester_name: str
    requester_role: Optional[str] = None
    assignee_user_id: Optional[int] = None
    target_role: Optional[Role] = None
    title: str
    description: Optional[str] = None
    priority: Priority
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[str] = None
    context_id: Optional[str] = None
    client_name: Optional[str] = None
    deadline: Optional[datetime] = None
    stages: Optional[List[Stage]] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    region: Optional[str] = None
    requested_role: Optional[Role] = None
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by_user_id: Optional[int] = None
    reviewer_name: Optional[str] = None
    reviewer_comments: Optional[str] = None
    accepted_at: Optional[datetime] = None


class ApprovePayload(ORMModel):
    assignee_user_id: Optional[int] = None
    comments: Optional[str] = Field(default=None, max_length=2000)
    deadline: Optional[datetime] = None
    stages: Optional[List[Stage]] = None


class RejectPayload(ORMModel):
    comments: str = Field(max_length=2000)

    @field_validator("comments")
    @classmethod
    def require_reason(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("a rejection reason is required")
        return value.strip()


class NegotiatePayload(ORMModel):
    stages: List[Stage] = Field(min_length=1)
    comments: Optional[str] = Field(default=None, max_length=2000)
