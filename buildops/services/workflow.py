from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from buildops.core import rbac
from buildops.core.security import get_password_hash
from buildops.core.settings import settings
from buildops.db.base import utcnow
from buildops.models.approval_request import ApprovalRequest
from buildops.models.enums import NotificationSeverity, RequestStatus, RequestType, Role
from buildops.models.user import User
from buildops.schemas.approval_request import ApprovalRequestCreate, Stage, StaffRegistrationCreate
from buildops.services.activity import ActivityLogSink
from buildops.services.directory import UserDirectory
from buildops.services.identity import IdentityProvisioner, IdentityProvisioningError
from buildops.services.notifications import NotificationPublisher
from buildops.services.projection import EntityStatusProjector, ResolvedContext
from buildops.services.request_store import RequestStore
from buildops.services.tasks import TaskDispatcher, TaskLinkage
from buildops.services.workflow_policies import TransitionPolicy, policy_for

logger = logging.getLogger(__name__)

RELATED_ENTITY = "approval_request"


def serialize_stages(stages: Iterable[Stage | dict]) -> list[dict]:
    serialized: list[dict] = []
    for stage in stages:
        if isinstance(stage, dict):
            stage = Stage.model_validate(stage)
        serialized.append({"name": stage.name, "deadline": stage.deadline.isoformat()})
    return serialized


def stage_deadline(stage: dict) -> Optional[datetime]:
    raw = stage.get("deadline")
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw))


def can_review(request: ApprovalRequest, user: User) -> bool:
    if rbac.user_has_any_role(user, rbac.OVERSIGHT_ROLES):
        return True
    if request.target_role and rbac.user_has_role(user, request.target_role):
        return True
    return rbac.user_has_any_role(user, policy_for(request.request_type).reviewer_roles)


class WorkflowEngine:
    """Moves approval requests through their states and cascades the side effects.

    Every step writes through the caller's session; the caller commits once, so a
    failure anywhere in a transition leaves nothing half-applied.
    """

    def __init__(
        self,
        db: Session,
        *,
        store: Optional[RequestStore] = None,
        notifier: Optional[NotificationPublisher] = None,
        tasks: Optional[TaskDispatcher] = None,
        projector: Optional[EntityStatusProjector] = None,
        identity: Optional[IdentityProvisioner] = None,
        directory: Optional[UserDirectory] = None,
        activity: Optional[ActivityLogSink] = None,
    ) -> None:
        self.db = db
        self.directory = directory or UserDirectory(db)
        self.store = store or RequestStore(db)
        self.notifier = notifier or NotificationPublisher(db, self.directory)
        self.tasks = tasks or TaskDispatcher(db)
        self.projector = projector or EntityStatusProjector(db)
        self.identity = identity or IdentityProvisioner(db)
        self.activity = activity or ActivityLogSink(db)

    # ── Submission ──────────────────────────────────────────────────────

    def submit(self, data: ApprovalRequestCreate, *, requester: User) -> ApprovalRequest:
        if data.request_type == RequestType.STAFF_REGISTRATION:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Staff registrations must be submitted through the registration flow",
            )
        policy = policy_for(data.request_type)
        if data.stages is not None and not policy.fans_out_stages:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Stages are only accepted on execution requests",
            )

        stages_json = None
        if policy.fans_out_stages:
            stages_json = serialize_stages(data.stages or [])

        request = self.store.create(
            request_type=data.request_type,
            status=RequestStatus.PENDING,
            requester_user_id=requester.id,
            requester_name=requester.display_name,
            requester_role=requester.role.value if requester.role else None,
            target_role=data.target_role,
            title=data.title,
            description=data.description,
            priority=data.priority,
            start_date=data.start_date,
            end_date=data.end_date,
            duration=data.duration,
            context_id=data.context_id,
            client_name=data.client_name,
            stages_json=stages_json,
            requested_at=utcnow(),
        )

        roles = [data.target_role] if data.target_role else list(policy.reviewer_roles)
        self.notifier.notify_roles(
            roles=roles,
            title=f"New {policy.label} request",
            message=f"{requester.display_name} submitted: {request.title}",
            severity=NotificationSeverity.INFO,
            related_entity=(RELATED_ENTITY, request.id),
            exclude_user_ids=[requester.id],
        )
        self.activity.append(
            f"{policy.label} request submitted: {request.title}",
            policy.team,
            requester.id,
            RequestStatus.PENDING.value,
            request.context_id,
            activity_type="REQUEST_SUBMITTED",
            payload={"approval_request_id": request.id, "request_type": request.request_type.value},
        )
        logger.info(
            "request_submitted",
            extra={
                "approval_request_id": request.id,
                "request_type": request.request_type.value,
                "context_id": request.context_id,
            },
        )
        return request

    def submit_staff_registration(self, data: StaffRegistrationCreate) -> ApprovalRequest:
        email = str(data.email).lower().strip()
        if self.directory.find_by_email(email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An account with this email already exists",
            )
        pending = (
            self.db.query(ApprovalRequest.id)
            .filter(
                ApprovalRequest.request_type == RequestType.STAFF_REGISTRATION,
                ApprovalRequest.status == RequestStatus.PENDING,
                ApprovalRequest.email == email,
            )
            .first()
        )
        if pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A registration with this email is already pending",
            )

        role = data.requested_role or Role(settings.default_staff_role)
        policy = policy_for(RequestType.STAFF_REGISTRATION)
        request = self.store.create(
            request_type=RequestType.STAFF_REGISTRATION,
            status=RequestStatus.PENDING,
            requester_user_id=None,
            requester_name=data.name.strip(),
            requester_role=role.value,
            title=f"Staff registration: {data.name.strip()}",
            description=f"{data.name.strip()} requested a {role.value} account",
            email=email,
            password_hash=get_password_hash(data.password),
            phone=data.phone,
            region=data.region,
            requested_role=role,
            requested_at=utcnow(),
        )
        self.notifier.notify_roles(
            roles=policy.reviewer_roles,
            title="New staff registration",
            message=f"{request.requester_name} ({email}) requested a {role.value} account",
            related_entity=(RELATED_ENTITY, request.id),
        )
        logger.info(
            "staff_registration_submitted",
            extra={"approval_request_id": request.id, "request_type": RequestType.STAFF_REGISTRATION.value},
        )
        return request

    # ── Review actions ──────────────────────────────────────────────────

    def approve(
        self,
        request_id: int,
        reviewer_id: int,
        reviewer_name: str,
        assignee_id: Optional[int] = None,
        comments: Optional[str] = None,
        deadline: Optional[datetime] = None,
        stages: Optional[Iterable[Stage | dict]] = None,
    ) -> Optional[ApprovalRequest]:
        request = self.store.get(request_id)
        if not request:
            logger.warning("approve_missing_request", extra={"approval_request_id": request_id})
            return None

        policy = policy_for(request.request_type)
        if request.request_type == RequestType.STAFF_REGISTRATION:
            return self._approve_staff_registration(request, policy, reviewer_id, reviewer_name, comments)

        if stages is not None and not policy.fans_out_stages:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Stages are only accepted on execution requests",
            )
        if assignee_id is not None and not self.directory.get(assignee_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignee not found")

        new_status = policy.target_status(request.status)
        fields = {
            "status": new_status,
            "reviewed_at": utcnow(),
            "reviewed_by_user_id": reviewer_id,
            "reviewer_name": reviewer_name,
            "reviewer_comments": comments,
        }
        if assignee_id is not None:
            fields["assignee_user_id"] = assignee_id
        if deadline is not None:
            fields["deadline"] = deadline
        if stages is not None:
            fields["stages_json"] = serialize_stages(stages)
        self.store.transition(request, expected=policy.reviewable_from(), **fields)

        assignee_name = self.directory.display_name(request.assignee_user_id)
        if request.requester_user_id:
            if new_status == RequestStatus.AWAITING_EXECUTION_ACCEPTANCE:
                title = f"{policy.label} request approved"
                message = (
                    f"Your {policy.label.lower()} request '{request.title}' was approved by {reviewer_name} "
                    f"and is awaiting acceptance by {assignee_name}."
                )
            else:
                title = f"{policy.label} request approved"
                message = (
                    f"Your {policy.label.lower()} request '{request.title}' was approved by {reviewer_name}. "
                    f"Assigned to {assignee_name}."
                )
            self.notifier.send(
                request.requester_user_id,
                title,
                message,
                NotificationSeverity.SUCCESS,
                (RELATED_ENTITY, request.id),
            )

        context = self.projector.resolve(request.context_id, policy)

        if request.assignee_user_id:
            self._dispatch_tasks(request, policy, context, reviewer_id, reviewer_name, comments)

        if context and context.resolved:
            self.projector.project(
                context,
                policy,
                actor_name=reviewer_name,
                request_id=request.id,
                notes=comments,
            )

        self.activity.append(
            f"{policy.label} request '{request.title}' approved by {reviewer_name}",
            policy.team,
            reviewer_id,
            new_status.value,
            request.context_id,
            activity_type="REQUEST_APPROVED",
            payload={
                "approval_request_id": request.id,
                "request_type": request.request_type.value,
                "assignee_user_id": request.assignee_user_id,
                "context_kind": context.kind.value if context and context.kind else None,
            },
        )
        logger.info(
            "request_approved",
            extra={
                "approval_request_id": request.id,
                "request_type": request.request_type.value,
                "status": new_status.value,
                "context_id": request.context_id,
            },
        )
        return request

    def _approve_staff_registration(
        self,
        request: ApprovalRequest,
        policy: TransitionPolicy,
        reviewer_id: int,
        reviewer_name: str,
        comments: Optional[str],
    ) -> ApprovalRequest:
        if request.status not in policy.reviewable_from():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Registration already decided")

        role = request.requested_role or Role(settings.default_staff_role)
        try:
            user_id = self.identity.create_account(
                request.email or "",
                request.password_hash or "",
                request.requester_name,
                role,
                phone=request.phone,
                region=request.region,
            )
        except IdentityProvisioningError as exc:
            logger.warning(
                "staff_provisioning_failed",
                extra={"approval_request_id": request.id, "request_type": request.request_type.value},
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Failed to create staff account: {exc}",
            ) from exc

        self.store.transition(
            request,
            expected=policy.reviewable_from(),
            status=RequestStatus.APPROVED,
            requester_user_id=user_id,
            password_hash=None,
            reviewed_at=utcnow(),
            reviewed_by_user_id=reviewer_id,
            reviewer_name=reviewer_name,
            reviewer_comments=comments,
        )
        self.notifier.send(
            user_id,
            "Registration approved",
            f"Welcome aboard! {reviewer_name} approved your registration. You can now sign in as {role.value}.",
            NotificationSeverity.SUCCESS,
            (RELATED_ENTITY, request.id),
        )
        self.activity.append(
            f"Staff account created for {request.requester_name}",
            policy.team,
            reviewer_id,
            RequestStatus.APPROVED.value,
            None,
            activity_type="STAFF_REGISTRATION_APPROVED",
            payload={"approval_request_id": request.id, "user_id": user_id, "role": role.value},
        )
        logger.info(
            "staff_registration_approved",
            extra={"approval_request_id": request.id, "user_id": user_id},
        )
        return request

    def _dispatch_tasks(
        self,
        request: ApprovalRequest,
        policy: TransitionPolicy,
        context: Optional[ResolvedContext],
        reviewer_id: int,
        reviewer_name: str,
        comments: Optional[str],
    ) -> None:
        context_kind = context.kind if context else None
        description_parts = [f"Assigned by {reviewer_name}."]
        if request.client_name:
            description_parts.append(f"Client: {request.client_name}.")
        if request.description:
            description_parts.append(request.description)
        if comments:
            description_parts.append(f"Reviewer notes: {comments}")

        self.tasks.create(
            f"{policy.label}: {request.title}",
            " ".join(description_parts),
            request.assignee_user_id,
            request.deadline,
            TaskLinkage(
                approval_request_id=request.id,
                context_id=request.context_id,
                context_kind=context_kind,
                created_by_user_id=reviewer_id,
                template_type=request.request_type.value,
            ),
        )

        if not (policy.fans_out_stages and request.stages_json):
            return
        for stage in request.stages_json:
            due = stage_deadline(stage)
            due_label = due.strftime("%Y-%m-%d") if due else "no deadline"
            self.tasks.create(
                f"{stage['name']} (due {due_label})",
                f"Execution stage of '{request.title}'.",
                request.assignee_user_id,
                due,
                TaskLinkage(
                    approval_request_id=request.id,
                    context_id=request.context_id,
                    context_kind=context_kind,
                    created_by_user_id=reviewer_id,
                    stage_name=stage["name"],
                    template_type=request.request_type.value,
                ),
            )

    def reject(
        self,
        request_id: int,
        reviewer_id: int,
        reviewer_name: str,
        comments: Optional[str],
    ) -> Optional[ApprovalRequest]:
        reason = (comments or "").strip()
        if not reason:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A rejection reason is required")

        request = self.store.get(request_id)
        if not request:
            logger.warning("reject_missing_request", extra={"approval_request_id": request_id})
            return None

        policy = policy_for(request.request_type)
        self.store.transition(
            request,
            expected=policy.reviewable_from(),
            status=RequestStatus.REJECTED,
            password_hash=None,
            reviewed_at=utcnow(),
            reviewed_by_user_id=reviewer_id,
            reviewer_name=reviewer_name,
            reviewer_comments=reason,
        )
        if request.requester_user_id:
            self.notifier.send(
                request.requester_user_id,
                f"{policy.label} request rejected",
                f"Your {policy.label.lower()} request '{request.title}' was rejected by {reviewer_name}: {reason}",
                NotificationSeverity.WARNING,
                (RELATED_ENTITY, request.id),
            )
        self.activity.append(
            f"{policy.label} request '{request.title}' rejected by {reviewer_name}",
            policy.team,
            reviewer_id,
            RequestStatus.REJECTED.value,
            request.context_id,
            activity_type="REQUEST_REJECTED",
            payload={"approval_request_id": request.id, "reason": reason},
        )
        logger.info(
            "request_rejected",
            extra={"approval_request_id": request.id, "request_type": request.request_type.value},
        )
        return request

    def negotiate(
        self,
        request_id: int,
        reviewer_id: int,
        reviewer_name: str,
        stages: Iterable[Stage | dict],
        comments: Optional[str] = None,
    ) -> Optional[ApprovalRequest]:
        request = self.store.get(request_id)
        if not request:
            logger.warning("negotiate_missing_request", extra={"approval_request_id": request_id})
            return None

        policy = policy_for(request.request_type)
        if not policy.fans_out_stages:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only execution requests can be negotiated",
            )
        proposed = serialize_stages(stages)
        if not proposed:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Counter-proposal needs at least one stage")

        self.store.transition(
            request,
            expected=policy.reviewable_from(),
            status=RequestStatus.NEGOTIATION,
            stages_json=proposed,
            reviewed_at=utcnow(),
            reviewed_by_user_id=reviewer_id,
            reviewer_name=reviewer_name,
            reviewer_comments=comments,
        )
        if request.requester_user_id:
            self.notifier.send(
                request.requester_user_id,
                "Counter-terms proposed",
                f"{reviewer_name} proposed a revised plan of {len(proposed)} stage(s) for '{request.title}'.",
                NotificationSeverity.INFO,
                (RELATED_ENTITY, request.id),
            )
        self.activity.append(
            f"Counter-terms proposed on '{request.title}'",
            policy.team,
            reviewer_id,
            RequestStatus.NEGOTIATION.value,
            request.context_id,
            activity_type="REQUEST_NEGOTIATED",
            payload={"approval_request_id": request.id, "stages": len(proposed)},
        )
        return request

    def accept_execution(self, request_id: int, user_id: int) -> Optional[ApprovalRequest]:
        request = self.store.get(request_id)
        if not request:
            logger.warning("accept_missing_request", extra={"approval_request_id": request_id})
            return None
        if request.request_type != RequestType.EXECUTION_TOKEN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only execution requests need acceptance",
            )
        if request.assignee_user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the assignee can accept this request",
            )

        policy = policy_for(request.request_type)
        self.store.transition(
            request,
            expected={RequestStatus.AWAITING_EXECUTION_ACCEPTANCE},
            status=RequestStatus.APPROVED,
            accepted_at=utcnow(),
        )
        assignee_name = self.directory.display_name(user_id)
        recipients = {request.requester_user_id, request.reviewed_by_user_id} - {None, user_id}
        for recipient in sorted(recipients):
            self.notifier.send(
                recipient,
                "Execution accepted",
                f"{assignee_name} accepted the execution of '{request.title}'.",
                NotificationSeverity.SUCCESS,
                (RELATED_ENTITY, request.id),
            )
        self.activity.append(
            f"Execution of '{request.title}' accepted by {assignee_name}",
            policy.team,
            user_id,
            RequestStatus.APPROVED.value,
            request.context_id,
            activity_type="EXECUTION_ACCEPTED",
            payload={"approval_request_id": request.id},
        )
        return request
