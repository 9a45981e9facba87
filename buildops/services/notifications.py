from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from buildops.models.enums import NotificationSeverity, Role
from buildops.models.notification import Notification
from buildops.services.directory import UserDirectory

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    user_id: int,
    title: str,
    message: str,
    severity: NotificationSeverity = NotificationSeverity.INFO,
    related_entity: Optional[tuple[str, str | int]] = None,
    payload: Optional[dict] = None,
) -> Notification:
    entity_type, entity_id = related_entity if related_entity else (None, None)
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        severity=severity,
        related_entity_type=entity_type,
        related_entity_id=str(entity_id) if entity_id is not None else None,
        payload_json=payload,
    )
    db.add(notification)
    db.flush()
    return notification


class NotificationPublisher:
    def __init__(self, db: Session, directory: Optional[UserDirectory] = None) -> None:
        self.db = db
        self.directory = directory or UserDirectory(db)

    def send(
        self,
        user_id: int,
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        related_entity: Optional[tuple[str, str | int]] = None,
        payload: Optional[dict] = None,
    ) -> Notification:
        notification = create_notification(
            self.db,
            user_id=user_id,
            title=title,
            message=message,
            severity=severity,
            related_entity=related_entity,
            payload=payload,
        )
        logger.debug("notification_sent", extra={"user_id": user_id})
        return notification

    def notify_roles(
        self,
        *,
        roles: Sequence[Role],
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        related_entity: Optional[tuple[str, str | int]] = None,
        payload: Optional[dict] = None,
        exclude_user_ids: Optional[Iterable[int]] = None,
    ) -> list[Notification]:
        exclude_set = set(exclude_user_ids or [])
        created: list[Notification] = []
        for user in self.directory.active_users_with_roles(roles):
            if user.id in exclude_set:
                continue
            created.append(
                self.send(
                    user.id,
                    title,
                    message,
                    severity=severity,
                    related_entity=related_entity,
                    payload=payload,
                )
            )
        return created
