from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from buildops.models.audit import ActivityLog


def log_activity(
    db: Session,
    *,
    actor_user_id: Optional[int],
    activity_type: str,
    context_id: Optional[str] = None,
    team: Optional[str] = None,
    outcome: Optional[str] = None,
    message: Optional[str] = None,
    payload: Optional[dict] = None,
) -> ActivityLog:
    activity = ActivityLog(
        actor_user_id=actor_user_id,
        type=activity_type,
        context_id=context_id,
        team=team,
        outcome=outcome,
        message=message,
        payload_json=payload,
    )
    db.add(activity)
    db.flush()
    return activity


class ActivityLogSink:
    """Business-activity trail appended by the workflow engine."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(
        self,
        description: str,
        team: Optional[str],
        actor_id: Optional[int],
        outcome: Optional[str],
        context_id: Optional[str],
        *,
        activity_type: str = "WORKFLOW",
        payload: Optional[dict] = None,
    ) -> ActivityLog:
        return log_activity(
            self.db,
            actor_user_id=actor_id,
            activity_type=activity_type,
            context_id=context_id,
            team=team,
            outcome=outcome,
            message=description,
            payload=payload,
        )
