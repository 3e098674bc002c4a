"""
Activity log service.
Append-only feed of user actions; writing to it never affects the caller.
"""
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from ..models.models import ActivityLog
from .permissions import Actor, can_list_cases, ListScope


logger = structlog.get_logger(__name__)

CASE_CREATED = "CASE_CREATED"
CASE_UPDATED = "CASE_UPDATED"


def append(
    db: Session,
    user_id: Optional[int],
    action_type: str,
    description: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> None:
    """
    Record an activity entry, best effort.

    Args:
        db: Database session. Anything pending on it has already been committed
            by the operation being logged.
        user_id: Acting user, None for system actions
        action_type: Short code (CASE_CREATED|CASE_UPDATED)
        description: Human readable description
        entity_type: Type of the related entity (case)
        entity_id: ID of the related entity

    Failures are rolled back and logged, never raised.
    """
    if not action_type or not description:
        logger.warning("activity_log_skipped", reason="missing action_type or description", user_id=user_id)
        return
    try:
        db.add(ActivityLog(
            user_id=user_id,
            action_type=action_type,
            description=description,
            related_entity_type=entity_type,
            related_entity_id=entity_id,
        ))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("activity_log_failed", user_id=user_id, action_type=action_type, error=str(e))


def recent_activity(db: Session, actor: Actor, limit: int = 10) -> list:
    """Newest entries first. Firm-wide for admins and partners, otherwise the actor's own."""
    limit = max(1, min(100, limit))
    query = db.query(ActivityLog)
    if can_list_cases(actor.role) != ListScope.ALL:
        query = query.filter(ActivityLog.user_id == actor.id)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
