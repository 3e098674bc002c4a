from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.security import get_actor, require_roles
from ..db import get_db
from ..models.models import ActivityLog, Case, CaseStatus, Role, User
from ..services import activity
from ..services.cases import scoped_case_query
from ..services.permissions import Actor


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/workload")
def workload(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(Role.ADMIN, Role.PARTNER, Role.LAWYER, Role.STAFF)),
):
    """Open and in-progress cases per responsible lawyer, within the caller's case scope."""
    query = scoped_case_query(db, actor)
    if query is None:
        return {"records": []}
    rows = (
        query.join(User, Case.lawyer_id == User.id)
        .filter(Case.status != CaseStatus.CLOSED.value)
        .with_entities(User.id, User.first_name, User.last_name, func.count(Case.id))
        .group_by(User.id, User.first_name, User.last_name)
        .order_by(func.count(Case.id).desc(), User.last_name.asc())
        .all()
    )
    return {
        "records": [
            {"lawyer_id": uid, "lawyer_name": " ".join(p for p in [first, last] if p), "active_cases": count}
            for uid, first, last, count in rows
        ]
    }


def _activity_to_dict(a: ActivityLog) -> dict:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "user_name": a.user.full_name if a.user else None,
        "action_type": a.action_type,
        "description": a.description,
        "related_entity_type": a.related_entity_type,
        "related_entity_id": a.related_entity_id,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }


@router.get("/activity")
def recent_activity(limit: int = 10, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    rows = activity.recent_activity(db, actor, limit)
    return {"records": [_activity_to_dict(a) for a in rows]}
