"""
Case repository: CRUD on cases with the access policy applied.
"""
import math
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..errors import AuthorizationDenied, NotFound, ValidationError
from ..models.models import Case, CaseStatus, Client, User
from . import activity
from .permissions import (
    Actor,
    CaseOwnership,
    ListScope,
    can_create_case,
    can_delete_case,
    can_list_cases,
    can_read_case,
    can_update_case,
)
from .text import strip_markup


def clamp_progress(value) -> int:
    try:
        p = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Progress must be a number.")
    if math.isnan(p):
        raise ValidationError("Progress must be a number.")
    return int(round(max(0.0, min(100.0, p))))


def ownership_of(db: Session, case: Optional[Case]) -> Optional[CaseOwnership]:
    if case is None:
        return None
    client_user_id = db.query(Client.user_id).filter(Client.id == case.client_id).scalar()
    return CaseOwnership(lawyer_id=case.lawyer_id, client_user_id=client_user_id)


def client_id_for_user(db: Session, user_id: int) -> Optional[int]:
    return db.query(Client.id).filter(Client.user_id == user_id).scalar()


def scoped_case_query(db: Session, actor: Actor):
    """Cases the actor may see, filtered in SQL. Returns None for an empty scope."""
    scope = can_list_cases(actor.role)
    query = db.query(Case)
    if scope == ListScope.ALL:
        return query
    if scope == ListScope.OWNED_AS_LAWYER:
        return query.filter(Case.lawyer_id == actor.id)
    if scope == ListScope.OWNED_AS_CLIENT:
        client_id = client_id_for_user(db, actor.id)
        if client_id is None:
            return None
        return query.filter(Case.client_id == client_id)
    return None


def _require_text(value, field: str) -> str:
    text = strip_markup(value)
    if not text:
        raise ValidationError(f"Incomplete data. {field} is required.")
    return text


def _check_references(db: Session, client_id, lawyer_id) -> None:
    if client_id is None or db.get(Client, client_id) is None:
        raise ValidationError("Client does not exist.")
    if lawyer_id is None or db.get(User, lawyer_id) is None:
        raise ValidationError("Lawyer does not exist.")


def create_case(db: Session, actor: Actor, data: dict) -> int:
    """Create a case. New cases always start open with no progress."""
    if not can_create_case(actor.role):
        raise AuthorizationDenied("Access denied to create case.")
    title = _require_text(data.get("title"), "Title")
    client_id = data.get("client_id")
    lawyer_id = data.get("lawyer_id")
    _check_references(db, client_id, lawyer_id)

    case = Case(
        title=title,
        description=strip_markup(data.get("description")) or "",
        client_id=client_id,
        lawyer_id=lawyer_id,
        status=CaseStatus.OPEN.value,
        progress=0,
    )
    db.add(case)
    db.commit()
    db.refresh(case)

    activity.append(db, actor.id, activity.CASE_CREATED, f"Created case: '{case.title}'", "case", case.id)
    return case.id


def get_case(db: Session, actor: Actor, case_id: int) -> Optional[Case]:
    """The case, or None when it is absent or the actor may not read it."""
    case = (
        db.query(Case)
        .options(joinedload(Case.client), joinedload(Case.lawyer))
        .filter(Case.id == case_id)
        .first()
    )
    if case is None:
        return None
    if not can_read_case(actor.role, actor.id, ownership_of(db, case)):
        return None
    return case


def list_cases(db: Session, actor: Actor) -> list:
    query = scoped_case_query(db, actor)
    if query is None:
        return []
    return (
        query.options(joinedload(Case.client), joinedload(Case.lawyer))
        .order_by(Case.created_at.desc(), Case.id.desc())
        .all()
    )


def update_case(db: Session, actor: Actor, case_id: int, data: dict) -> bool:
    """
    Overwrite the mutable fields of a case.

    Raises NotFound when the case does not exist. Returns False when the actor
    may not change it; the decision uses the stored lawyer, never the one in
    ``data``.
    """
    case = db.get(Case, case_id)
    if case is None:
        raise NotFound("Case not found.")
    if not can_update_case(actor.role, actor.id, ownership_of(db, case)):
        return False

    title = _require_text(data.get("title"), "Title")
    try:
        status = CaseStatus(data.get("status")).value
    except ValueError:
        raise ValidationError("Status must be one of: open, in_progress, closed.")
    progress = clamp_progress(data.get("progress"))
    client_id = data.get("client_id")
    lawyer_id = data.get("lawyer_id")
    _check_references(db, client_id, lawyer_id)

    case.title = title
    case.description = strip_markup(data.get("description")) or ""
    case.status = status
    case.progress = progress
    case.client_id = client_id
    case.lawyer_id = lawyer_id
    db.commit()

    activity.append(db, actor.id, activity.CASE_UPDATED, f"Updated case: '{title}'", "case", case_id)
    return True


def delete_case(db: Session, actor: Actor, case_id: int) -> bool:
    """Delete a case and its scheduled events. Returns False when the actor may not."""
    if not can_delete_case(actor.role):
        return False
    case = db.get(Case, case_id)
    if case is None:
        raise NotFound("Case not found.")
    db.delete(case)
    db.commit()
    return True
