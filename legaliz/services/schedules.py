"""
Schedule repository: calendar events attached to cases.

Listing is scoped by role the same way cases are. Update and delete act on the
event id alone; the caller is responsible for checking the parent case.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from ..errors import NotFound, ValidationError
from ..models.models import Case, Schedule, ScheduleStatus
from .cases import client_id_for_user, get_case
from .permissions import Actor, ListScope, can_list_cases
from .text import strip_markup


_DATE_ONLY_FORMATS = ("%Y-%m-%d", "%Y%m%d")
_DATETIME_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M")


def parse_when(value) -> Tuple[Optional[datetime], bool]:
    """
    Parse a calendar date or datetime into a naive UTC datetime.

    Returns (value, date_only). Empty input gives (None, False); anything
    unparseable raises ValidationError.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, False
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value).strip()
        for fmt in _DATE_ONLY_FORMATS:
            try:
                return datetime.strptime(raw, fmt), True
            except ValueError:
                continue
        dt = None
        for fmt in _DATETIME_FORMATS:
            try:
                dt = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
        if dt is None:
            try:
                dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                raise ValidationError(f"Invalid date: {raw}")
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt, False


def date_window(start_range, end_range) -> Tuple[datetime, datetime]:
    """Inclusive window; a date-only end covers that whole day."""
    start, _ = parse_when(start_range)
    end, end_is_date = parse_when(end_range)
    if start is None or end is None:
        raise ValidationError("Both start and end of the date range are required.")
    if end_is_date:
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


def list_events(db: Session, actor: Actor, start_range, end_range) -> list:
    start, end = date_window(start_range, end_range)
    query = (
        db.query(Schedule)
        .join(Case, Schedule.case_id == Case.id)
        .options(joinedload(Schedule.case))
        .filter(Schedule.start_date >= start, Schedule.start_date <= end)
    )
    scope = can_list_cases(actor.role)
    if scope == ListScope.OWNED_AS_LAWYER:
        query = query.filter(Case.lawyer_id == actor.id)
    elif scope == ListScope.OWNED_AS_CLIENT:
        client_id = client_id_for_user(db, actor.id)
        if client_id is None:
            return []
        query = query.filter(Case.client_id == client_id)
    elif scope != ListScope.ALL:
        return []
    return query.order_by(Schedule.start_date.asc(), Schedule.id.asc()).all()


def list_events_for_case(db: Session, actor: Actor, case_id: int) -> Optional[list]:
    """Events of one case, or None when the case is absent or unreadable."""
    if get_case(db, actor, case_id) is None:
        return None
    return (
        db.query(Schedule)
        .options(joinedload(Schedule.case))
        .filter(Schedule.case_id == case_id)
        .order_by(Schedule.start_date.asc(), Schedule.id.asc())
        .all()
    )


def get_event(db: Session, event_id: int) -> Optional[Schedule]:
    return db.get(Schedule, event_id)


def _event_fields(data: dict) -> dict:
    title = strip_markup(data.get("event_title"))
    if not title:
        raise ValidationError("Incomplete data. Event title is required.")
    start, _ = parse_when(data.get("start_date"))
    if start is None:
        raise ValidationError("Incomplete data. Start date is required.")
    end, _ = parse_when(data.get("end_date"))
    if end is not None and end < start:
        raise ValidationError("End date cannot be before start date.")
    return {
        "event_title": title,
        "start_date": start,
        "end_date": end,
        "location": strip_markup(data.get("location")) or None,
        "notes": strip_markup(data.get("notes")) or None,
    }


def create_event(db: Session, actor: Actor, data: dict) -> int:
    """New events are always pending; ``scheduled_by`` is the actor."""
    case_id = data.get("case_id")
    if case_id is None or db.get(Case, case_id) is None:
        raise ValidationError("Case does not exist.")
    event = Schedule(
        case_id=case_id,
        scheduled_by=actor.id,
        status=ScheduleStatus.PENDING.value,
        **_event_fields(data),
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event.id


def update_event(db: Session, event_id: int, data: dict) -> bool:
    event = db.get(Schedule, event_id)
    if event is None:
        raise NotFound("Event not found.")
    fields = _event_fields(data)
    try:
        fields["status"] = ScheduleStatus(data.get("status")).value
    except ValueError:
        raise ValidationError("Status must be one of: pending, done, cancelled, overdue.")
    for key, value in fields.items():
        setattr(event, key, value)
    db.commit()
    return True


def delete_event(db: Session, event_id: int) -> bool:
    event = db.get(Schedule, event_id)
    if event is None:
        raise NotFound("Event not found.")
    db.delete(event)
    db.commit()
    return True
