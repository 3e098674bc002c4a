from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..auth.security import get_actor
from ..db import get_db
from ..models.models import Case, Schedule
from ..schemas.schedules import EventCreate, EventUpdate
from ..services import cases as case_service
from ..services import schedules as schedule_service
from ..services.permissions import Actor, can_update_case


router = APIRouter(prefix="/schedules", tags=["schedules"])


def _event_to_dict(e: Schedule) -> dict:
    # Shaped for the calendar widget: title/start/end
    return {
        "id": e.id,
        "title": e.event_title,
        "start": e.start_date.isoformat() if e.start_date else None,
        "end": e.end_date.isoformat() if e.end_date else None,
        "case_id": e.case_id,
        "case_title": e.case.title if e.case else None,
        "scheduled_by": e.scheduled_by,
        "location": e.location,
        "notes": e.notes,
        "status": e.status,
    }


def _require_case_write(db: Session, actor: Actor, case_id: int) -> None:
    """Scheduling on a case needs the same right as editing the case."""
    case = db.get(Case, case_id)
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found.")
    if not can_update_case(actor.role, actor.id, case_service.ownership_of(db, case)):
        raise HTTPException(status_code=403, detail="Access denied to this case's schedule.")


@router.get("")
def list_events(
    start: str = Query(...),
    end: str = Query(...),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    rows = schedule_service.list_events(db, actor, start, end)
    return {"records": [_event_to_dict(e) for e in rows]}


@router.get("/by-case/{case_id}")
def list_events_for_case(case_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    rows = schedule_service.list_events_for_case(db, actor, case_id)
    if rows is None:
        raise HTTPException(status_code=404, detail="Case not found or you do not have permission to view it.")
    return {"records": [_event_to_dict(e) for e in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    _require_case_write(db, actor, payload.case_id)
    event_id = schedule_service.create_event(db, actor, payload.model_dump())
    return {"message": "Event created.", "event_id": event_id}


@router.put("/{event_id}")
def update_event(event_id: int, payload: EventUpdate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    event = schedule_service.get_event(db, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found.")
    _require_case_write(db, actor, event.case_id)
    schedule_service.update_event(db, event_id, payload.model_dump())
    return {"message": "Event updated."}


@router.delete("/{event_id}")
def delete_event(event_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    event = schedule_service.get_event(db, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found.")
    _require_case_write(db, actor, event.case_id)
    schedule_service.delete_event(db, event_id)
    return {"message": "Event deleted."}
