from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.security import get_actor
from ..db import get_db
from ..models.models import Case
from ..schemas.cases import CaseCreate, CaseUpdate
from ..services import cases as case_service
from ..services.permissions import Actor


router = APIRouter(prefix="/cases", tags=["cases"])


def _case_to_dict(c: Case, detail: bool = True) -> dict:
    out = {
        "id": c.id,
        "title": c.title,
        "status": c.status,
        "progress": c.progress,
        "client_id": c.client_id,
        "client_name": c.client.name if c.client else None,
        "lawyer_id": c.lawyer_id,
        "lawyer_name": c.lawyer.full_name if c.lawyer else None,
        "created_at": c.created_at.isoformat() if c.created_at else None,
    }
    if detail:
        out["description"] = c.description
    return out


@router.get("")
def list_cases(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    rows = case_service.list_cases(db, actor)
    return {"records": [_case_to_dict(c, detail=False) for c in rows]}


@router.get("/{case_id}")
def get_case(case_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    c = case_service.get_case(db, actor, case_id)
    if c is None:
        # Same answer for "missing" and "not yours"
        raise HTTPException(status_code=404, detail="Case not found or you do not have permission to view it.")
    return _case_to_dict(c)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_case(payload: CaseCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    case_id = case_service.create_case(db, actor, payload.model_dump())
    return {"message": "Case created.", "case_id": case_id}


@router.put("/{case_id}")
def update_case(case_id: int, payload: CaseUpdate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    if not case_service.update_case(db, actor, case_id, payload.model_dump()):
        raise HTTPException(status_code=403, detail="Access denied to update case.")
    return {"message": "Case updated."}


@router.delete("/{case_id}")
def delete_case(case_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    if not case_service.delete_case(db, actor, case_id):
        raise HTTPException(status_code=403, detail="Only admins and partners can delete cases.")
    return {"message": "Case deleted."}
