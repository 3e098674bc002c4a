from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.security import get_actor
from ..db import get_db
from ..models.models import Client
from ..schemas.clients import ClientCreate, ClientUpdate
from ..services import clients as client_service
from ..services.permissions import Actor


router = APIRouter(prefix="/clients", tags=["clients"])


def _client_to_dict(c: Client) -> dict:
    return {
        "id": c.id,
        "user_id": c.user_id,
        "name": c.name,
        "email": c.email,
        "contact": c.contact,
        "address": c.address,
        "created_at": c.created_at.isoformat() if c.created_at else None,
    }


@router.get("")
def list_clients(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    rows = client_service.list_clients(db, actor)
    return {"records": [_client_to_dict(c) for c in rows]}


@router.get("/{client_id}")
def get_client(client_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    c = client_service.get_client(db, actor, client_id)
    if c is None:
        raise HTTPException(status_code=404, detail="Client not found.")
    return _client_to_dict(c)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_client(payload: ClientCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    c = client_service.create_client(db, actor, payload.model_dump())
    return {"message": "Client created.", "client_id": c.id}


@router.put("/{client_id}")
def update_client(client_id: int, payload: ClientUpdate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    c = client_service.update_client(db, actor, client_id, payload.model_dump())
    return _client_to_dict(c)


@router.delete("/{client_id}")
def delete_client(client_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    client_service.delete_client(db, actor, client_id)
    return {"message": "Client deleted."}
