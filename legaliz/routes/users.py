from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_actor, get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.auth import ProfileUpdate, UserCreate, UserUpdate
from ..services import users as user_service
from ..services.permissions import Actor


router = APIRouter(prefix="/users", tags=["users"])
profile_router = APIRouter(prefix="/profile", tags=["profile"])


def _user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "name": u.full_name,
        "email": u.email,
        "role": u.role,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


@router.get("")
def list_users(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return {"records": [_user_to_dict(u) for u in user_service.list_users(db, actor)]}


@router.get("/lawyers")
def list_lawyers(db: Session = Depends(get_db), _=Depends(get_actor)):
    rows = user_service.list_lawyers(db)
    return {"records": [{"id": u.id, "name": u.full_name} for u in rows]}


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return _user_to_dict(user_service.get_user(db, actor, user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    u = user_service.create_user(db, actor, payload.model_dump())
    return {"message": "User created.", "user_id": u.id}


@router.put("/{user_id}")
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    u = user_service.update_user(db, actor, user_id, payload.model_dump(exclude_unset=True))
    return _user_to_dict(u)


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    user_service.delete_user(db, actor, user_id)
    return {"message": "User deleted."}


@profile_router.get("")
def my_profile(user: User = Depends(get_current_user)):
    return _user_to_dict(user)


@profile_router.put("")
def update_my_profile(payload: ProfileUpdate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    u = user_service.update_profile(db, actor, payload.model_dump(exclude_unset=True))
    return _user_to_dict(u)
