from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import User
from ..schemas.auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    MeResponse,
    PasswordResetRequest,
    PasswordResetConfirm,
)
from ..services import accounts
from .security import create_access_token, get_current_user


router = APIRouter(prefix="/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a password reset link has been sent."


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = accounts.register_client(db, payload.model_dump())
    return {"message": "User was successfully created.", "user_id": user.id}


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = accounts.authenticate(db, req.email, req.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    access = create_access_token(user.id, user.role)
    return TokenResponse(access_token=access, user_id=user.id, role=user.role)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
    )


@router.post("/password/forgot")
def password_forgot(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    # Same answer whether or not the email is registered
    accounts.request_password_reset(db, payload.email)
    return {"message": RESET_REQUESTED_MESSAGE}


@router.post("/password/reset")
def password_reset(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    accounts.reset_password(db, payload.token, payload.password)
    return {"message": "Password has been reset."}
