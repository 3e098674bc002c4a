"""
Account lifecycle: self-registration, sign-in and password reset.
"""
import secrets
import smtplib
from datetime import datetime, timedelta, timezone
from email.message import EmailMessage
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.security import get_password_hash, verify_password
from ..config import settings
from ..db import unit_of_work
from ..errors import ConflictError, PersistenceFailure, ValidationError
from ..models.models import Client, PasswordReset, Role, User
from .text import strip_markup


logger = structlog.get_logger(__name__)


def normalize_email(email) -> str:
    return (email or "").strip().lower()


def email_exists(db: Session, email: str, exclude_user_id: Optional[int] = None) -> bool:
    q = db.query(User.id).filter(User.email == normalize_email(email))
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def _new_client_profile(db: Session, user: User) -> Client:
    client = Client(user_id=user.id, name=user.full_name or user.email, email=user.email)
    db.add(client)
    db.flush()
    return client


def register_client(db: Session, data: dict) -> User:
    """
    Create a client account: the user row and its linked client record.

    Both rows are written in one transaction; if the client record cannot be
    written the user row is rolled back too.
    """
    first_name = strip_markup(data.get("first_name"))
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    if not first_name or not email or not password:
        raise ValidationError("Incomplete data. First name, email, and password are required.")
    if email_exists(db, email):
        raise ConflictError("This email address is already registered.")
    try:
        with unit_of_work(db):
            user = User(
                first_name=first_name,
                last_name=strip_markup(data.get("last_name")) or "",
                email=email,
                password_hash=get_password_hash(password),
                role=Role.CLIENT.value,
            )
            db.add(user)
            db.flush()
            _new_client_profile(db, user)
    except PersistenceFailure as e:
        # Lost a race with a concurrent registration for the same email
        if isinstance(e.__cause__, IntegrityError) and email_exists(db, email):
            raise ConflictError("This email address is already registered.") from e
        raise
    db.refresh(user)
    logger.info("client_registered", user_id=user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if user is None or not verify_password(password or "", user.password_hash):
        return None
    return user


def _send_reset_email(email: str, token: str) -> None:
    if not (settings.smtp_host and settings.mail_from):
        return
    link = f"{settings.public_base_url}/reset-password?token={token}"
    minutes = settings.password_reset_ttl_seconds // 60
    msg = EmailMessage()
    msg["Subject"] = "Password Reset Request"
    msg["From"] = settings.mail_from
    msg["To"] = email
    msg.set_content(
        "Hello,\n\nYou requested a password reset. Open the following link to choose a new password:\n\n"
        f"{link}\n\nThis link will expire in {minutes} minutes.\n\n"
        "If you did not request this, please ignore this email."
    )
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as s:
        if settings.smtp_tls:
            s.starttls()
        if settings.smtp_username and settings.smtp_password:
            s.login(settings.smtp_username, settings.smtp_password)
        s.send_message(msg)


def request_password_reset(db: Session, email: str) -> Optional[str]:
    """
    Issue a reset token for a registered email and mail the link.

    Returns the token, or None when the email is unknown. Callers must answer
    both cases identically.
    """
    email = normalize_email(email)
    if not email_exists(db, email):
        return None
    token = secrets.token_hex(32)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=settings.password_reset_ttl_seconds)
    with unit_of_work(db):
        db.query(PasswordReset).filter(PasswordReset.email == email).delete()
        db.add(PasswordReset(email=email, token=token, expires_at=expires_at))
    try:
        _send_reset_email(email, token)
    except Exception as e:
        logger.warning("password_reset_email_failed", error=str(e))
    return token


def reset_password(db: Session, token: str, new_password: str) -> None:
    if not new_password or len(new_password) < 8:
        raise ValidationError("Password must be at least 8 characters.")
    pr = db.query(PasswordReset).filter(PasswordReset.token == token).first()
    if not pr:
        raise ValidationError("Invalid or expired token.")
    # Normalize datetimes to UTC-aware before comparison
    now_utc = datetime.now(timezone.utc)
    expires_at = pr.expires_at
    if expires_at and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if pr.used_at is not None or (expires_at and expires_at < now_utc):
        raise ValidationError("Invalid or expired token.")
    user = db.query(User).filter(User.email == pr.email).first()
    if not user:
        raise ValidationError("Invalid or expired token.")
    with unit_of_work(db):
        user.password_hash = get_password_hash(new_password)
        pr.used_at = now_utc
