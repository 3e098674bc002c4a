from sqlalchemy.orm import Session

from ..auth.security import get_password_hash
from ..errors import AuthorizationDenied, ConflictError, NotFound, ValidationError
from ..models.models import Case, Role, User
from .accounts import email_exists, normalize_email
from .permissions import Actor, can_manage_users, parse_role
from .text import strip_markup


def _require_manager(actor: Actor) -> None:
    if not can_manage_users(actor.role):
        raise AuthorizationDenied("Access Denied.")


def _role_value(value) -> str:
    role = parse_role(value)
    if role is None:
        raise ValidationError("Role must be one of: " + ", ".join(r.value for r in Role) + ".")
    return role.value


def list_users(db: Session, actor: Actor) -> list:
    _require_manager(actor)
    return db.query(User).order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc()).all()


def get_user(db: Session, actor: Actor, user_id: int) -> User:
    _require_manager(actor)
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def create_user(db: Session, actor: Actor, data: dict) -> User:
    _require_manager(actor)
    first_name = strip_markup(data.get("first_name"))
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    if not first_name or not email or not password:
        raise ValidationError("Incomplete data. First name, email, and password are required.")
    if email_exists(db, email):
        raise ConflictError("This email address is already registered.")
    user = User(
        first_name=first_name,
        last_name=strip_markup(data.get("last_name")) or "",
        email=email,
        password_hash=get_password_hash(password),
        role=_role_value(data.get("role") or Role.STAFF.value),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _apply_identity(db: Session, user: User, data: dict) -> None:
    if data.get("first_name") is not None:
        first_name = strip_markup(data["first_name"])
        if not first_name:
            raise ValidationError("First name cannot be empty.")
        user.first_name = first_name
    if data.get("last_name") is not None:
        user.last_name = strip_markup(data["last_name"]) or ""
    if data.get("email") is not None:
        email = normalize_email(data["email"])
        if not email:
            raise ValidationError("Email cannot be empty.")
        if email_exists(db, email, exclude_user_id=user.id):
            raise ConflictError("This email address is already registered.")
        user.email = email
    if data.get("password"):
        user.password_hash = get_password_hash(data["password"])


def update_user(db: Session, actor: Actor, user_id: int, data: dict) -> User:
    _require_manager(actor)
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    _apply_identity(db, user, data)
    if data.get("role") is not None:
        user.role = _role_value(data["role"])
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, actor: Actor, user_id: int) -> None:
    _require_manager(actor)
    if user_id == actor.id:
        raise ValidationError("You cannot delete your own account.")
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    if db.query(Case.id).filter(Case.lawyer_id == user_id).first() is not None:
        raise ConflictError("User is still assigned to cases. Reassign them first.")
    db.delete(user)
    db.commit()


def list_lawyers(db: Session) -> list:
    return (
        db.query(User)
        .filter(User.role.in_([Role.LAWYER.value, Role.PARTNER.value]))
        .order_by(User.last_name.asc(), User.first_name.asc())
        .all()
    )


def update_profile(db: Session, actor: Actor, data: dict) -> User:
    """Self-service update. The role is not writable here, whatever the payload says."""
    user = db.get(User, actor.id)
    if user is None:
        raise NotFound("User not found.")
    data = {k: v for k, v in data.items() if k != "role"}
    _apply_identity(db, user, data)
    db.commit()
    db.refresh(user)
    return user