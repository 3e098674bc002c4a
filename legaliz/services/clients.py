"""
Client repository.

The firm's client directory is for firm roles only. A user with the ``client``
role can still read the one record linked to their own account.
"""
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import AuthorizationDenied, ConflictError, NotFound, ValidationError
from ..models.models import Case, Client, Role, User
from .permissions import Actor, can_list_clients, can_manage_clients, can_read_clients, parse_role
from .text import clean_fields, strip_markup


TEXT_FIELDS = ("name", "email", "contact", "address")


def list_clients(db: Session, actor: Actor) -> list:
    if not can_list_clients(actor.role):
        raise AuthorizationDenied("Access Denied.")
    return db.query(Client).order_by(Client.name.asc(), Client.id.asc()).all()


def get_client(db: Session, actor: Actor, client_id: int) -> Optional[Client]:
    """The client, or None when it is absent or not visible to the actor."""
    client = db.get(Client, client_id)
    if client is None:
        return None
    if can_read_clients(actor.role):
        return client
    if parse_role(actor.role) == Role.CLIENT and client.user_id == actor.id:
        return client
    return None


def _check_user_link(db: Session, user_id: Optional[int], exclude_client_id: Optional[int] = None) -> None:
    if user_id is None:
        return
    if db.get(User, user_id) is None:
        raise ValidationError("Linked user does not exist.")
    q = db.query(Client.id).filter(Client.user_id == user_id)
    if exclude_client_id is not None:
        q = q.filter(Client.id != exclude_client_id)
    if q.first() is not None:
        raise ConflictError("This user is already linked to a client.")


def create_client(db: Session, actor: Actor, data: dict) -> Client:
    if not can_manage_clients(actor.role):
        raise AuthorizationDenied("Access denied to create client.")
    data = clean_fields(data, TEXT_FIELDS)
    if not data.get("name"):
        raise ValidationError("Incomplete data. Name is required.")
    user_id = data.get("user_id")
    _check_user_link(db, user_id)
    client = Client(
        user_id=user_id,
        name=data["name"],
        email=data.get("email") or None,
        contact=data.get("contact") or None,
        address=data.get("address") or None,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def update_client(db: Session, actor: Actor, client_id: int, data: dict) -> Client:
    if not can_manage_clients(actor.role):
        raise AuthorizationDenied("Access denied to update client.")
    client = db.get(Client, client_id)
    if client is None:
        raise NotFound("Client not found.")
    name = strip_markup(data.get("name"))
    if not name:
        raise ValidationError("Incomplete data. Name is required.")
    client.name = name
    client.email = strip_markup(data.get("email")) or None
    client.contact = strip_markup(data.get("contact")) or None
    client.address = strip_markup(data.get("address")) or None
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, actor: Actor, client_id: int) -> None:
    if not can_manage_clients(actor.role):
        raise AuthorizationDenied("Access denied to delete client.")
    client = db.get(Client, client_id)
    if client is None:
        raise NotFound("Client not found.")
    if db.query(Case.id).filter(Case.client_id == client_id).first() is not None:
        raise ConflictError("Client still has cases. Reassign or delete them first.")
    db.delete(client)
    db.commit()
