"""
Access policy for cases, clients, schedules and users.

Every function here is pure: it looks only at the arguments it is given and
never touches the database or raises. Callers turn a ``False`` into the right
response themselves: reads are answered with an opaque 404, writes with an
explicit 403.

Each decision is a table keyed by every ``Role`` member, so adding a role
without deciding what it may do fails ``test_every_role_is_decided``.
"""
import enum
from typing import Optional, NamedTuple

from ..models.models import Role


class ListScope(str, enum.Enum):
    ALL = "all"
    OWNED_AS_LAWYER = "owned_as_lawyer"
    OWNED_AS_CLIENT = "owned_as_client"
    NONE = "none"


class Actor(NamedTuple):
    """The authenticated caller, as far as the policy is concerned."""
    id: int
    role: Optional[Role]


class CaseOwnership(NamedTuple):
    """Who a stored case belongs to.

    ``client_user_id`` is the ``user_id`` of the case's client row, or None when
    that client has no linked account.
    """
    lawyer_id: Optional[int]
    client_user_id: Optional[int]


# How each role relates to a case it is looking at
_CASE_ACCESS = {
    Role.ADMIN: "any",
    Role.PARTNER: "any",
    Role.LAWYER: "as_lawyer",
    Role.STAFF: "as_lawyer",
    Role.CLIENT: "as_client",
}

_CASE_WRITE_ACCESS = {
    Role.ADMIN: "any",
    Role.PARTNER: "any",
    Role.LAWYER: "as_lawyer",
    Role.STAFF: "as_lawyer",
    Role.CLIENT: "none",
}

_LIST_SCOPES = {
    Role.ADMIN: ListScope.ALL,
    Role.PARTNER: ListScope.ALL,
    Role.LAWYER: ListScope.OWNED_AS_LAWYER,
    Role.STAFF: ListScope.OWNED_AS_LAWYER,
    Role.CLIENT: ListScope.OWNED_AS_CLIENT,
}

_CAN_CREATE_CASE = {
    Role.ADMIN: True,
    Role.PARTNER: True,
    Role.LAWYER: True,
    Role.STAFF: True,
    Role.CLIENT: False,
}

_CAN_DELETE_CASE = {
    Role.ADMIN: True,
    Role.PARTNER: True,
    Role.LAWYER: False,
    Role.STAFF: False,
    Role.CLIENT: False,
}

# Client directory and client record maintenance
_CAN_USE_CLIENT_DIRECTORY = {
    Role.ADMIN: True,
    Role.PARTNER: True,
    Role.LAWYER: True,
    Role.STAFF: True,
    Role.CLIENT: False,
}

_CAN_MANAGE_USERS = {
    Role.ADMIN: True,
    Role.PARTNER: False,
    Role.LAWYER: False,
    Role.STAFF: False,
    Role.CLIENT: False,
}

DECISION_TABLES = {
    "case_access": _CASE_ACCESS,
    "case_write_access": _CASE_WRITE_ACCESS,
    "list_scopes": _LIST_SCOPES,
    "create_case": _CAN_CREATE_CASE,
    "delete_case": _CAN_DELETE_CASE,
    "client_directory": _CAN_USE_CLIENT_DIRECTORY,
    "manage_users": _CAN_MANAGE_USERS,
}


def parse_role(value) -> Optional[Role]:
    """Map a stored or claimed role string onto Role; unknown values give None."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        return None


def _matches(access: str, acting_user_id: int, ownership: CaseOwnership) -> bool:
    if access == "any":
        return True
    if access == "as_lawyer":
        return ownership.lawyer_id is not None and ownership.lawyer_id == acting_user_id
    if access == "as_client":
        return ownership.client_user_id is not None and ownership.client_user_id == acting_user_id
    return False


def can_create_case(role) -> bool:
    return _CAN_CREATE_CASE.get(parse_role(role), False)


def can_read_case(role, acting_user_id: int, ownership: Optional[CaseOwnership]) -> bool:
    if ownership is None:
        return False
    access = _CASE_ACCESS.get(parse_role(role), "none")
    return _matches(access, acting_user_id, ownership)


def can_update_case(role, acting_user_id: int, existing: Optional[CaseOwnership]) -> bool:
    """Decide against the stored case; a lawyer_id in the request body is never consulted."""
    if existing is None:
        return False
    access = _CASE_WRITE_ACCESS.get(parse_role(role), "none")
    return _matches(access, acting_user_id, existing)


def can_delete_case(role) -> bool:
    return _CAN_DELETE_CASE.get(parse_role(role), False)


def can_list_cases(role) -> ListScope:
    return _LIST_SCOPES.get(parse_role(role), ListScope.NONE)


def can_read_clients(role) -> bool:
    return _CAN_USE_CLIENT_DIRECTORY.get(parse_role(role), False)


def can_list_clients(role) -> bool:
    return can_read_clients(role)


def can_manage_clients(role) -> bool:
    return _CAN_USE_CLIENT_DIRECTORY.get(parse_role(role), False)


def can_manage_users(role) -> bool:
    return _CAN_MANAGE_USERS.get(parse_role(role), False)
