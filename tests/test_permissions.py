import pytest

from legaliz.models.models import Role
from legaliz.services import permissions
from legaliz.services.permissions import (
    CaseOwnership,
    ListScope,
    can_create_case,
    can_delete_case,
    can_list_cases,
    can_list_clients,
    can_manage_clients,
    can_manage_users,
    can_read_case,
    can_update_case,
)


FIRM_ROLES = [Role.ADMIN, Role.PARTNER, Role.LAWYER, Role.STAFF]


@pytest.mark.parametrize("name,table", sorted(permissions.DECISION_TABLES.items()))
def test_every_role_is_decided(name, table):
    assert set(table) == set(Role), name


@pytest.mark.parametrize("role", FIRM_ROLES)
def test_firm_roles_can_create_cases(role):
    assert can_create_case(role) is True


@pytest.mark.parametrize("role", [Role.CLIENT, "client", "guest", "", None, "ADMINISTRATOR"])
def test_other_roles_cannot_create_cases(role):
    assert can_create_case(role) is False


def test_role_strings_are_accepted():
    assert can_create_case("lawyer") is True
    assert can_delete_case(" Partner ") is True


@pytest.mark.parametrize("role", [Role.ADMIN, Role.PARTNER])
def test_admin_and_partner_read_any_case(role):
    assert can_read_case(role, 1, CaseOwnership(lawyer_id=99, client_user_id=98))


@pytest.mark.parametrize("role", [Role.LAWYER, Role.STAFF])
def test_lawyer_and_staff_read_only_their_cases(role):
    assert can_read_case(role, 7, CaseOwnership(lawyer_id=7, client_user_id=None))
    assert not can_read_case(role, 7, CaseOwnership(lawyer_id=8, client_user_id=7))


def test_client_reads_case_only_through_linked_client_row():
    assert can_read_case(Role.CLIENT, 5, CaseOwnership(lawyer_id=1, client_user_id=5))
    assert not can_read_case(Role.CLIENT, 5, CaseOwnership(lawyer_id=5, client_user_id=6))
    # Client row without an account
    assert not can_read_case(Role.CLIENT, 5, CaseOwnership(lawyer_id=1, client_user_id=None))


def test_missing_case_is_never_readable():
    for role in Role:
        assert can_read_case(role, 1, None) is False
        assert can_update_case(role, 1, None) is False


def test_unknown_role_reads_nothing():
    assert not can_read_case("auditor", 1, CaseOwnership(lawyer_id=1, client_user_id=1))


def test_update_uses_stored_lawyer_only():
    stored = CaseOwnership(lawyer_id=10, client_user_id=None)
    assert can_update_case(Role.LAWYER, 10, stored)
    assert not can_update_case(Role.LAWYER, 11, stored)
    assert not can_update_case(Role.STAFF, 11, stored)
    assert can_update_case(Role.PARTNER, 11, stored)


def test_client_never_updates_cases():
    assert not can_update_case(Role.CLIENT, 3, CaseOwnership(lawyer_id=3, client_user_id=3))


@pytest.mark.parametrize("role,allowed", [
    (Role.ADMIN, True),
    (Role.PARTNER, True),
    (Role.LAWYER, False),
    (Role.STAFF, False),
    (Role.CLIENT, False),
])
def test_delete_case(role, allowed):
    assert can_delete_case(role) is allowed


@pytest.mark.parametrize("role,scope", [
    (Role.ADMIN, ListScope.ALL),
    (Role.PARTNER, ListScope.ALL),
    (Role.LAWYER, ListScope.OWNED_AS_LAWYER),
    (Role.STAFF, ListScope.OWNED_AS_LAWYER),
    (Role.CLIENT, ListScope.OWNED_AS_CLIENT),
    ("intern", ListScope.NONE),
])
def test_list_scope(role, scope):
    assert can_list_cases(role) == scope


def test_client_directory_is_for_firm_roles():
    for role in FIRM_ROLES:
        assert can_list_clients(role)
        assert can_manage_clients(role)
    assert not can_list_clients(Role.CLIENT)
    assert not can_manage_clients(Role.CLIENT)


def test_only_admin_manages_users():
    assert can_manage_users(Role.ADMIN)
    assert not any(can_manage_users(r) for r in Role if r != Role.ADMIN)
