import pytest

from legaliz.errors import AuthorizationDenied, NotFound, ValidationError
from legaliz.models.models import ActivityLog, Case, Role, Schedule
from legaliz.services import activity, cases


@pytest.fixture
def firm(make_user, make_client, make_case):
    lawyer = make_user(Role.LAWYER)
    other_lawyer = make_user(Role.LAWYER)
    client_user = make_user(Role.CLIENT)
    linked = make_client("Linked Client", user=client_user)
    walk_in = make_client("Walk-in Client")
    own = make_case(linked, lawyer, title="Own case")
    foreign = make_case(walk_in, other_lawyer, title="Foreign case")
    return {
        "lawyer": lawyer,
        "other_lawyer": other_lawyer,
        "client_user": client_user,
        "linked": linked,
        "walk_in": walk_in,
        "own": own,
        "foreign": foreign,
    }


def test_create_forces_open_status_and_zero_progress(db, firm, actor):
    case_id = cases.create_case(db, actor(firm["lawyer"]), {
        "title": "New matter",
        "description": "Details",
        "client_id": firm["walk_in"].id,
        "lawyer_id": firm["lawyer"].id,
        "status": "closed",
        "progress": 90,
    })
    case = db.get(Case, case_id)
    assert case.status == "open"
    assert case.progress == 0


def test_create_strips_markup(db, firm, actor):
    case_id = cases.create_case(db, actor(firm["lawyer"]), {
        "title": "<b>Estate</b> of <script>x</script>Smith",
        "description": "<p>Probate</p>",
        "client_id": firm["walk_in"].id,
        "lawyer_id": firm["lawyer"].id,
    })
    case = db.get(Case, case_id)
    assert case.title == "Estate of Smith"
    assert case.description == "Probate"


def test_client_cannot_create_and_nothing_is_written(db, firm, actor):
    before = db.query(Case).count()
    with pytest.raises(AuthorizationDenied):
        cases.create_case(db, actor(firm["client_user"]), {
            "title": "Sneaky",
            "client_id": firm["linked"].id,
            "lawyer_id": firm["lawyer"].id,
        })
    assert db.query(Case).count() == before


def test_create_rejects_unknown_references(db, firm, actor):
    with pytest.raises(ValidationError):
        cases.create_case(db, actor(firm["lawyer"]), {"title": "X", "client_id": 999, "lawyer_id": firm["lawyer"].id})
    with pytest.raises(ValidationError):
        cases.create_case(db, actor(firm["lawyer"]), {"title": "X", "client_id": firm["walk_in"].id, "lawyer_id": 999})


def test_create_requires_title(db, firm, actor):
    with pytest.raises(ValidationError):
        cases.create_case(db, actor(firm["lawyer"]), {"title": "<i></i>", "client_id": firm["walk_in"].id, "lawyer_id": firm["lawyer"].id})


def test_create_appends_activity(db, firm, actor):
    case_id = cases.create_case(db, actor(firm["lawyer"]), {
        "title": "Logged", "client_id": firm["walk_in"].id, "lawyer_id": firm["lawyer"].id,
    })
    entry = db.query(ActivityLog).one()
    assert entry.action_type == "CASE_CREATED"
    assert entry.user_id == firm["lawyer"].id
    assert entry.related_entity_type == "case"
    assert entry.related_entity_id == case_id
    assert entry.description == "Created case: 'Logged'"


def test_activity_failure_does_not_undo_create(db, firm, actor, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("activity table is gone")

    monkeypatch.setattr(activity, "ActivityLog", broken)
    case_id = cases.create_case(db, actor(firm["lawyer"]), {
        "title": "Still saved", "client_id": firm["walk_in"].id, "lawyer_id": firm["lawyer"].id,
    })
    assert db.get(Case, case_id).title == "Still saved"


def test_read_own_case(db, firm, actor):
    case = cases.get_case(db, actor(firm["lawyer"]), firm["own"].id)
    assert case is not None and case.title == "Own case"


def test_read_denied_and_missing_look_the_same(db, firm, actor):
    lawyer = actor(firm["lawyer"])
    assert cases.get_case(db, lawyer, firm["foreign"].id) is None
    assert cases.get_case(db, lawyer, 12345) is None


def test_client_reads_only_cases_of_linked_client(db, firm, actor):
    client = actor(firm["client_user"])
    assert cases.get_case(db, client, firm["own"].id) is not None
    assert cases.get_case(db, client, firm["foreign"].id) is None


def test_client_without_client_row_reads_nothing(db, firm, actor, make_user):
    orphan = make_user(Role.CLIENT)
    assert cases.get_case(db, actor(orphan), firm["own"].id) is None
    assert cases.list_cases(db, actor(orphan)) == []


def test_list_scopes(db, firm, actor, make_user):
    admin = make_user(Role.ADMIN)
    assert {c.title for c in cases.list_cases(db, actor(admin))} == {"Own case", "Foreign case"}
    assert [c.title for c in cases.list_cases(db, actor(firm["lawyer"]))] == ["Own case"]
    assert [c.title for c in cases.list_cases(db, actor(firm["other_lawyer"]))] == ["Foreign case"]
    assert [c.title for c in cases.list_cases(db, actor(firm["client_user"]))] == ["Own case"]


def test_list_is_newest_first(db, firm, actor, make_user, make_case):
    partner = make_user(Role.PARTNER)
    make_case(firm["walk_in"], firm["lawyer"], title="Newest")
    titles = [c.title for c in cases.list_cases(db, actor(partner))]
    assert titles[0] == "Newest"


def _update_payload(firm, **overrides):
    data = {
        "title": "Own case",
        "description": "",
        "status": "in_progress",
        "progress": 50,
        "client_id": firm["linked"].id,
        "lawyer_id": firm["lawyer"].id,
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize("submitted,stored", [
    (-5, 0),
    (0, 0),
    (42.4, 42),
    (42.6, 43),
    (100, 100),
    (150, 100),
    ("77", 77),
])
def test_update_clamps_progress(db, firm, actor, submitted, stored):
    assert cases.update_case(db, actor(firm["lawyer"]), firm["own"].id, _update_payload(firm, progress=submitted))
    db.expire_all()
    assert db.get(Case, firm["own"].id).progress == stored


def test_update_rejects_non_numeric_progress(db, firm, actor):
    with pytest.raises(ValidationError):
        cases.update_case(db, actor(firm["lawyer"]), firm["own"].id, _update_payload(firm, progress="lots"))


def test_update_writes_all_mutable_fields(db, firm, actor):
    cases.update_case(db, actor(firm["lawyer"]), firm["own"].id, _update_payload(
        firm, title="Renamed", description="<em>New</em> notes", status="closed", progress=100,
    ))
    db.expire_all()
    case = db.get(Case, firm["own"].id)
    assert (case.title, case.description, case.status, case.progress) == ("Renamed", "New notes", "closed", 100)


def test_submitted_lawyer_id_does_not_grant_update(db, firm, actor):
    intruder = actor(firm["other_lawyer"])
    payload = _update_payload(firm, lawyer_id=firm["other_lawyer"].id, title="Hijacked")
    assert cases.update_case(db, intruder, firm["own"].id, payload) is False
    db.expire_all()
    case = db.get(Case, firm["own"].id)
    assert case.title == "Own case"
    assert case.lawyer_id == firm["lawyer"].id


def test_owner_may_reassign_case_away_and_then_loses_access(db, firm, actor):
    owner = actor(firm["lawyer"])
    payload = _update_payload(firm, lawyer_id=firm["other_lawyer"].id)
    assert cases.update_case(db, owner, firm["own"].id, payload) is True
    assert cases.update_case(db, owner, firm["own"].id, payload) is False
    assert cases.get_case(db, owner, firm["own"].id) is None


def test_update_missing_case_raises_not_found(db, firm, actor):
    with pytest.raises(NotFound):
        cases.update_case(db, actor(firm["lawyer"]), 999, _update_payload(firm))


def test_update_rejects_unknown_status(db, firm, actor):
    with pytest.raises(ValidationError):
        cases.update_case(db, actor(firm["lawyer"]), firm["own"].id, _update_payload(firm, status="archived"))


def test_update_appends_activity(db, firm, actor):
    cases.update_case(db, actor(firm["lawyer"]), firm["own"].id, _update_payload(firm, title="Revised"))
    entry = db.query(ActivityLog).one()
    assert entry.action_type == "CASE_UPDATED"
    assert entry.description == "Updated case: 'Revised'"


def test_denied_update_logs_nothing(db, firm, actor):
    cases.update_case(db, actor(firm["client_user"]), firm["own"].id, _update_payload(firm))
    assert db.query(ActivityLog).count() == 0


@pytest.mark.parametrize("role", [Role.LAWYER, Role.STAFF, Role.CLIENT])
def test_only_admin_and_partner_delete(db, firm, actor, make_user, role):
    user = make_user(role)
    assert cases.delete_case(db, actor(user), firm["own"].id) is False
    assert db.get(Case, firm["own"].id) is not None


def test_delete_removes_case_schedules(db, firm, actor, make_user, make_event):
    partner = make_user(Role.PARTNER)
    make_event(firm["own"], "2024-02-01T10:00:00")
    make_event(firm["foreign"], "2024-02-01T11:00:00")
    assert cases.delete_case(db, actor(partner), firm["own"].id) is True
    db.expire_all()
    assert db.get(Case, firm["own"].id) is None
    assert db.query(Schedule).count() == 1
    assert db.query(ActivityLog).count() == 0


def test_delete_missing_case(db, actor, make_user):
    with pytest.raises(NotFound):
        cases.delete_case(db, actor(make_user(Role.ADMIN)), 404)
