import pytest
from fpwatch import flags, ignores, reports, store
from fpwatch.errors import NotFound
from .conftest import at

@pytest.fixture
def seeded(db, users):
    u1, u2, u3 = users
    store.record(db, u1.id, "canvas", "X", seen_at=at(0))
    store.record(db, u2.id, "canvas", "X", seen_at=at(1))
    store.record(db, u1.id, "audio", "A", seen_at=at(2))
    store.record(db, u3.id, "audio", "A", seen_at=at(3))
    store.record(db, u3.id, "webgl", "S", seen_at=at(4))
    store.record(db, u2.id, "webgl", "S", seen_at=at(5))
    return users

def test_dashboard_excludes_hidden_and_silenced(db, seeded):
    u1, u2, u3 = seeded
    flags.set_flag(db, "X", "hide", True)
    flags.set_flag(db, "S", "silence", True)

    view = reports.dashboard(db)
    assert [m.value for m in view.matches] == ["A"]
    assert set(view.flagged_summaries) == {"X", "S"}
    assert view.flagged_summaries["S"].count == 2
    assert sorted(f.value for f in view.flags) == ["S", "X"]
    assert view.involved_user_ids == {u1.id, u2.id, u3.id}

def test_dashboard_respects_limit(db, seeded):
    view = reports.dashboard(db, limit=2)
    assert [m.value for m in view.matches] == ["S", "A"]

def test_user_report_lists_shared_users(db, seeded):
    u1, u2, u3 = seeded
    view = reports.user_report(db, u1.id)
    assert view.user.id == u1.id
    assert [f.value for f in view.fingerprints] == ["A", "X"]
    assert view.shared_users_by_value == {"A": {u3.id}, "X": {u2.id}}
    assert view.ignored_user_ids == set()
    assert view.involved_user_ids == {u2.id, u3.id}

def test_user_report_hides_hidden_fingerprints(db, seeded):
    u1, _, _ = seeded
    flags.set_flag(db, "X", "hide", True)
    view = reports.user_report(db, u1.id)
    assert "X" not in {f.value for f in view.fingerprints}
    assert "X" not in view.shared_users_by_value

def test_user_report_keeps_silenced_fingerprints(db, seeded):
    u1, u2, _ = seeded
    flags.set_flag(db, "X", "silence", True)
    view = reports.user_report(db, u1.id)
    assert view.shared_users_by_value["X"] == {u2.id}

def test_user_report_drops_ignored_pairs(db, seeded):
    u1, u2, u3 = seeded
    ignores.set_ignore(db, u1.id, u2.id, True)
    view = reports.user_report(db, u1.id)
    assert view.shared_users_by_value == {"A": {u3.id}, "X": set()}
    assert view.ignored_user_ids == {u2.id}
    assert view.involved_user_ids == {u2.id, u3.id}

def test_user_report_unknown_user(db):
    with pytest.raises(NotFound):
        reports.user_report(db, 12345)

def test_load_users_is_batched(db, seeded):
    u1, u2, u3 = seeded
    assert [u.id for u in reports.load_users(db, [u3.id, u1.id, u3.id])] == [u1.id, u3.id]
    assert reports.load_users(db, []) == []
