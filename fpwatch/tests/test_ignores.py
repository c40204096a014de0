import pytest
from fpwatch import ignores
from fpwatch.db_models import IgnoredUser
from fpwatch.errors import InvalidArgument, NotFound

def test_ignore_is_symmetric(db, users):
    a, b, c = users
    ignores.set_ignore(db, a.id, b.id, True)
    assert ignores.ignored_by(db, a.id) == {b.id}
    assert ignores.ignored_by(db, b.id) == {a.id}
    assert ignores.ignored_by(db, c.id) == set()
    assert ignores.is_ignored(db, b.id, a.id)

    ignores.set_ignore(db, b.id, a.id, False)
    assert ignores.ignored_by(db, a.id) == set()
    assert ignores.ignored_by(db, b.id) == set()

def test_ignore_is_idempotent(db, users):
    a, b, _ = users
    ignores.set_ignore(db, a.id, b.id, True)
    ignores.set_ignore(db, a.id, b.id, True)
    ignores.set_ignore(db, b.id, a.id, True)
    assert db.query(IgnoredUser).count() == 2

    ignores.set_ignore(db, a.id, b.id, False)
    ignores.set_ignore(db, a.id, b.id, False)
    assert db.query(IgnoredUser).count() == 0

def test_self_ignore_is_rejected(db, users):
    with pytest.raises(InvalidArgument):
        ignores.set_ignore(db, users[0].id, users[0].id, True)

def test_unknown_user_is_rejected(db, users):
    with pytest.raises(NotFound):
        ignores.set_ignore(db, users[0].id, 9999, True)
    assert db.query(IgnoredUser).count() == 0

def test_without_native_upsert(db, users, monkeypatch):
    a, b, _ = users
    monkeypatch.setattr(ignores, "supports_upsert", lambda db: False)
    ignores.set_ignore(db, a.id, b.id, True)
    ignores.set_ignore(db, b.id, a.id, True)
    assert db.query(IgnoredUser).count() == 2
    assert ignores.ignored_by(db, b.id) == {a.id}
