from __future__ import annotations
from typing import Set

from sqlalchemy import and_, delete, or_
from sqlalchemy.orm import Session

from .db import supports_upsert, upsert
from .db_models import IgnoredUser, User
from .errors import InvalidArgument, NotFound
from .logger import log_event

def _ensure_users(db: Session, user_a: int, user_b: int) -> None:
    found = {r.id for r in db.query(User.id).filter(User.id.in_((user_a, user_b))).all()}
    missing = [uid for uid in (user_a, user_b) if uid not in found]
    if missing:
        raise NotFound(f"unknown user id(s): {missing}")

def _add_direction(db: Session, user_id: int, other_id: int) -> None:
    if supports_upsert(db):
        upsert(
            db,
            IgnoredUser,
            {"user_id": user_id, "ignored_user_id": other_id},
            conflict_cols=("user_id", "ignored_user_id"),
        )
        return
    exists = db.query(IgnoredUser.id).filter(
        IgnoredUser.user_id == user_id, IgnoredUser.ignored_user_id == other_id
    ).first()
    if exists is None:
        db.add(IgnoredUser(user_id=user_id, ignored_user_id=other_id))

def set_ignore(db: Session, user_a: int, user_b: int, enabled: bool) -> None:
    """Mark (or unmark) two users as a known-benign pair, in both directions."""
    if user_a == user_b:
        raise InvalidArgument("a user cannot ignore themselves")
    _ensure_users(db, user_a, user_b)
    if enabled:
        _add_direction(db, user_a, user_b)
        _add_direction(db, user_b, user_a)
    else:
        db.execute(
            delete(IgnoredUser).where(
                or_(
                    and_(IgnoredUser.user_id == user_a, IgnoredUser.ignored_user_id == user_b),
                    and_(IgnoredUser.user_id == user_b, IgnoredUser.ignored_user_id == user_a),
                )
            )
        )
    # both directions become visible together
    db.commit()
    log_event("ignore_set", user_id=user_a, other_user_id=user_b, enabled=enabled)

def ignored_by(db: Session, user_id: int) -> Set[int]:
    rows = db.query(IgnoredUser.ignored_user_id).filter(IgnoredUser.user_id == user_id).all()
    return {r.ignored_user_id for r in rows}

def is_ignored(db: Session, user_a: int, user_b: int) -> bool:
    return db.query(IgnoredUser.id).filter(
        IgnoredUser.user_id == user_a, IgnoredUser.ignored_user_id == user_b
    ).first() is not None
