from __future__ import annotations
from datetime import datetime
from typing import List, Set

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import plain_insert, supports_upsert, upsert
from .db_models import FlaggedFingerprint
from .errors import Conflict, InvalidArgument, require
from .logger import log_event

# flag type -> column it toggles
FLAG_COLUMNS = {
    "hide": "hidden",
    "silence": "silenced",
}
FLAG_TYPES = tuple(FLAG_COLUMNS)

def _column_for(kind: str) -> str:
    column = FLAG_COLUMNS.get(kind)
    if column is None:
        raise InvalidArgument(f"flag type must be one of {', '.join(FLAG_TYPES)}")
    return column

def is_hidden(db: Session, value: str) -> bool:
    return db.query(FlaggedFingerprint.id).filter(
        FlaggedFingerprint.value == value, FlaggedFingerprint.hidden.is_(True)
    ).first() is not None

def is_silenced(db: Session, value: str) -> bool:
    return db.query(FlaggedFingerprint.id).filter(
        FlaggedFingerprint.value == value, FlaggedFingerprint.silenced.is_(True)
    ).first() is not None

def hidden_values(db: Session) -> Set[str]:
    rows = db.query(FlaggedFingerprint.value).filter(FlaggedFingerprint.hidden.is_(True)).all()
    return {r.value for r in rows}

def silenced_values(db: Session) -> Set[str]:
    rows = db.query(FlaggedFingerprint.value).filter(FlaggedFingerprint.silenced.is_(True)).all()
    return {r.value for r in rows}

def flagged_values(db: Session) -> Set[str]:
    rows = db.query(FlaggedFingerprint.value).filter(
        or_(FlaggedFingerprint.hidden.is_(True), FlaggedFingerprint.silenced.is_(True))
    ).all()
    return {r.value for r in rows}

def all_flags(db: Session) -> List[FlaggedFingerprint]:
    return db.query(FlaggedFingerprint).order_by(FlaggedFingerprint.value).all()

def _update_bit(db: Session, value: str, column: str, enabled: bool, ts: datetime) -> int:
    result = db.execute(
        update(FlaggedFingerprint)
        .where(FlaggedFingerprint.value == value)
        .values({column: enabled, "updated_at": ts})
    )
    return result.rowcount

def _insert_bit(db: Session, value: str, column: str, ts: datetime) -> None:
    try:
        plain_insert(db, FlaggedFingerprint, {"value": value, column: True, "created_at": ts, "updated_at": ts})
    except IntegrityError as e:
        db.rollback()
        raise Conflict(value) from e

def _set_bit(db: Session, value: str, column: str, ts: datetime) -> None:
    if supports_upsert(db):
        upsert(
            db,
            FlaggedFingerprint,
            {"value": value, column: True, "created_at": ts, "updated_at": ts},
            conflict_cols=("value",),
            set_={column: True, "updated_at": ts},
        )
        return
    if _update_bit(db, value, column, True, ts):
        return
    try:
        _insert_bit(db, value, column, ts)
    except Conflict:
        # another moderator created the row first
        log_event("flag_conflict", value=value, column=column)
        _update_bit(db, value, column, True, ts)

def set_flag(db: Session, value: str, kind: str, enabled: bool) -> None:
    """
    Toggle one flag bit on `value`.

    Only the toggled column is written, so concurrent toggles of the other
    bit are never lost. A row left with neither bit set is deleted in the
    same transaction.
    """
    column = _column_for(kind)
    require(value, "fingerprint value")
    ts = datetime.utcnow()
    if enabled:
        _set_bit(db, value, column, ts)
    else:
        # never creates a row
        _update_bit(db, value, column, False, ts)
    db.execute(
        delete(FlaggedFingerprint).where(
            FlaggedFingerprint.value == value,
            FlaggedFingerprint.hidden.is_(False),
            FlaggedFingerprint.silenced.is_(False),
        )
    )
    db.commit()
    log_event("flag_set", value=value, type=kind, enabled=enabled)
