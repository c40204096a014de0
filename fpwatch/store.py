from __future__ import annotations
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import plain_insert, supports_upsert, upsert
from .db_models import Fingerprint
from .errors import Conflict, require
from .logger import log_event

def _update_row(db: Session, user_id: int, name: str, value: str, data, ts: datetime) -> int:
    result = db.execute(
        update(Fingerprint)
        .where(Fingerprint.user_id == user_id, Fingerprint.name == name, Fingerprint.value == value)
        .values(data=data, updated_at=ts)
    )
    return result.rowcount

def _insert_row(db: Session, user_id: int, name: str, value: str, data, ts: datetime) -> None:
    try:
        plain_insert(db, Fingerprint, {"user_id": user_id, "name": name, "value": value, "data": data,
                                       "created_at": ts, "updated_at": ts})
    except IntegrityError as e:
        db.rollback()
        raise Conflict(value) from e

def record(
    db: Session,
    user_id: int,
    name: str,
    value: str,
    data: Optional[Any] = None,
    seen_at: Optional[datetime] = None,
) -> None:
    """
    Upsert one observation. A repeat sighting of (user, name, value)
    only refreshes `data` and `updated_at`.
    """
    require(name, "fingerprint name")
    require(value, "fingerprint value")
    ts = seen_at or datetime.utcnow()
    if supports_upsert(db):
        upsert(
            db,
            Fingerprint,
            {"user_id": user_id, "name": name, "value": value, "data": data,
             "created_at": ts, "updated_at": ts},
            conflict_cols=("user_id", "name", "value"),
            set_={"data": data, "updated_at": ts},
        )
    elif not _update_row(db, user_id, name, value, data, ts):
        try:
            _insert_row(db, user_id, name, value, data, ts)
        except Conflict:
            # a concurrent first sighting won the insert
            log_event("fingerprint_conflict", user_id=user_id, name=name, value=value)
            _update_row(db, user_id, name, value, data, ts)
    db.commit()
    log_event("fingerprint_recorded", user_id=user_id, name=name, value=value)

def fingerprints_for_user(db: Session, user_id: int, exclude_values: Iterable[str] = ()) -> List[Fingerprint]:
    q = db.query(Fingerprint).filter(Fingerprint.user_id == user_id)
    exclude = set(exclude_values)
    if exclude:
        q = q.filter(Fingerprint.value.notin_(exclude))
    return q.order_by(Fingerprint.updated_at.desc(), Fingerprint.id.desc()).all()

def values_owned_by(db: Session, user_id: int) -> Set[str]:
    rows = db.query(Fingerprint.value).filter(Fingerprint.user_id == user_id).distinct().all()
    return {r.value for r in rows}
