from __future__ import annotations
import os
from typing import Iterable, Optional

from sqlalchemy import create_engine, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

_connect_args = {}
if settings.db_url.startswith("sqlite"):
    # sqlite: ensure directory exists
    os.makedirs("data", exist_ok=True)
    _connect_args = {"check_same_thread": False}

engine = create_engine(settings.db_url, future=True, echo=settings.db_echo, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

# dialects with INSERT .. ON CONFLICT
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def supports_upsert(db: Session) -> bool:
    return db.get_bind().dialect.name in _UPSERT_INSERTS

def upsert(db: Session, model, values: dict, conflict_cols: Iterable[str], set_: Optional[dict] = None) -> None:
    """
    Single-statement INSERT .. ON CONFLICT for `model`.
    With `set_` the conflicting row gets only those columns updated,
    otherwise the insert is silently skipped.
    Callers check `supports_upsert` first.
    """
    dialect = db.get_bind().dialect.name
    stmt = _UPSERT_INSERTS[dialect](model).values(**values)
    if set_:
        stmt = stmt.on_conflict_do_update(index_elements=list(conflict_cols), set_=set_)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_cols))
    db.execute(stmt)

def plain_insert(db: Session, model, values: dict) -> None:
    db.execute(insert(model).values(**values))
