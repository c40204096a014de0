from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from .db_models import Fingerprint

@dataclass(frozen=True)
class Match:
    value: str
    name: str
    user_ids: FrozenSet[int]
    updated_at: datetime # most recent sighting in the group
    data: Optional[Any] # representative payload

@dataclass(frozen=True)
class FlaggedSummary:
    name: str
    value: str
    data: Optional[Any]
    count: int # observations, not users
    user_ids: FrozenSet[int]

def _rows_for(db: Session, values: Iterable[str]):
    """
    All observations carrying `values`, representative first per value:
    highest updated_at, then lowest id.
    """
    return (
        db.query(Fingerprint.id, Fingerprint.user_id, Fingerprint.name, Fingerprint.value,
                 Fingerprint.data, Fingerprint.updated_at)
        .filter(Fingerprint.value.in_(list(values)))
        .order_by(Fingerprint.value, Fingerprint.updated_at.desc(), Fingerprint.id.asc())
        .all()
    )

def top_recent_matches(db: Session, limit: int, exclude_values: Iterable[str] = ()) -> List[Match]:
    if limit <= 0:
        return []
    last_seen = func.max(Fingerprint.updated_at).label("last_seen")
    q = (
        db.query(Fingerprint.value, last_seen)
        .group_by(Fingerprint.value)
        .having(func.count(distinct(Fingerprint.user_id)) >= 2)
    )
    exclude = set(exclude_values)
    if exclude:
        q = q.filter(Fingerprint.value.notin_(exclude))
    page = q.order_by(last_seen.desc(), Fingerprint.value.asc()).limit(limit).all()
    if not page:
        return []

    first: Dict[str, Any] = {}
    members: Dict[str, Set[int]] = {}
    for r in _rows_for(db, [p.value for p in page]):
        first.setdefault(r.value, r)
        members.setdefault(r.value, set()).add(r.user_id)

    # keep the grouped query's order
    out = []
    for p in page:
        rep = first[p.value]
        out.append(Match(
            value=p.value,
            name=rep.name,
            user_ids=frozenset(members[p.value]),
            updated_at=rep.updated_at,
            data=rep.data,
        ))
    return out

def flagged_summaries(db: Session, values: Iterable[str]) -> Dict[str, FlaggedSummary]:
    values = set(values)
    if not values:
        return {}
    first: Dict[str, Any] = {}
    counts: Dict[str, int] = {}
    members: Dict[str, Set[int]] = {}
    for r in _rows_for(db, values):
        first.setdefault(r.value, r)
        counts[r.value] = counts.get(r.value, 0) + 1
        members.setdefault(r.value, set()).add(r.user_id)
    return {
        v: FlaggedSummary(name=rep.name, value=v, data=rep.data, count=counts[v],
                          user_ids=frozenset(members[v]))
        for v, rep in first.items()
    }

def users_sharing_many(db: Session, values: Iterable[str], excluding: Optional[int] = None) -> Dict[str, Set[int]]:
    values = set(values)
    out: Dict[str, Set[int]] = {v: set() for v in values}
    if not values:
        return out
    rows = (
        db.query(Fingerprint.value, Fingerprint.user_id)
        .filter(Fingerprint.value.in_(values))
        .distinct()
        .all()
    )
    for r in rows:
        if r.user_id != excluding:
            out[r.value].add(r.user_id)
    return out

def users_sharing(db: Session, value: str, excluding: Optional[int] = None) -> Set[int]:
    return users_sharing_many(db, [value], excluding)[value]
