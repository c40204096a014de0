"""
Read views for moderators.

Both views return the ids of every user they reference so the caller can
load those users with one batched query (`load_users`) instead of one
lookup per match.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from . import flags, ignores, matching, store
from .config import settings
from .db_models import FlaggedFingerprint, Fingerprint, User
from .errors import NotFound

@dataclass
class Dashboard:
    matches: List[matching.Match]
    flags: List[FlaggedFingerprint]
    flagged_summaries: Dict[str, matching.FlaggedSummary]
    involved_user_ids: Set[int] = field(default_factory=set)

@dataclass
class UserReport:
    user: User
    fingerprints: List[Fingerprint]
    shared_users_by_value: Dict[str, Set[int]]
    ignored_user_ids: Set[int]
    involved_user_ids: Set[int] = field(default_factory=set)

def dashboard(db: Session, limit: Optional[int] = None) -> Dashboard:
    if limit is None:
        limit = settings.dashboard_limit
    flag_rows = flags.all_flags(db)
    flagged = {f.value for f in flag_rows}

    matches = matching.top_recent_matches(db, limit, exclude_values=flagged)
    summaries = matching.flagged_summaries(db, flagged)

    involved: Set[int] = set()
    for m in matches:
        involved |= m.user_ids
    for s in summaries.values():
        involved |= s.user_ids
    return Dashboard(matches=matches, flags=flag_rows, flagged_summaries=summaries, involved_user_ids=involved)

def user_report(db: Session, user_id: int) -> UserReport:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound(f"user {user_id} not found")

    fps = store.fingerprints_for_user(db, user_id, exclude_values=flags.hidden_values(db))
    ignored = ignores.ignored_by(db, user_id)
    shared = matching.users_sharing_many(db, {f.value for f in fps}, excluding=user_id)
    # known-benign pairs are not reported
    shared = {v: uids - ignored for v, uids in shared.items()}

    involved = set(ignored)
    for uids in shared.values():
        involved |= uids
    return UserReport(
        user=user,
        fingerprints=fps,
        shared_users_by_value=shared,
        ignored_user_ids=ignored,
        involved_user_ids=involved,
    )

def load_users(db: Session, user_ids: Iterable[int]) -> List[User]:
    ids = set(user_ids)
    if not ids:
        return []
    return db.query(User).filter(User.id.in_(ids)).order_by(User.id).all()
