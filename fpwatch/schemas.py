from __future__ import annotations
from datetime import datetime
from typing import Any, List
from pydantic import BaseModel

class UserOut(BaseModel):
    id: int
    username: str

class MatchOut(BaseModel):
    value: str
    name: str
    data: Any = None
    updated_at: datetime
    user_ids: List[int]

class FlaggedOut(BaseModel):
    value: str
    hidden: bool
    silenced: bool
    name: str | None = None
    data: Any = None
    count: int = 0

class FingerprintOut(BaseModel):
    id: int
    name: str
    value: str
    data: Any = None
    created_at: datetime
    updated_at: datetime
    user_ids: List[int]

class DashboardResponse(BaseModel):
    matches: List[MatchOut]
    flagged: List[FlaggedOut]
    users: List[UserOut]

class UserReportResponse(BaseModel):
    user: UserOut
    ignored_ids: List[int]
    fingerprints: List[FingerprintOut]
    users: List[UserOut]

class RecordRequest(BaseModel):
    username: str
    name: str
    value: str
    data: Any = None
