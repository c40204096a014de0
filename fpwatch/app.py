from __future__ import annotations
from typing import Optional
from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from .config import settings
from .db import get_db, engine
from .db_models import Base, User
from .errors import InvalidArgument, NotFound, require
from .logger import log_middleware, logger
from .schemas import (
    DashboardResponse,
    FingerprintOut,
    FlaggedOut,
    MatchOut,
    RecordRequest,
    UserOut,
    UserReportResponse,
)
from . import flags, ignores, reports, store

app = FastAPI(title="fpwatch")

# DB init (SQLite)
Base.metadata.create_all(bind=engine)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Logging
app.middleware("http")(log_middleware)

SUCCESS = {"success": "OK"}

@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc) or "invalid parameters"})

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc) or "not found"})

@app.exception_handler(OperationalError)
async def storage_unavailable_handler(request: Request, exc: OperationalError):
    logger.error("storage unavailable: %s", exc.orig)
    return JSONResponse(status_code=503, content={"detail": "storage unavailable"})

def _user_out(u: User) -> UserOut:
    return UserOut(id=u.id, username=u.username)

def _should_add(remove: Optional[str]) -> bool:
    return not (remove or "").strip()

@app.get("/healthz")
def healthz():
    return {"ok": True}

@app.get("/admin/fingerprints", response_model=DashboardResponse)
def dashboard(db: Session = Depends(get_db)):
    view = reports.dashboard(db)
    users = reports.load_users(db, view.involved_user_ids)

    matches = [
        MatchOut(value=m.value, name=m.name, data=m.data, updated_at=m.updated_at, user_ids=sorted(m.user_ids))
        for m in view.matches
    ]
    flagged = []
    for f in view.flags:
        summary = view.flagged_summaries.get(f.value)
        flagged.append(FlaggedOut(
            value=f.value,
            hidden=f.hidden,
            silenced=f.silenced,
            name=summary.name if summary else None,
            data=summary.data if summary else None,
            count=summary.count if summary else 0,
        ))
    return DashboardResponse(matches=matches, flagged=flagged, users=[_user_out(u) for u in users])

@app.get("/admin/fingerprints/users/{username}", response_model=UserReportResponse)
def user_report(username: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise HTTPException(status_code=404, detail="user not found")
    view = reports.user_report(db, user.id)
    users = reports.load_users(db, view.involved_user_ids)

    fingerprints = [
        FingerprintOut(
            id=f.id,
            name=f.name,
            value=f.value,
            data=f.data,
            created_at=f.created_at,
            updated_at=f.updated_at,
            user_ids=sorted(view.shared_users_by_value.get(f.value, ())),
        )
        for f in view.fingerprints
    ]
    return UserReportResponse(
        user=_user_out(view.user),
        ignored_ids=sorted(view.ignored_user_ids),
        fingerprints=fingerprints,
        users=[_user_out(u) for u in users],
    )

@app.api_route("/admin/fingerprints/flag", methods=["POST", "PUT"])
def flag(
    value: str = Form(""),
    type: str = Form(""),
    remove: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    require(value, "value")
    flags.set_flag(db, value, type, _should_add(remove))
    return SUCCESS

@app.api_route("/admin/fingerprints/ignore", methods=["POST", "PUT"])
def ignore(
    username: Optional[str] = Form(None),
    other_username: Optional[str] = Form(None),
    remove: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    usernames = [u for u in (username, other_username) if u]
    users = db.query(User).filter(User.username.in_(usernames)).all() if usernames else []
    if len(users) != 2:
        raise InvalidArgument("exactly two existing users are required")
    ignores.set_ignore(db, users[0].id, users[1].id, _should_add(remove))
    return SUCCESS

@app.post("/fingerprints")
def record_fingerprint(body: RecordRequest, db: Session = Depends(get_db)):
    # reject before the user is created
    require(body.username, "username")
    require(body.name, "fingerprint name")
    require(body.value, "fingerprint value")
    user = db.query(User).filter(User.username == body.username).first()
    if not user:
        user = User(username=body.username)
        db.add(user)
        db.commit()
        db.refresh(user)
    store.record(db, user.id, body.name, body.value, body.data)
    return SUCCESS
