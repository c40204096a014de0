# fpwatch/tests/conftest.py
from datetime import datetime, timedelta
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fpwatch.db_models import Base, User

T0 = datetime(2024, 1, 1, 12, 0, 0)

def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)

@pytest.fixture
def db():
    # one shared in-memory connection so the app's threadpool sees the same data
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()

@pytest.fixture
def make_user(db):
    def _make(username: str) -> User:
        u = User(username=username)
        db.add(u)
        db.commit()
        db.refresh(u)
        return u
    return _make

@pytest.fixture
def users(make_user):
    return [make_user(name) for name in ("alice", "bob", "carol")]

@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from fpwatch.app import app
    from fpwatch.db import get_db

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
