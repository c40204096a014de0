from __future__ import annotations
from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(128), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    fingerprints = relationship("Fingerprint", back_populates="user", cascade="all, delete-orphan")

class Fingerprint(Base):
    __tablename__ = "fingerprints"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(64), nullable=False)  # algorithm, e.g. canvas|webgl|audio
    value = Column(String(255), nullable=False, index=True)
    data = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    user = relationship("User", back_populates="fingerprints")

    __table_args__ = (
        UniqueConstraint("user_id", "name", "value", name="uq_fingerprints_user_name_value"),
    )

class FlaggedFingerprint(Base):
    # row exists iff hidden or silenced
    __tablename__ = "flagged_fingerprints"
    id = Column(Integer, primary_key=True)
    value = Column(String(255), unique=True, nullable=False, index=True)
    hidden = Column(Boolean, default=False, nullable=False, index=True)
    silenced = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

class IgnoredUser(Base):
    # one row per direction; A<->B is stored as A->B and B->A
    __tablename__ = "ignored_users"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ignored_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "ignored_user_id", name="uq_ignored_users_pair"),
    )
