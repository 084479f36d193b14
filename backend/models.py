# models.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


def _new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(SQLModel, table=True):
    """
    The user's professional background, one row per user.

    Saved through a full-document replace (upsert); list sections keep
    the order the user gave them.
    """
    __tablename__ = "profiles"

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str = Field(index=True, unique=True)

    full_name: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None
    summary: Optional[str] = None

    experience: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    education: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    technical_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    soft_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    languages: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    certifications: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    complementary_education: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


class CvRecord(SQLModel, table=True):
    """
    One generated CV.

    Rows are append-only. `cache_key` is a lookup key, not a unique
    constraint: several rows may share it and reads take the newest.
    """
    __tablename__ = "cvs"

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)

    job_description: str
    cache_key: str = Field(index=True)
    template: str = Field(default="classic")
    language: str = Field(default="es")
    ats_score: int = Field(default=0)

    # Stored as returned by the generation service (camelCase keys)
    generated_content: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
