# backend/services/stores.py
"""
Persistence for profiles and generated CVs.

Both stores share one SQLAlchemy engine. Public methods are coroutines; the
blocking session work runs in a worker thread so request handlers never
stall the event loop. Nothing here retries.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from models import CvRecord, UserProfile, utcnow

logger = logging.getLogger(__name__)

# API field name -> column name
PROFILE_FIELDS = {
    "fullName": "full_name",
    "jobTitle": "job_title",
    "phone": "phone",
    "email": "email",
    "city": "city",
    "linkedin": "linkedin",
    "portfolio": "portfolio",
    "summary": "summary",
    "experience": "experience",
    "education": "education",
    "technicalSkills": "technical_skills",
    "softSkills": "soft_skills",
    "languages": "languages",
    "certifications": "certifications",
    "complementaryEducation": "complementary_education",
}

LIST_COLUMNS = {
    "experience", "education", "technical_skills", "soft_skills",
    "languages", "certifications", "complementary_education",
}


def profile_to_payload(profile: UserProfile) -> Dict[str, Any]:
    """Profile as the camelCase document shown to users and sent in prompts."""
    payload = {api: getattr(profile, column) for api, column in PROFILE_FIELDS.items()}
    payload["id"] = profile.id
    payload["createdAt"] = profile.created_at
    payload["updatedAt"] = profile.updated_at
    return payload


class ProfileStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def _get_by_user(self, user_id: str) -> Optional[UserProfile]:
        with Session(self.engine, expire_on_commit=False) as session:
            return session.exec(
                select(UserProfile).where(UserProfile.user_id == user_id)
            ).first()

    def _upsert(self, user_id: str, data: Dict[str, Any]) -> UserProfile:
        with Session(self.engine, expire_on_commit=False) as session:
            profile = session.exec(
                select(UserProfile).where(UserProfile.user_id == user_id)
            ).first()
            if profile is None:
                profile = UserProfile(user_id=user_id)

            # Full-document replace: fields missing from data are cleared
            for api_name, column in PROFILE_FIELDS.items():
                setattr(profile, column, data.get(api_name, [] if column in LIST_COLUMNS else None))
            profile.updated_at = utcnow()

            session.add(profile)
            session.commit()
            session.refresh(profile)
            return profile

    async def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        return await asyncio.to_thread(self._get_by_user, user_id)

    async def upsert(self, user_id: str, data: Dict[str, Any]) -> UserProfile:
        """
        Create or fully replace the user's profile.

        Args:
            user_id: owner
            data: camelCase profile document (see schemas.ProfileIn)
        """
        profile = await asyncio.to_thread(self._upsert, user_id, data)
        logger.info(f"Profile saved for user {user_id}")
        return profile


class CvStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def _add(self, record: CvRecord) -> CvRecord:
        with Session(self.engine, expire_on_commit=False) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def _find_latest_by_cache_key(self, user_id: str, cache_key: str) -> Optional[CvRecord]:
        with Session(self.engine, expire_on_commit=False) as session:
            return session.exec(
                select(CvRecord)
                .where(CvRecord.user_id == user_id, CvRecord.cache_key == cache_key)
                .order_by(CvRecord.created_at.desc())
                .limit(1)
            ).first()

    def _get(self, user_id: str, cv_id: str) -> Optional[CvRecord]:
        with Session(self.engine, expire_on_commit=False) as session:
            return session.exec(
                select(CvRecord).where(CvRecord.id == cv_id, CvRecord.user_id == user_id)
            ).first()

    def _list_for_user(self, user_id: str, limit: int) -> List[CvRecord]:
        with Session(self.engine, expire_on_commit=False) as session:
            return list(session.exec(
                select(CvRecord)
                .where(CvRecord.user_id == user_id)
                .order_by(CvRecord.created_at.desc())
                .limit(limit)
            ).all())

    def _stats_for_user(self, user_id: str) -> Dict[str, Any]:
        with Session(self.engine) as session:
            total, average, last = session.exec(
                select(
                    func.count(CvRecord.id),
                    func.avg(CvRecord.ats_score),
                    func.max(CvRecord.created_at),
                ).where(CvRecord.user_id == user_id)
            ).one()
        return {
            "total": int(total or 0),
            "average_score": int(round(average)) if average is not None else 0,
            "last_created_at": last,
        }

    def _count_for_user(self, user_id: str) -> int:
        with Session(self.engine) as session:
            return session.exec(
                select(func.count(CvRecord.id)).where(CvRecord.user_id == user_id)
            ).one()

    def _delete(self, user_id: str, cv_id: str) -> bool:
        with Session(self.engine) as session:
            record = session.exec(
                select(CvRecord).where(CvRecord.id == cv_id, CvRecord.user_id == user_id)
            ).first()
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True

    async def add(self, record: CvRecord) -> CvRecord:
        """Append one CV record."""
        return await asyncio.to_thread(self._add, record)

    async def find_latest_by_cache_key(self, user_id: str, cache_key: str) -> Optional[CvRecord]:
        """Most recent record of this user with this cache key, if any."""
        return await asyncio.to_thread(self._find_latest_by_cache_key, user_id, cache_key)

    async def get(self, user_id: str, cv_id: str) -> Optional[CvRecord]:
        return await asyncio.to_thread(self._get, user_id, cv_id)

    async def list_for_user(self, user_id: str, limit: int = 20) -> List[CvRecord]:
        return await asyncio.to_thread(self._list_for_user, user_id, limit)

    async def count_for_user(self, user_id: str) -> int:
        return await asyncio.to_thread(self._count_for_user, user_id)

    async def stats_for_user(self, user_id: str) -> Dict[str, Any]:
        """Count, rounded average ATS score and newest creation time."""
        return await asyncio.to_thread(self._stats_for_user, user_id)

    async def delete(self, user_id: str, cv_id: str) -> bool:
        """Delete a record owned by the user. Returns False if there was none."""
        return await asyncio.to_thread(self._delete, user_id, cv_id)

