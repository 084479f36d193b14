# backend/dependencies.py
"""
FastAPI dependencies: the authenticated user and the shared services.

Services are built once per process on first use and handed to every
request; tests swap them through `app.dependency_overrides`.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException, status
from jose import JWTError, jwt

from config import get_settings
from db import get_engine
from services.ats_scorer import AtsScorer
from services.cv_generator import CvGenerator
from services.cv_library import CvLibrary
from services.generation_client import get_generation_client
from services.object_storage import LocalObjectStorage, get_object_storage
from services.stores import CvStore, ProfileStore

ACCESS_SCOPE = "access"


def create_access_token(user_id: str, expires_minutes: int = 60 * 24) -> str:
    """Issue a Bearer token for a user id (used by the auth gateway and in tests)."""
    settings = get_settings()
    claims = {
        "sub": user_id,
        "scope": ACCESS_SCOPE,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.app_secret_key, algorithm=settings.token_algorithm)


def get_current_user_id(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> str:
    """Parse the Bearer token from the Authorization header and return its subject."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not authorization or not authorization.lower().startswith("bearer "):
        raise credentials_exception
    token = authorization.split(" ", 1)[1].strip()

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.app_secret_key, algorithms=[settings.token_algorithm])
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id or payload.get("scope") != ACCESS_SCOPE:
        raise credentials_exception
    return user_id


_services = {}


def _shared(name: str, factory):
    if name not in _services:
        _services[name] = factory()
    return _services[name]


def reset_services():
    """Forget every shared service (useful for testing)."""
    _services.clear()


def get_profile_store() -> ProfileStore:
    return _shared("profiles", lambda: ProfileStore(get_engine()))


def get_cv_store() -> CvStore:
    return _shared("cvs", lambda: CvStore(get_engine()))


def get_storage() -> LocalObjectStorage:
    return get_object_storage()


def get_ats_scorer() -> AtsScorer:
    return _shared("scorer", lambda: AtsScorer(get_generation_client()))


def get_cv_generator() -> CvGenerator:
    return _shared("generator", lambda: CvGenerator(
        profiles=get_profile_store(),
        cvs=get_cv_store(),
        client=get_generation_client(),
        scorer=get_ats_scorer(),
    ))


def get_cv_library() -> CvLibrary:
    return _shared("library", lambda: CvLibrary(get_cv_store(), get_storage()))
