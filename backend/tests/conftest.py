"""
Pytest configuration and shared fixtures for all tests.

This file is automatically loaded by pytest before running tests.
It points the app at an in-memory SQLite database and a temporary storage
directory, so no test needs a real database, bucket or API key.
"""

import os
import sys
import tempfile

# Add backend directory to path for imports FIRST
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Tests always run against throwaway resources, whatever .env says
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="smartapply-tests-")
os.environ.setdefault("OPENAI_API_KEY", "test-api-key-for-testing")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key-for-signing-tokens")

import pytest
from unittest.mock import AsyncMock, MagicMock

from db import build_engine, init_db
from services.object_storage import LocalObjectStorage
from services.stores import CvStore, ProfileStore

TEST_SECRET = "test-secret-key-for-signing-tokens"


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory database with all tables created."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def profile_store(engine):
    return ProfileStore(engine)


@pytest.fixture
def cv_store(engine):
    return CvStore(engine)


# ============================================================================
# STORAGE
# ============================================================================

@pytest.fixture
def storage(tmp_path):
    """Bucket in a per-test temporary directory."""
    return LocalObjectStorage(
        storage_dir=str(tmp_path),
        bucket="cvs",
        secret_key=TEST_SECRET,
        algorithm="HS256",
        public_base_url="http://testserver",
    )


# ============================================================================
# GENERATION SERVICE
# ============================================================================

@pytest.fixture
def mock_generation_client():
    """
    Stand-in for GenerationClient: `call` is an AsyncMock whose
    return_value / side_effect each test sets.
    """
    client = MagicMock()
    client.call = AsyncMock()
    return client


# ============================================================================
# SAMPLE DATA
# ============================================================================

@pytest.fixture
def sample_profile_data():
    """A complete profile document as sent by the frontend (camelCase)."""
    return {
        "fullName": "Laura Gómez",
        "jobTitle": "Backend Developer",
        "phone": "+57 300 123 4567",
        "email": "laura@example.com",
        "city": "Bogotá",
        "linkedin": "linkedin.com/in/laura",
        "portfolio": "laura.dev",
        "summary": "Backend developer with 5 years building APIs in Python.",
        "experience": [
            {
                "company": "Acme",
                "position": "Backend Developer",
                "startDate": "Jan 2021",
                "endDate": None,
                "isCurrent": True,
                "city": "Bogotá",
                "description": "Built REST APIs with FastAPI and PostgreSQL.",
            },
            {
                "company": "Globex",
                "position": "Junior Developer",
                "startDate": "Feb 2019",
                "endDate": "Dec 2020",
                "isCurrent": False,
                "city": None,
                "description": "Maintained Django services and Celery workers.",
            },
        ],
        "education": [
            {
                "institution": "Universidad Nacional",
                "degree": "Systems Engineering",
                "startDate": "2014",
                "endDate": "2019",
                "isOngoing": False,
                "city": "Bogotá",
                "status": "finished",
            }
        ],
        "technicalSkills": ["Python", "FastAPI", "PostgreSQL", "Docker"],
        "softSkills": ["Communication", "Teamwork"],
        "languages": [{"name": "Spanish", "level": "Native"}, {"name": "English", "level": "C1"}],
        "certifications": ["AWS Cloud Practitioner"],
        "complementaryEducation": [
            {"institution": "Platzi", "program": "Docker Course", "year": "2022"}
        ],
    }


@pytest.fixture
def sample_cv_content():
    """A generated CV document as returned by the generation service."""
    return {
        "personalInfo": {
            "fullName": "Laura Gómez",
            "jobTitle": "Backend Developer",
            "phone": "+57 300 123 4567",
            "email": "laura@example.com",
            "city": "Bogotá",
            "linkedin": "linkedin.com/in/laura",
            "portfolio": "laura.dev",
        },
        "summary": "Backend developer specialized in Python, FastAPI and PostgreSQL.",
        "experience": [
            {
                "company": "Acme",
                "position": "Backend Developer",
                "startDate": "Jan 2021",
                "endDate": "",
                "description": "Built REST APIs with FastAPI and PostgreSQL on Docker.",
            }
        ],
        "education": [
            {
                "institution": "Universidad Nacional",
                "degree": "Systems Engineering",
                "startDate": "2014",
                "endDate": "2019",
            }
        ],
        "technicalSkills": ["Python", "FastAPI", "PostgreSQL", "Docker"],
        "softSkills": ["Communication", "Teamwork"],
        "complementaryEducation": [
            {"institution": "Platzi", "program": "Docker Course", "year": "2022"}
        ],
        "languages": [{"name": "Spanish", "level": "Native"}],
        "certifications": ["AWS Cloud Practitioner"],
    }


@pytest.fixture
def sample_job_description():
    """A vacancy text comfortably above the minimum length."""
    return (
        "We are hiring a Senior Python Developer with strong experience in FastAPI, "
        "PostgreSQL and Docker. Kubernetes and Terraform knowledge is a plus."
    )
