"""
Test suite for the HTTP API

This module drives the FastAPI app end to end with an in-memory database,
a temporary bucket and a mocked generation service to ensure:
- Every endpoint requires a valid Bearer token
- Domain errors map to the documented status codes
- Generation, caching, scoring, history, export and download work together

Run tests with: pytest backend/tests/test_api.py -v
"""

import pytest
import json
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, AsyncMock
from urllib.parse import urlparse
import sys
import os

# Add backend directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from api import app
from dependencies import (
    create_access_token,
    get_ats_scorer,
    get_cv_generator,
    get_cv_library,
    get_profile_store,
    get_storage,
)
from prompts.cv_prompts import CV_SYSTEM_PROMPT
from services.ats_scorer import AtsScorer
from services.cv_generator import CvGenerator
from services.cv_library import CvLibrary
from services.errors import GenerationServiceError


# ============================================================================
# FIXTURES - Reusable test setup components
# ============================================================================

@pytest.fixture
def score_payload():
    return {
        "score": 88,
        "matchedKeywords": ["python", "fastapi"],
        "missingKeywords": ["kubernetes"],
        "suggestions": [],
    }


@pytest.fixture
def fake_generation_client(sample_cv_content, score_payload):
    """
    Generation client answering CV prompts with the sample CV and every
    other prompt with an ATS score.
    """
    async def answer(system_prompt, user_prompt, max_tokens=4096):
        if system_prompt == CV_SYSTEM_PROMPT:
            return json.dumps(sample_cv_content)
        return json.dumps(score_payload)

    client = MagicMock()
    client.call = AsyncMock(side_effect=answer)
    return client


@pytest.fixture
def test_client(profile_store, cv_store, storage, fake_generation_client):
    """
    Creates a FastAPI TestClient whose services all point at the test
    database, bucket and generation client.
    """
    scorer = AtsScorer(fake_generation_client)
    generator = CvGenerator(profile_store, cv_store, fake_generation_client, scorer)
    library = CvLibrary(cv_store, storage)

    app.dependency_overrides[get_profile_store] = lambda: profile_store
    app.dependency_overrides[get_ats_scorer] = lambda: scorer
    app.dependency_overrides[get_cv_generator] = lambda: generator
    app.dependency_overrides[get_cv_library] = lambda: library
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def profile_saved(test_client, auth_headers, sample_profile_data):
    response = test_client.put("/api/profile", json=sample_profile_data, headers=auth_headers)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def generated_cv(test_client, auth_headers, profile_saved, sample_job_description):
    response = test_client.post(
        "/api/cv/generate",
        json={"jobDescription": sample_job_description, "template": "modern", "language": "en"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    return response.json()


# ============================================================================
# TEST CASES - Health & Auth
# ============================================================================

class TestAuth:
    """Tests for authentication on the API."""

    def test_health_is_public(self, test_client):
        """Test that the health check needs no token."""
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_missing_token_rejected(self, test_client):
        """Test that requests without a token get 401."""
        assert test_client.get("/api/profile").status_code == 401

    def test_invalid_token_rejected(self, test_client):
        """Test that a malformed token gets 401."""
        response = test_client.get("/api/cv", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_download_token_is_not_an_access_token(self, test_client, storage):
        """Test that a signed download token cannot authenticate API calls."""
        url = storage.create_signed_url("user-1/x.pdf")
        token = url.split("token=", 1)[1]
        response = test_client.get("/api/cv", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


# ============================================================================
# TEST CASES - Profile
# ============================================================================

class TestProfileEndpoints:
    """Tests for GET/PUT /api/profile."""

    def test_no_profile_yet(self, test_client, auth_headers):
        """Test that a new user has a null profile."""
        response = test_client.get("/api/profile", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() is None

    def test_save_and_read_profile(self, test_client, auth_headers, profile_saved):
        """Test that a saved profile is returned with its id and timestamps."""
        response = test_client.get("/api/profile", headers=auth_headers)
        body = response.json()

        assert body["id"] == profile_saved["id"]
        assert body["fullName"] == "Laura Gómez"
        assert body["experience"][0]["isCurrent"] is True
        assert "createdAt" in body and "updatedAt" in body

    def test_current_job_with_end_date_rejected(self, test_client, auth_headers, sample_profile_data):
        """Test that a current position may not have an end date."""
        sample_profile_data["experience"][0]["endDate"] = "Mar 2024"
        response = test_client.put("/api/profile", json=sample_profile_data, headers=auth_headers)
        assert response.status_code == 422

    def test_summary_too_long_rejected(self, test_client, auth_headers, sample_profile_data):
        """Test that the summary is capped at 2000 characters."""
        sample_profile_data["summary"] = "x" * 2001
        response = test_client.put("/api/profile", json=sample_profile_data, headers=auth_headers)
        assert response.status_code == 422


# ============================================================================
# TEST CASES - Generation & Scoring
# ============================================================================

class TestGenerationEndpoints:
    """Tests for /api/cv/generate, /api/cv/score and /api/cv/keywords."""

    def test_generate_then_cache(self, test_client, auth_headers, generated_cv,
                                 fake_generation_client, sample_job_description):
        """
        Test that the first request generates and scores, and the second
        identical one is answered from cache with the same CV.
        """
        assert generated_cv["fromCache"] is False
        assert generated_cv["atsScore"] == 88
        assert generated_cv["cv"]["personalInfo"]["fullName"] == "Laura Gómez"
        calls_after_first = fake_generation_client.call.await_count

        response = test_client.post(
            "/api/cv/generate",
            json={"jobDescription": sample_job_description},
            headers=auth_headers,
        )
        body = response.json()

        assert body["fromCache"] is True
        assert body["cvId"] == generated_cv["cvId"]
        assert body["cv"] == generated_cv["cv"]
        assert fake_generation_client.call.await_count == calls_after_first

    def test_generate_short_description(self, test_client, auth_headers, profile_saved, fake_generation_client):
        """Test that a 49-character description is a 400 and nothing is called."""
        response = test_client.post("/api/cv/generate", json={"jobDescription": "x" * 49}, headers=auth_headers)
        assert response.status_code == 400
        assert "between 50 and 5000" in response.json()["detail"]
        fake_generation_client.call.assert_not_awaited()

    def test_generate_without_profile(self, test_client, auth_headers, sample_job_description):
        """Test that generation requires a saved profile."""
        response = test_client.post(
            "/api/cv/generate", json={"jobDescription": sample_job_description}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Complete your profile before generating a CV"

    def test_generate_service_failure(self, test_client, auth_headers, profile_saved,
                                      fake_generation_client, sample_job_description):
        """Test that an exhausted generation service is a 502 and stores nothing."""
        fake_generation_client.call.side_effect = GenerationServiceError(
            "Generation service failed after 2 attempts: timeout"
        )

        response = test_client.post(
            "/api/cv/generate", json={"jobDescription": sample_job_description}, headers=auth_headers
        )

        assert response.status_code == 502
        assert test_client.get("/api/cv", headers=auth_headers).json() == []

    def test_generate_unknown_template(self, test_client, auth_headers, sample_job_description):
        """Test that template names outside the known set fail validation."""
        response = test_client.post(
            "/api/cv/generate",
            json={"jobDescription": sample_job_description, "template": "fancy"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_score_endpoint(self, test_client, auth_headers, sample_cv_content, sample_job_description):
        """Test that scoring an arbitrary CV returns the service's report."""
        response = test_client.post(
            "/api/cv/score",
            json={"cvContent": sample_cv_content, "jobDescription": sample_job_description},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["score"] == 88

    def test_score_malformed_response(self, test_client, auth_headers, fake_generation_client,
                                      sample_cv_content, sample_job_description):
        """Test that an unparsable scoring answer is a 502."""
        fake_generation_client.call.side_effect = None
        fake_generation_client.call.return_value = "no json here"

        response = test_client.post(
            "/api/cv/score",
            json={"cvContent": sample_cv_content, "jobDescription": sample_job_description},
            headers=auth_headers,
        )
        assert response.status_code == 502

    def test_keywords_endpoint(self, test_client, auth_headers, fake_generation_client, sample_job_description):
        """Test that the local keyword report needs no generation call."""
        response = test_client.post(
            "/api/cv/keywords",
            json={"cvContent": {"technicalSkills": ["Python", "FastAPI"]}, "jobDescription": sample_job_description},
            headers=auth_headers,
        )
        body = response.json()

        assert response.status_code == 200
        assert "python" in body["matchedKeywords"]
        assert "kubernetes" in body["missingKeywords"]
        assert len(body["suggestions"]) == 3
        fake_generation_client.call.assert_not_awaited()

    def test_keywords_suggestions_in_requested_language(self, test_client, auth_headers, sample_job_description):
        """Test that the local report writes its suggestions in the requested language."""
        payload = {"cvContent": {"summary": "Python"}, "jobDescription": sample_job_description}

        spanish = test_client.post("/api/cv/keywords", json=payload, headers=auth_headers).json()
        english = test_client.post(
            "/api/cv/keywords", json={**payload, "language": "en"}, headers=auth_headers
        ).json()

        assert spanish["suggestions"][0].startswith("Menciona ")
        assert english["suggestions"][0].startswith("Mention ")


# ============================================================================
# TEST CASES - History, Export & Download
# ============================================================================

class TestLibraryEndpoints:
    """Tests for history, stats, lookup, deletion, export and download."""

    def test_history_and_stats(self, test_client, auth_headers, generated_cv):
        """Test that a generated CV shows up in the history and the stats."""
        history = test_client.get("/api/cv", headers=auth_headers).json()
        assert len(history) == 1
        assert history[0]["id"] == generated_cv["cvId"]
        assert history[0]["jobTitle"] == "Backend Developer"
        assert history[0]["template"] == "modern"

        stats = test_client.get("/api/cv/stats", headers=auth_headers).json()
        assert stats["totalCvs"] == 1
        assert stats["averageScore"] == 88
        assert stats["lastGeneratedAt"] is not None

    def test_history_limit_validated(self, test_client, auth_headers):
        """Test that the history limit must be between 1 and 50."""
        assert test_client.get("/api/cv?limit=51", headers=auth_headers).status_code == 422

    def test_read_cv_scoped_to_owner(self, test_client, auth_headers, generated_cv):
        """Test that another user gets 404 for someone else's CV."""
        own = test_client.get(f"/api/cv/{generated_cv['cvId']}", headers=auth_headers)
        assert own.status_code == 200
        assert own.json()["language"] == "en"

        other = {"Authorization": f"Bearer {create_access_token('user-2')}"}
        response = test_client.get(f"/api/cv/{generated_cv['cvId']}", headers=other)
        assert response.status_code == 404
        assert response.json()["detail"] == "CV not found"

    def test_export_and_download(self, test_client, auth_headers, generated_cv):
        """Test that the signed URL returned by export downloads the PDF."""
        response = test_client.post(
            "/api/cv/export",
            json={"cvId": generated_cv["cvId"], "template": "classic", "language": "es"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        exported = response.json()
        assert exported["expiresIn"] == 3600
        assert exported["path"].endswith("_classic.pdf")

        url = urlparse(exported["url"])
        download = test_client.get(f"{url.path}?{url.query}")

        assert download.status_code == 200
        assert download.headers["content-type"] == "application/pdf"
        assert "attachment" in download.headers["content-disposition"]
        assert download.content.startswith(b"%PDF")

    def test_download_bad_token(self, test_client):
        """Test that a forged download token is a 401."""
        assert test_client.get("/api/files/download?token=forged").status_code == 401

    def test_export_missing_cv(self, test_client, auth_headers):
        """Test that exporting an unknown CV is a 404."""
        response = test_client.post("/api/cv/export", json={"cvId": "missing"}, headers=auth_headers)
        assert response.status_code == 404

    def test_delete(self, test_client, auth_headers, generated_cv):
        """Test that a deleted CV is gone and a second delete is a 404."""
        cv_id = generated_cv["cvId"]
        test_client.post("/api/cv/export", json={"cvId": cv_id}, headers=auth_headers)

        response = test_client.delete(f"/api/cv/{cv_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        assert test_client.get(f"/api/cv/{cv_id}", headers=auth_headers).status_code == 404
        assert test_client.delete(f"/api/cv/{cv_id}", headers=auth_headers).status_code == 404
