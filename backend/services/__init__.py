# backend/services/__init__.py
"""
Services Package for SmartApply

This package contains the backend services behind the CV endpoints:

Generation:
    - generation_client: Chat completion calls with retry and JSON fence cleanup
    - cv_generator: Cache-keyed CV generation from a profile and a job description
    - ats_scorer: Model-based ATS scoring of a CV against a job description

Persistence:
    - stores: Profile and CV record access
    - object_storage: Private bucket for exported PDFs with signed download URLs

Library:
    - pdf_renderer: ATS-friendly PDF rendering of a generated CV
    - cv_library: History, stats, export and deletion of stored CVs
"""

from .errors import (
    CvServiceError,
    InvalidJobDescriptionError,
    ProfileIncompleteError,
    CvNotFoundError,
    GenerationServiceError,
    MalformedResponseError,
    StorageError,
    ObjectNotFoundError,
    InvalidSignedUrlError
)
from .outcome import SoftResult

# Generation
from .generation_client import (
    GenerationClient,
    clean_json,
    get_generation_client,
    reset_generation_client
)
from .cv_generator import (
    CvGenerator,
    GenerationResult,
    generate_cache_key,
    validate_job_description
)
from .ats_scorer import AtsScorer, parse_ats_response

# Persistence
from .stores import ProfileStore, CvStore, profile_to_payload
from .object_storage import (
    LocalObjectStorage,
    build_object_path,
    get_object_storage,
    reset_object_storage
)

# Library
from .pdf_renderer import render_cv_pdf
from .cv_library import CvLibrary

__all__ = [
    # Errors
    "CvServiceError",
    "InvalidJobDescriptionError",
    "ProfileIncompleteError",
    "CvNotFoundError",
    "GenerationServiceError",
    "MalformedResponseError",
    "StorageError",
    "ObjectNotFoundError",
    "InvalidSignedUrlError",
    "SoftResult",
    # Generation
    "GenerationClient",
    "clean_json",
    "get_generation_client",
    "reset_generation_client",
    "CvGenerator",
    "GenerationResult",
    "generate_cache_key",
    "validate_job_description",
    "AtsScorer",
    "parse_ats_response",
    # Persistence
    "ProfileStore",
    "CvStore",
    "profile_to_payload",
    "LocalObjectStorage",
    "build_object_path",
    "get_object_storage",
    "reset_object_storage",
    # Library
    "render_cv_pdf",
    "CvLibrary",
]
