# backend/api.py
"""
HTTP API for profile management, CV generation, ATS scoring, history and
PDF export.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ats import local_ats_report
from config import get_settings
from db import init_db
from dependencies import (
    get_ats_scorer,
    get_current_user_id,
    get_cv_generator,
    get_cv_library,
    get_profile_store,
    get_storage,
)
from models import CvRecord
from schemas import (
    AtsScoreResponse,
    CvOut,
    CvSummary,
    ExportReq,
    ExportResp,
    GenerateReq,
    GenerateResp,
    ProfileIn,
    ProfileOut,
    ScoreReq,
    StatsResp,
)
from services.ats_scorer import AtsScorer
from services.cv_generator import CvGenerator, validate_job_description
from services.cv_library import CvLibrary
from services.errors import CvServiceError
from services.object_storage import LocalObjectStorage
from services.stores import ProfileStore, profile_to_payload

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield


# ---------- FastAPI & CORS ----------
app = FastAPI(title="SmartApply API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CvServiceError)
async def handle_service_error(request: Request, exc: CvServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------- Helpers ----------
def to_cv_out(record: CvRecord) -> CvOut:
    return CvOut(
        id=record.id,
        jobDescription=record.job_description,
        cacheKey=record.cache_key,
        generatedContent=record.generated_content,
        atsScore=record.ats_score,
        template=record.template,
        language=record.language,
        createdAt=record.created_at,
    )


def to_cv_summary(record: CvRecord) -> CvSummary:
    info = (record.generated_content or {}).get("personalInfo") or {}
    excerpt = record.job_description[:160]
    if len(record.job_description) > 160:
        excerpt += "..."
    return CvSummary(
        id=record.id,
        jobTitle=info.get("jobTitle"),
        jobExcerpt=excerpt,
        atsScore=record.ats_score,
        template=record.template,
        createdAt=record.created_at,
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


# ---------- Profile ----------
@app.get("/api/profile", response_model=Optional[ProfileOut])
async def read_profile(
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileStore = Depends(get_profile_store),
):
    profile = await profiles.get_by_user(user_id)
    if profile is None:
        return None
    return ProfileOut.model_validate(profile_to_payload(profile))


@app.put("/api/profile", response_model=ProfileOut)
async def save_profile(
    req: ProfileIn,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileStore = Depends(get_profile_store),
):
    profile = await profiles.upsert(user_id, req.model_dump())
    return ProfileOut.model_validate(profile_to_payload(profile))


# ---------- CV generation & scoring ----------
@app.post("/api/cv/generate", response_model=GenerateResp)
async def generate_cv(
    req: GenerateReq,
    user_id: str = Depends(get_current_user_id),
    generator: CvGenerator = Depends(get_cv_generator),
):
    logger.info(f"REQ /api/cv/generate: user={user_id} language={req.language} template={req.template}")
    result = await generator.generate(
        user_id,
        req.jobDescription,
        language=req.language,
        template=req.template,
    )
    return GenerateResp(
        cv=result.content,
        cvId=result.cv_id,
        fromCache=result.from_cache,
        atsScore=result.ats_score,
    )


@app.post("/api/cv/score", response_model=AtsScoreResponse)
async def score_cv(
    req: ScoreReq,
    user_id: str = Depends(get_current_user_id),
    scorer: AtsScorer = Depends(get_ats_scorer),
):
    validate_job_description(req.jobDescription)
    return await scorer.score(req.cvContent, req.jobDescription)


@app.post("/api/cv/keywords", response_model=AtsScoreResponse)
def keyword_report(
    req: ScoreReq,
    user_id: str = Depends(get_current_user_id),
):
    validate_job_description(req.jobDescription)
    return local_ats_report(req.cvContent, req.jobDescription, req.language)


# ---------- History ----------
@app.get("/api/cv", response_model=List[CvSummary])
async def list_cvs(
    limit: int = Query(default=20, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    library: CvLibrary = Depends(get_cv_library),
):
    return [to_cv_summary(r) for r in await library.history(user_id, limit)]


@app.get("/api/cv/stats", response_model=StatsResp)
async def cv_stats(
    user_id: str = Depends(get_current_user_id),
    library: CvLibrary = Depends(get_cv_library),
):
    stats = await library.stats(user_id)
    return StatsResp(
        totalCvs=stats["total"],
        averageScore=stats["average_score"],
        lastGeneratedAt=stats["last_created_at"],
    )


@app.get("/api/cv/{cv_id}", response_model=CvOut)
async def read_cv(
    cv_id: str,
    user_id: str = Depends(get_current_user_id),
    library: CvLibrary = Depends(get_cv_library),
):
    return to_cv_out(await library.get(user_id, cv_id))


@app.delete("/api/cv/{cv_id}")
async def delete_cv(
    cv_id: str,
    user_id: str = Depends(get_current_user_id),
    library: CvLibrary = Depends(get_cv_library),
) -> Dict[str, Any]:
    await library.delete(user_id, cv_id)
    return {"success": True}


# ---------- Export ----------
@app.post("/api/cv/export", response_model=ExportResp)
async def export_cv(
    req: ExportReq,
    user_id: str = Depends(get_current_user_id),
    library: CvLibrary = Depends(get_cv_library),
):
    exported = await library.export(user_id, req.cvId, req.template, req.language)
    return ExportResp(url=exported["url"], path=exported["path"], expiresIn=exported["expires_in"])


@app.get("/api/files/download")
async def download_file(
    token: str = Query(...),
    storage: LocalObjectStorage = Depends(get_storage),
):
    path = storage.verify_signed_token(token)
    data = await storage.read(path)
    filename = path.rsplit("/", 1)[-1]
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
