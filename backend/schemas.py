# backend/schemas.py
"""
Request/response schemas.

Field names follow the JSON shapes exchanged with the frontend and with the
generation service, hence camelCase.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

TemplateName = Literal["classic", "modern", "minimalist"]
LanguageCode = Literal["es", "en"]


# ---------- Generated CV (generation service output) ----------
class PersonalInfo(BaseModel):
    fullName: Optional[str] = None
    jobTitle: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None


class CvExperience(BaseModel):
    company: str
    position: str
    startDate: str
    endDate: str = ""
    description: str = ""


class CvEducation(BaseModel):
    institution: str
    degree: str
    startDate: str = ""
    endDate: str = ""


class ComplementaryEducation(BaseModel):
    institution: str
    program: str
    year: str = ""


class LanguageItem(BaseModel):
    name: str
    level: str


class GeneratedCvContent(BaseModel):
    personalInfo: Optional[PersonalInfo] = None
    summary: str
    experience: List[CvExperience]
    education: List[CvEducation]
    technicalSkills: List[str]
    softSkills: List[str]
    complementaryEducation: Optional[List[ComplementaryEducation]] = None
    languages: List[LanguageItem]
    certifications: Optional[List[str]] = None


class AtsScoreResponse(BaseModel):
    score: int = Field(ge=0, le=100)
    matchedKeywords: List[str] = []
    missingKeywords: List[str] = []
    suggestions: List[str] = []


# ---------- Profile ----------
class ExperienceIn(BaseModel):
    company: str = Field(min_length=1)
    position: str = Field(min_length=1)
    startDate: str = Field(min_length=1)
    endDate: Optional[str] = None
    isCurrent: bool = False
    city: Optional[str] = None
    description: str = Field(min_length=1)

    @model_validator(mode="after")
    def check_end_date(self):
        if self.isCurrent and self.endDate:
            raise ValueError("endDate must be empty when isCurrent is set")
        if not self.isCurrent and not self.endDate:
            raise ValueError("endDate is required unless isCurrent is set")
        return self


class EducationIn(BaseModel):
    institution: str = Field(min_length=1)
    degree: str = Field(min_length=1)
    startDate: str = Field(min_length=1)
    endDate: Optional[str] = None
    isOngoing: bool = False
    city: Optional[str] = None
    status: Optional[Literal["finished", "ongoing", "incomplete"]] = None


class ProfileIn(BaseModel):
    fullName: Optional[str] = None
    jobTitle: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None
    summary: Optional[str] = Field(default=None, max_length=2000)

    experience: List[ExperienceIn] = []
    education: List[EducationIn] = []
    technicalSkills: List[str] = []
    softSkills: List[str] = []
    languages: List[LanguageItem] = []
    certifications: List[str] = []
    complementaryEducation: List[ComplementaryEducation] = []


class ProfileOut(ProfileIn):
    id: str
    createdAt: datetime
    updatedAt: datetime


# ---------- CV endpoints ----------
class GenerateReq(BaseModel):
    # Length is checked by the generator so the rule lives in one place
    jobDescription: str
    template: TemplateName = "classic"
    language: LanguageCode = "es"


class GenerateResp(BaseModel):
    cv: Dict[str, Any]
    cvId: str
    fromCache: bool
    atsScore: Optional[int] = None


class ScoreReq(BaseModel):
    # May be a manually edited CV, so only loosely typed
    cvContent: Dict[str, Any]
    jobDescription: str
    # Language of the local keyword suggestions
    language: LanguageCode = "es"


class CvOut(BaseModel):
    id: str
    jobDescription: str
    cacheKey: str
    generatedContent: Dict[str, Any]
    atsScore: int
    template: str
    language: str
    createdAt: datetime


class CvSummary(BaseModel):
    id: str
    jobTitle: Optional[str] = None
    jobExcerpt: str
    atsScore: int
    template: str
    createdAt: datetime


class StatsResp(BaseModel):
    totalCvs: int
    averageScore: int
    lastGeneratedAt: Optional[datetime] = None


class ExportReq(BaseModel):
    cvId: str
    template: TemplateName = "classic"
    language: LanguageCode = "es"


class ExportResp(BaseModel):
    url: str
    path: str
    expiresIn: int
