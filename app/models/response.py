# models/response.py
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from app.models.models import Skill
from app.models.schemas import SentimentModel


class Pagination(BaseModel):
    current: int
    pages: int
    total: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(current=page, pages=pages, total=total)


class JobRecommendation(BaseModel):
    job: Dict[str, Any]
    score: int
    reasons: List[str]


class UserRecommendation(BaseModel):
    user: Dict[str, Any]
    score: int
    reasons: List[str]


class SkillsResponse(BaseModel):
    success: bool = True
    skills: List[Skill]
    extracted_text: Optional[str] = None


class JobRecommendationsResponse(BaseModel):
    success: bool = True
    recommendations: List[JobRecommendation]
    total_jobs_analyzed: int


class UserRecommendationsResponse(BaseModel):
    success: bool = True
    recommendations: List[UserRecommendation]


class SentimentResponse(BaseModel):
    success: bool = True
    sentiment: SentimentModel


class TagsResponse(BaseModel):
    success: bool = True
    tags: List[str]
