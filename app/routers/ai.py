import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile

from app.helpers.parsing import MAX_RESUME_BYTES, extract_resume_text, resume_kind
from app.models.models import UserProfile
from app.models.payloads import ContentPayload, TagsPayload, TextPayload, UpdateSkillsPayload
from app.models.response import (
    JobRecommendationsResponse, SentimentResponse, SkillsResponse, TagsResponse, UserRecommendationsResponse
)
from app.models.schemas import job_view, profile_completeness, user_view
from app.services.ai_service import AIService, get_ai_service
from app.services.db import jobs_coll, users_coll
from app.services.matching import rank_connections
from app.utils.auth import get_current_user
from app.utils.exceptions import ExceptionContext, ProcessingError
from app.utils.logging_config import get_logger, log_api_call, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

MIN_TEXT_LENGTH = 20
MIN_RESUME_LENGTH = 50
RESUME_PREVIEW_LENGTH = 500
MIN_SENTIMENT_LENGTH = 5
MIN_TAGS_LENGTH = 10
CANDIDATE_POOL_SIZE = 50


async def _run(fn, *args):
    # model calls use blocking requests; keep them off the event loop
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


@router.post("/extract-skills-text", response_model=SkillsResponse)
@log_api_call("extract_skills_text")
async def extract_skills_from_text(
    payload: TextPayload,
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    """Extract skills from free text such as a bio"""
    if len(payload.text.strip()) < MIN_TEXT_LENGTH:
        raise HTTPException(status_code=400, detail=f"Text content must be at least {MIN_TEXT_LENGTH} characters long")

    skills = await _run(ai.extract_skills, payload.text)
    return SkillsResponse(skills=skills)


@router.post("/extract-skills-resume", response_model=SkillsResponse)
@log_api_call("extract_skills_resume")
async def extract_skills_from_resume(
    request: Request,
    resume: UploadFile = File(...),
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    """Extract skills from an uploaded PDF, DOCX or TXT resume"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    kind = resume_kind(resume.filename, resume.content_type)
    if kind is None:
        raise HTTPException(status_code=400, detail="Invalid file type. Allowed types: PDF, DOCX, TXT")

    data = await resume.read()
    if len(data) > MAX_RESUME_BYTES:
        raise HTTPException(status_code=400, detail="Resume file must be 10MB or smaller")

    with PerformanceMonitor("parse_resume", logger):
        try:
            text = await _run(extract_resume_text, data, kind)
        except Exception as e:
            logger.error(f"Failed to parse resume {resume.filename}: {e}", extra={"request_id": request_id})
            raise ProcessingError(
                "Failed to process resume file",
                document_name=resume.filename,
                document_type=kind,
                cause=e
            ) from e

    if len(text.strip()) < MIN_RESUME_LENGTH:
        raise HTTPException(status_code=400, detail="Resume content is too short or could not be extracted")

    skills = await _run(ai.extract_skills, text)
    preview = text[:RESUME_PREVIEW_LENGTH] + ("..." if len(text) > RESUME_PREVIEW_LENGTH else "")
    return SkillsResponse(skills=skills, extracted_text=preview)


@router.post("/update-user-skills")
async def update_user_skills(
    payload: UpdateSkillsPayload,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Merge skills into the profile (case-insensitive de-dup) or replace them"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    incoming = [s.dict() for s in payload.skills]

    if payload.merge_with_existing:
        existing = list(current_user.get("skills") or [])
        seen = {s["name"].lower() for s in existing if s.get("name")}
        skills = existing
        for skill in incoming:
            if skill["name"].lower() not in seen:
                seen.add(skill["name"].lower())
                skills.append(skill)
    else:
        skills = incoming

    with ExceptionContext("update_user_skills", logger, request_id=request_id):
        updated = {**current_user, "skills": skills}
        await users_coll.update_one(
            {"user_id": current_user["user_id"]},
            {"$set": {
                "skills": skills,
                "profile_completeness": profile_completeness(updated),
                "updated_at": datetime.utcnow()
            }}
        )

    logger.info(f"Updated skills for user {current_user['user_id']} ({len(skills)} total)")
    return {"success": True, "message": "User skills updated successfully", "skills": skills}


@router.get("/job-recommendations", response_model=JobRecommendationsResponse)
@log_api_call("job_recommendations")
async def job_recommendations(
    request: Request,
    limit: int = Query(10, ge=0, le=50),
    category: Optional[str] = None,
    location: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    """Recommend active jobs for the current user"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    user = UserProfile.from_document(current_user)
    if not user.skills:
        raise HTTPException(status_code=400, detail="Please add skills to your profile to get job recommendations")

    now = datetime.utcnow()
    query: Dict[str, Any] = {
        "status": "active",
        "$or": [{"expires_at": {"$gte": now}}, {"expires_at": {"$exists": False}}],
    }
    if category:
        query["category"] = category
    if location:
        query["$and"] = [{"$or": [
            {"location.city": {"$regex": location, "$options": "i"}},
            {"location.country": {"$regex": location, "$options": "i"}},
            {"work_location": "Remote"},
        ]}]

    with ExceptionContext("fetch_recommendation_jobs", logger, request_id=request_id):
        cursor = jobs_coll.find(query).sort("created_at", -1).limit(CANDIDATE_POOL_SIZE)
        jobs = [job_view(j) for j in await cursor.to_list(length=CANDIDATE_POOL_SIZE)]

    if not jobs:
        return JobRecommendationsResponse(recommendations=[], total_jobs_analyzed=0)

    recommendations = await _run(ai.recommend_jobs, user, jobs, limit)
    return JobRecommendationsResponse(recommendations=recommendations, total_jobs_analyzed=len(jobs))


@router.get("/user-recommendations", response_model=UserRecommendationsResponse)
@log_api_call("user_recommendations")
async def user_recommendations(
    request: Request,
    limit: int = Query(10, ge=0, le=50),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Suggest people to connect with, skipping anyone already linked in either direction"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    excluded = [c.get("user_id") for c in current_user.get("connections") or []]
    excluded.append(current_user["user_id"])

    with ExceptionContext("fetch_connection_candidates", logger, request_id=request_id):
        cursor = users_coll.find({"user_id": {"$nin": excluded}, "is_active": True}).limit(CANDIDATE_POOL_SIZE)
        candidates = [user_view(u, full=False) for u in await cursor.to_list(length=CANDIDATE_POOL_SIZE)]

    recommendations = rank_connections(
        UserProfile.from_document(current_user), candidates, limit, exclude_ids=excluded
    )
    return UserRecommendationsResponse(recommendations=recommendations)


@router.post("/analyze-sentiment", response_model=SentimentResponse)
async def analyze_sentiment(
    payload: ContentPayload,
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    if len(payload.content.strip()) < MIN_SENTIMENT_LENGTH:
        raise HTTPException(status_code=400, detail=f"Content must be at least {MIN_SENTIMENT_LENGTH} characters long")

    sentiment = await _run(ai.analyze_sentiment, payload.content)
    return SentimentResponse(sentiment=sentiment)


@router.post("/generate-tags", response_model=TagsResponse)
async def generate_tags(
    payload: TagsPayload,
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    if len(payload.content.strip()) < MIN_TAGS_LENGTH:
        raise HTTPException(status_code=400, detail=f"Content must be at least {MIN_TAGS_LENGTH} characters long")

    tags = await _run(ai.generate_post_tags, payload.content, payload.category)
    return TagsResponse(tags=tags)
