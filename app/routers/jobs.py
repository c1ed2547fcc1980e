import re
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.models.models import UserProfile
from app.models.payloads import ApplicationUpdatePayload, ApplyPayload, JobPayload, JobUpdatePayload
from app.models.response import Pagination
from app.models.schemas import ApplicationModel, CompanyModel, JobModel, job_view
from app.services.db import jobs_coll
from app.services.matching import rank_jobs
from app.utils.auth import get_current_user
from app.utils.exceptions import ExceptionContext
from app.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

SORT_FIELDS = ("created_at", "updated_at", "title", "salary.min", "views")
RECOMMENDATION_POOL_SIZE = 50


def _regex(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


async def _get_job(job_id: str) -> Dict[str, Any]:
    job = await jobs_coll.find_one({"job_id": job_id})
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _require_owner(job: Dict[str, Any], user: Dict[str, Any], action: str):
    if job.get("employer_id") != user["user_id"]:
        raise HTTPException(status_code=403, detail=f"You can only {action} your own job postings")


@router.get("/")
async def list_jobs(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma separated skill names"),
    job_type: Optional[str] = None,
    work_location: Optional[str] = None,
    experience_level: Optional[str] = None,
    salary_min: Optional[float] = None,
    salary_max: Optional[float] = None,
    location: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$")
):
    """Paginated listing of active jobs"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    query: Dict[str, Any] = {"status": "active"}
    clauses = []

    if search:
        clauses.append({"$or": [
            {"title": _regex(search)}, {"description": _regex(search)}, {"company.name": _regex(search)}
        ]})
    if skills:
        names = [s.strip() for s in skills.split(",") if s.strip()]
        query["skills.name"] = {"$in": [re.compile(re.escape(s), re.IGNORECASE) for s in names]}
    if job_type:
        query["job_type"] = job_type
    if work_location:
        query["work_location"] = work_location
    if experience_level:
        query["experience_level"] = experience_level
    if salary_min is not None:
        query["salary.min"] = {"$gte": salary_min}
    if salary_max is not None:
        query["salary.max"] = {"$lte": salary_max}
    if location:
        clauses.append({"$or": [
            {"location.city": _regex(location)}, {"location.state": _regex(location)}, {"location.country": _regex(location)}
        ]})
    if clauses:
        query["$and"] = clauses

    if sort_by not in SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"sort_by must be one of {', '.join(SORT_FIELDS)}")

    with ExceptionContext("list_jobs", logger, request_id=request_id):
        cursor = jobs_coll.find(query).sort(sort_by, -1 if sort_order == "desc" else 1).skip((page - 1) * limit).limit(limit)
        jobs = await cursor.to_list(length=limit)
        total = await jobs_coll.count_documents(query)

    return {
        "success": True,
        "data": [job_view(j) for j in jobs],
        "pagination": Pagination.build(page, limit, total).dict(),
    }


@router.post("/", status_code=201)
async def create_job(payload: JobPayload, request: Request, current_user: Dict[str, Any] = Depends(get_current_user)):
    request_id = getattr(request.state, 'request_id', 'unknown')
    data = payload.dict(exclude_none=True)

    if "company" not in data:
        company_info = current_user.get("company_info") or {}
        if not company_info.get("name"):
            raise HTTPException(status_code=400, detail="Company name is required")
        data["company"] = CompanyModel(**{k: v for k, v in company_info.items() if k in CompanyModel.__fields__}).dict()

    job = JobModel(employer_id=current_user["user_id"], **data).dict()

    with ExceptionContext("create_job", logger, request_id=request_id):
        await jobs_coll.insert_one(job)

    logger.info(f"Job {job['job_id']} posted by {current_user['user_id']}", extra={"request_id": request_id})
    return {"success": True, "message": "Job posted successfully", "data": job_view(job)}


@router.get("/my/posted")
async def my_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    query: Dict[str, Any] = {"employer_id": current_user["user_id"]}
    if status:
        query["status"] = status

    cursor = jobs_coll.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
    jobs = await cursor.to_list(length=limit)
    total = await jobs_coll.count_documents(query)

    return {
        "success": True,
        "data": [job_view(j, include_applications=True) for j in jobs],
        "pagination": Pagination.build(page, limit, total).dict(),
    }


@router.get("/my/applications")
async def my_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """The caller's applications, each with a summary of its job"""
    user_id = current_user["user_id"]
    match: Dict[str, Any] = {"applicant_id": user_id}
    if status:
        match["status"] = status
    query = {"applications": {"$elemMatch": match}}

    cursor = jobs_coll.find(query).sort("applications.applied_at", -1).skip((page - 1) * limit).limit(limit)
    jobs = await cursor.to_list(length=limit)
    total = await jobs_coll.count_documents(query)

    applications = []
    for job in jobs:
        application = next(a for a in job.get("applications") or [] if a.get("applicant_id") == user_id)
        applications.append({
            **application,
            "job": {k: job.get(k) for k in ("job_id", "title", "company", "job_type", "work_location", "location", "status")},
        })

    return {"success": True, "data": applications, "pagination": Pagination.build(page, limit, total).dict()}


@router.get("/recommendations")
async def job_recommendations(
    limit: int = Query(10, ge=0, le=50),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Score active, unexpired jobs from other employers against the caller's profile"""
    now = datetime.utcnow()
    query = {
        "status": "active",
        "employer_id": {"$ne": current_user["user_id"]},
        "$or": [{"expires_at": {"$gte": now}}, {"expires_at": {"$exists": False}}],
    }

    cursor = jobs_coll.find(query).sort("created_at", -1).limit(RECOMMENDATION_POOL_SIZE)
    jobs = [job_view(j) for j in await cursor.to_list(length=RECOMMENDATION_POOL_SIZE)]

    with PerformanceMonitor("rank_jobs", logger, threshold_ms=200):
        recommendations = rank_jobs(UserProfile.from_document(current_user), jobs, limit)

    return {"success": True, "data": recommendations}


@router.get("/{job_id}")
async def get_job(job_id: str):
    job = await jobs_coll.find_one_and_update({"job_id": job_id}, {"$inc": {"views": 1}})
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    job["views"] = job.get("views", 0) + 1
    return {"success": True, "data": job_view(job)}


@router.put("/{job_id}")
async def update_job(job_id: str, payload: JobUpdatePayload, current_user: Dict[str, Any] = Depends(get_current_user)):
    job = await _get_job(job_id)
    _require_owner(job, current_user, "update")

    updates = payload.dict(exclude_unset=True)
    updates["updated_at"] = datetime.utcnow()
    await jobs_coll.update_one({"job_id": job_id}, {"$set": updates})

    logger.info(f"Job {job_id} updated: {sorted(updates)}")
    return {"success": True, "message": "Job updated successfully", "data": job_view({**job, **updates})}


@router.delete("/{job_id}")
async def delete_job(job_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    job = await _get_job(job_id)
    _require_owner(job, current_user, "delete")

    await jobs_coll.delete_one({"job_id": job_id})
    logger.info(f"Job {job_id} deleted by {current_user['user_id']}")
    return {"success": True, "message": "Job posting deleted successfully"}


@router.post("/{job_id}/apply")
async def apply_to_job(job_id: str, payload: ApplyPayload, current_user: Dict[str, Any] = Depends(get_current_user)):
    job = await _get_job(job_id)
    user_id = current_user["user_id"]

    if job.get("employer_id") == user_id:
        raise HTTPException(status_code=400, detail="You cannot apply to your own job posting")
    if any(a.get("applicant_id") == user_id for a in job.get("applications") or []):
        raise HTTPException(status_code=400, detail="You have already applied to this job")

    application = ApplicationModel(applicant_id=user_id, **payload.dict()).dict()
    await jobs_coll.update_one(
        {"job_id": job_id},
        {"$push": {"applications": application}, "$set": {"updated_at": datetime.utcnow()}}
    )

    logger.info(f"User {user_id} applied to job {job_id}")
    return {"success": True, "message": "Application submitted successfully", "data": application}


@router.put("/{job_id}/applications/{application_id}")
async def update_application_status(
    job_id: str,
    application_id: str,
    payload: ApplicationUpdatePayload,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    job = await _get_job(job_id)
    _require_owner(job, current_user, "manage applications for")

    application = next(
        (a for a in job.get("applications") or [] if a.get("application_id") == application_id), None
    )
    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")

    changes = {"applications.$.status": payload.status, "applications.$.reviewed_at": datetime.utcnow()}
    if payload.feedback:
        changes["applications.$.feedback"] = payload.feedback

    await jobs_coll.update_one(
        {"job_id": job_id, "applications.application_id": application_id},
        {"$set": changes}
    )

    application.update({k.rsplit(".", 1)[-1]: v for k, v in changes.items()})
    return {"success": True, "message": "Application status updated successfully", "data": application}
