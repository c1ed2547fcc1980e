import asyncio
import re
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile

from app.helpers.parsing import MAX_PROFILE_PICTURE_BYTES, image_kind
from app.models.payloads import ConnectionActionPayload, ProfileUpdatePayload, SkillsPayload
from app.models.response import Pagination
from app.models.schemas import PUBLIC_USER_FIELDS, accepted_connections, profile_completeness, user_view
from app.services.connection_manager import ConnectionManager
from app.services.db import users_coll
from app.services.media_storage import MediaStorage, get_media_storage
from app.utils.auth import get_current_user, get_optional_user
from app.utils.exceptions import (
    BusinessLogicError, ExceptionContext, ExternalServiceError, NotFoundError, map_to_http_exception
)
from app.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)

PUBLIC_PROJECTION = {field: 1 for field in PUBLIC_USER_FIELDS + ("connections", "created_at")}


@router.get("/search")
async def search_users(
    request: Request,
    q: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma separated skill names"),
    location: Optional[str] = None,
    account_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Search active users other than the caller"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    query: Dict[str, Any] = {"user_id": {"$ne": current_user["user_id"]}, "is_active": True}
    clauses = []

    if q:
        pattern = {"$regex": re.escape(q), "$options": "i"}
        clauses.append({"$or": [
            {"first_name": pattern}, {"last_name": pattern}, {"bio": pattern}, {"company_info.name": pattern}
        ]})
    if skills:
        names = [s.strip() for s in skills.split(",") if s.strip()]
        query["skills.name"] = {"$in": [re.compile(re.escape(s), re.IGNORECASE) for s in names]}
    if location:
        pattern = {"$regex": re.escape(location), "$options": "i"}
        clauses.append({"$or": [{"location.city": pattern}, {"location.country": pattern}]})
    if account_type:
        query["account_type"] = account_type
    if clauses:
        query["$and"] = clauses

    with ExceptionContext("search_users", logger, request_id=request_id):
        cursor = users_coll.find(query, PUBLIC_PROJECTION).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
        users = await cursor.to_list(length=limit)
        total = await users_coll.count_documents(query)

    return {
        "success": True,
        "data": [user_view(u, full=False) for u in users],
        "pagination": Pagination.build(page, limit, total).dict(),
    }


@router.get("/connections")
async def get_connections(
    status: str = Query("accepted", pattern="^(pending|accepted|rejected)$"),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Connections of the caller with the given status, with the other user's public profile"""
    edges = [c for c in current_user.get("connections") or [] if c.get("status") == status]
    ids = [c["user_id"] for c in edges]

    others = {}
    if ids:
        cursor = users_coll.find({"user_id": {"$in": ids}}, PUBLIC_PROJECTION)
        others = {u["user_id"]: user_view(u, full=False) for u in await cursor.to_list(length=len(ids))}

    data = [
        {
            "connection_id": c["connection_id"],
            "user": others.get(c["user_id"], {"user_id": c["user_id"]}),
            "status": c["status"],
            "connected_at": c.get("connected_at"),
        }
        for c in edges
    ]
    return {"success": True, "data": data}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdatePayload,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    request_id = getattr(request.state, 'request_id', 'unknown')
    updates = payload.dict(exclude_unset=True)
    updated = {**current_user, **updates}
    updates["profile_completeness"] = profile_completeness(updated)
    updates["updated_at"] = datetime.utcnow()

    with ExceptionContext("update_profile", logger, request_id=request_id, user_id=current_user["user_id"]):
        await users_coll.update_one({"user_id": current_user["user_id"]}, {"$set": updates})

    logger.info(f"Profile updated for user {current_user['user_id']}: {sorted(updates)}")
    return {"success": True, "message": "Profile updated successfully", "data": user_view({**updated, **updates})}


@router.put("/skills")
async def update_skills(
    payload: SkillsPayload,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    skills = [s.dict() for s in payload.skills]
    updated = {**current_user, "skills": skills}
    await users_coll.update_one(
        {"user_id": current_user["user_id"]},
        {"$set": {
            "skills": skills,
            "profile_completeness": profile_completeness(updated),
            "updated_at": datetime.utcnow()
        }}
    )
    return {"success": True, "message": "Skills updated successfully", "data": {"skills": skills}}


async def _run(fn, *args):
    # the Cloudinary SDK blocks
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


async def _discard_picture(storage: MediaStorage, picture: Optional[Dict[str, Any]]):
    """Delete a stored picture; a failure only leaves an orphaned image behind"""
    if not picture or not picture.get("public_id"):
        return
    try:
        await _run(storage.delete, picture["public_id"])
    except ExternalServiceError as e:
        logger.warning(f"Could not delete image {picture['public_id']}: {e.message}")


@router.post("/profile-picture")
async def upload_profile_picture(
    profile_picture: UploadFile = File(..., alias="profilePicture"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    storage: MediaStorage = Depends(get_media_storage)
):
    """Replace the caller's profile picture with a JPG, PNG or WEBP image up to 5MB"""
    if image_kind(profile_picture.filename, profile_picture.content_type) is None:
        raise HTTPException(status_code=400, detail="Invalid file type. Allowed types: JPG, PNG, WEBP")

    data = await profile_picture.read()
    if not data:
        raise HTTPException(status_code=400, detail="No profile picture uploaded")
    if len(data) > MAX_PROFILE_PICTURE_BYTES:
        raise HTTPException(status_code=400, detail="Profile picture must be 5MB or smaller")

    try:
        picture = await _run(storage.upload_profile_picture, data, current_user["user_id"])
    except ExternalServiceError as e:
        raise map_to_http_exception(e)

    await _discard_picture(storage, current_user.get("profile_picture"))

    updated = {**current_user, "profile_picture": picture}
    await users_coll.update_one(
        {"user_id": current_user["user_id"]},
        {"$set": {
            "profile_picture": picture,
            "profile_completeness": profile_completeness(updated),
            "updated_at": datetime.utcnow()
        }}
    )
    return {"success": True, "message": "Profile picture uploaded successfully", "profile_picture": picture}


@router.delete("/profile-picture")
async def remove_profile_picture(
    current_user: Dict[str, Any] = Depends(get_current_user),
    storage: MediaStorage = Depends(get_media_storage)
):
    picture = current_user.get("profile_picture")
    if not picture or not picture.get("public_id"):
        raise HTTPException(status_code=400, detail="No profile picture to remove")

    await _discard_picture(storage, picture)

    updated = {**current_user, "profile_picture": None}
    await users_coll.update_one(
        {"user_id": current_user["user_id"]},
        {
            "$unset": {"profile_picture": ""},
            "$set": {"profile_completeness": profile_completeness(updated), "updated_at": datetime.utcnow()}
        }
    )
    return {"success": True, "message": "Profile picture removed successfully"}


@router.get("/{user_id}")
async def get_user(user_id: str, viewer: Optional[Dict[str, Any]] = Depends(get_optional_user)):
    """Full profile for the owner or an accepted connection, public fields for everyone else"""
    user = await users_coll.find_one({"user_id": user_id})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    is_own = viewer is not None and viewer["user_id"] == user_id
    is_connected = viewer is not None and any(c.get("user_id") == viewer["user_id"] for c in accepted_connections(user))

    view = user_view(user, full=is_own or is_connected)
    if not (is_own or is_connected):
        view["created_at"] = user.get("created_at")
    return {"success": True, "user": view}


@router.post("/{user_id}/connect")
async def send_connection_request(user_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    try:
        edge = await ConnectionManager.send_request(current_user["user_id"], user_id)
    except (NotFoundError, BusinessLogicError) as e:
        raise map_to_http_exception(e)
    return {"success": True, "message": "Connection request sent successfully", "connection_id": edge["connection_id"]}


@router.put("/connections/{connection_id}")
async def respond_to_connection(
    connection_id: str,
    payload: ConnectionActionPayload,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    try:
        await ConnectionManager.respond(current_user, connection_id, payload.action)
    except (NotFoundError, BusinessLogicError) as e:
        raise map_to_http_exception(e)
    return {"success": True, "message": f"Connection request {payload.action}ed successfully"}


@router.delete("/connections/{connection_id}")
async def remove_connection(connection_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    try:
        await ConnectionManager.remove(current_user, connection_id)
    except NotFoundError as e:
        raise map_to_http_exception(e)
    return {"success": True, "message": "Connection removed successfully"}
