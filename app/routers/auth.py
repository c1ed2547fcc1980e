from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from app.models.payloads import LoginPayload, RegisterPayload
from app.models.schemas import UserModel, profile_completeness, user_view
from app.services.db import users_coll
from app.utils.auth import (
    clear_auth_cookie, create_token, get_current_user, hash_password, set_auth_cookie, verify_password
)
from app.utils.exceptions import ExceptionContext
from app.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register", status_code=201)
async def register(payload: RegisterPayload, request: Request, response: Response):
    """Create an account and sign it in"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    if await users_coll.find_one({"email": payload.email}):
        logger.warning("Registration rejected: email already in use", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="User with this email already exists")

    user = UserModel(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email,
        password_hash=hash_password(payload.password),
        account_type=payload.account_type,
        company_info=payload.company_info,
        last_login=datetime.utcnow(),
    ).dict()
    user["profile_completeness"] = profile_completeness(user)

    with ExceptionContext("register_user", logger, request_id=request_id):
        await users_coll.insert_one(user)

    set_auth_cookie(response, create_token(user["user_id"]))
    logger.info(f"User registered: {user['user_id']}", extra={"request_id": request_id})
    return {"success": True, "message": "User registered successfully", "user": user_view(user)}


@router.post("/login")
async def login(payload: LoginPayload, request: Request, response: Response):
    request_id = getattr(request.state, 'request_id', 'unknown')

    user = await users_coll.find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password_hash")):
        logger.warning("Login failed: invalid credentials", extra={"request_id": request_id})
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is deactivated")

    user["last_login"] = datetime.utcnow()
    await users_coll.update_one({"user_id": user["user_id"]}, {"$set": {"last_login": user["last_login"]}})

    set_auth_cookie(response, create_token(user["user_id"]))
    logger.info(f"User logged in: {user['user_id']}", extra={"request_id": request_id})
    return {"success": True, "message": "Login successful", "user": user_view(user)}


@router.post("/logout")
async def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def me(current_user: Dict[str, Any] = Depends(get_current_user)):
    return {"success": True, "user": user_view(current_user)}
