"""
Password hashing, JWT issuing and the FastAPI dependencies that resolve the
current user from the "token" cookie or an Authorization: Bearer header.
"""
import hashlib
import hmac
import os
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from dotenv import load_dotenv
from fastapi import HTTPException, Request, Response

from app.services.db import users_coll
from app.utils.logging_config import get_logger

load_dotenv()

logger = get_logger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET") or secrets.token_hex(32)
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
COOKIE_NAME = "token"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
PBKDF2_ITERATIONS = 100000

if not os.getenv("JWT_SECRET"):
    logger.warning("JWT_SECRET not set; using a random secret, tokens will not survive a restart")


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    hashed = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${hashed.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt, hashed = stored.split("$")
    except (AttributeError, ValueError):
        return False
    check = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return hmac.compare_digest(check.hex(), hashed)


def create_token(user_id: str) -> str:
    return jwt.encode(
        {"user_id": user_id, "exp": datetime.utcnow() + timedelta(days=JWT_EXPIRES_DAYS)},
        JWT_SECRET, algorithm=JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[str]:
    """Return the user id carried by a token, or None when it is expired or invalid."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Rejected invalid token")
        return None
    return payload.get("user_id")


def set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        COOKIE_NAME,
        token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="none" if COOKIE_SECURE else "lax",
        max_age=JWT_EXPIRES_DAYS * 24 * 60 * 60,
    )


def clear_auth_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME)


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


async def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    token = _token_from_request(request)
    if not token:
        return None
    user_id = decode_token(token)
    if not user_id:
        return None
    user = await users_coll.find_one({"user_id": user_id})
    if not user or not user.get("is_active", True):
        return None
    return user


async def get_current_user(request: Request) -> Dict[str, Any]:
    if not _token_from_request(request):
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    user = await get_optional_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    request.state.user_id = user["user_id"]
    return user
