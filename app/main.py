import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.routers import auth, users, jobs, posts, ai
from app.services.db import client, init_indexes
from app.utils.logging_config import configure_for_environment, get_logger
from app.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestContextMiddleware,
    create_error_response
)

# logging has to be configured before the first get_logger call below
configure_for_environment()
logger = get_logger(__name__)

API_VERSION = "1.0.0"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Job Portal API {API_VERSION} starting")
    try:
        await init_indexes()
    except Exception as e:
        # the API still serves requests without indexes, only slower
        logger.warning(f"Skipping index creation, database not ready: {e}")

    yield

    client.close()
    logger.info("Job Portal API stopped, mongo client closed")


app = FastAPI(title="Job Portal API", version=API_VERSION, lifespan=lifespan)

# added last runs first: CORS, then request context, then error rendering
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(RequestContextMiddleware, slow_request_threshold=2.0, slow_ai_threshold=10.0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Route-level HTTP errors share the middleware's error envelope"""
    request_id = getattr(request.state, "request_id", "unknown")
    return create_error_response(request_id, exc.status_code, exc.detail)


@app.api_route("/", methods=["GET", "HEAD"])
async def root():
    return {"message": "Welcome to the Job Portal API", "version": API_VERSION, "status": "ok"}


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat() + "Z"}


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
