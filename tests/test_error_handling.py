import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from app.middleware.error_handlers import ExceptionHandlerMiddleware, RequestContextMiddleware
from app.utils.exceptions import (
    AuthorizationError, BusinessLogicError, DatabaseError, ExceptionContext, ExternalServiceError,
    NotFoundError, ProcessingError, ValidationError, map_to_http_exception
)


@pytest.fixture
def test_app():
    app = FastAPI()
    app.add_middleware(ExceptionHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware, slow_request_threshold=2.0)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Job not found", resource="job", resource_id="j-1")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.get("/ok")
    async def ok():
        return {"success": True}

    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


class TestExceptionMapping:
    """Test cases for domain exception to HTTP status mapping"""

    @pytest.mark.parametrize("exc, status", [
        (ValidationError("bad", field="text"), 400),
        (BusinessLogicError("no", rule="unique"), 400),
        (AuthorizationError(), 403),
        (NotFoundError("gone"), 404),
        (DatabaseError("down"), 500),
        (ProcessingError("broken pdf"), 500),
        (ExternalServiceError("gemini", service_name="gemini", status_code=503), 502),
    ])
    def test_status_codes(self, exc, status):
        http_exc = map_to_http_exception(exc)

        assert http_exc.status_code == status
        assert http_exc.detail["message"] == exc.message

    def test_details_and_cause(self):
        exc = NotFoundError("User not found", resource="user", resource_id="u-1", cause=KeyError("u-1"))
        data = exc.to_dict()

        assert data["error_code"] == "NOT_FOUND"
        assert data["details"] == {"resource": "user", "resource_id": "u-1"}
        assert "u-1" in data["cause"]


class TestExceptionContext:
    """Test cases for wrapping foreign errors"""

    def test_value_error_becomes_validation_error(self):
        with pytest.raises(ValidationError):
            with ExceptionContext("parse", logging.getLogger("test")):
                int("not a number")

    def test_mongo_error_becomes_database_error(self):
        with pytest.raises(DatabaseError) as exc_info:
            with ExceptionContext("find_users", logging.getLogger("test"), collection="users"):
                raise ServerSelectionTimeoutError("no servers")

        assert exc_info.value.details["operation"] == "find_users"

    def test_domain_errors_pass_through(self):
        with pytest.raises(NotFoundError):
            with ExceptionContext("lookup"):
                raise NotFoundError("gone")


class TestExceptionMiddleware:
    """Test cases for the error envelope rendered by the middleware"""

    def test_domain_error_rendered(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Job not found"
        assert body["error"]["details"]["resource_id"] == "j-1"
        assert response.headers["X-Request-ID"] == body["request_id"]

    def test_unexpected_error_is_500(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_success_has_timing_headers(self, client):
        response = client.get("/ok")

        assert response.status_code == 200
        assert "X-Processing-Time" in response.headers
        assert "X-Request-ID" in response.headers
