"""
Domain errors for the Job Portal API.

Each error carries the HTTP status it maps to, so services can raise them
without importing FastAPI and the middleware renders them uniformly.
"""
from typing import Dict, Any, Optional
from fastapi import HTTPException


class JobPortalBaseException(Exception):
    """Base exception for the Job Portal API"""

    error_code = "JOB_PORTAL_ERROR"
    status_code = 500
    _renamed_keys: Dict[str, str] = {}

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        **context
    ):
        self.message = message
        self.details = dict(details or {})
        # keyword context (resource=..., rule=...) only lands in details when set
        self.details.update({self._detail_key(k): v for k, v in context.items() if v is not None})
        self.cause = cause
        super().__init__(message)

    @classmethod
    def _detail_key(cls, name: str) -> str:
        return cls._renamed_keys.get(name, name)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data


class ValidationError(JobPortalBaseException):
    """Input passed the body model but broke a domain rule"""
    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        super().__init__(message, field=field, invalid_value=None if value is None else str(value), **kwargs)


class BusinessLogicError(JobPortalBaseException):
    """Duplicate application, self-connect, second share and similar"""
    error_code = "BUSINESS_LOGIC_ERROR"
    status_code = 400
    _renamed_keys = {"rule": "business_rule"}

    def __init__(self, message: str, rule: str = None, **kwargs):
        super().__init__(message, rule=rule, **kwargs)


class AuthorizationError(JobPortalBaseException):
    error_code = "AUTHORIZATION_ERROR"
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", resource: str = None, **kwargs):
        super().__init__(message, resource=resource, **kwargs)


class NotFoundError(JobPortalBaseException):
    """A user, job, post or embedded record does not exist"""
    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        super().__init__(message, resource=resource, resource_id=resource_id, **kwargs)


class DatabaseError(JobPortalBaseException):
    error_code = "DATABASE_ERROR"

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        super().__init__(message, operation=operation, collection=collection, **kwargs)


class ProcessingError(JobPortalBaseException):
    """Resume text could not be extracted"""
    error_code = "PROCESSING_ERROR"

    def __init__(self, message: str, document_name: str = None, document_type: str = None, **kwargs):
        super().__init__(message, document_name=document_name, document_type=document_type, **kwargs)


class ExternalServiceError(JobPortalBaseException):
    """The generative API could not be reached or answered with an error"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        super().__init__(message, service_name=service_name, status_code=status_code, **kwargs)


def map_to_http_exception(exc: JobPortalBaseException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"message": exc.message, "error": exc.to_dict()})


class ExceptionContext:
    """
    Wrap a unit of work so that foreign errors surface as domain errors.

    Domain errors and HTTPException pass through. Mongo driver errors become
    DatabaseError, bad values become ValidationError and anything else
    becomes ProcessingError, each chained to the original.
    """

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"{self.operation}: begin", extra=self.context)
        return self

    def _translate(self, exc: BaseException) -> JobPortalBaseException:
        text = f"{self.operation} failed: {exc}"
        if type(exc).__module__.startswith(("pymongo", "motor")):
            return DatabaseError(text, operation=self.operation, details=self.context, cause=exc)
        if isinstance(exc, (KeyError, ValueError, TypeError)):
            return ValidationError(text, details=self.context, cause=exc)
        return ProcessingError(text, details=self.context, cause=exc)

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"{self.operation}: done", extra=self.context)
            return False
        if isinstance(exc_val, (JobPortalBaseException, HTTPException)):
            return False

        if self.logger:
            self.logger.error(f"{self.operation}: {exc_type.__name__}: {exc_val}", extra=self.context)
        raise self._translate(exc_val) from exc_val
