from typing import Any, Dict, Optional
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from k3sui.core.request_context import current_request_id


logger = structlog.get_logger(__name__)


class AppException(Exception):
    """Base for errors raised by the service layer and rendered as JSON."""

    status_code: int = 400
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class BadRequest(AppException):
    status_code = 400
    code = "BAD_REQUEST"


class InvalidCommand(AppException):
    """Malformed terminal input; never executed."""

    status_code = 400
    code = "INVALID_COMMAND"


class Forbidden(AppException):
    """Well-formed terminal input with a subcommand outside the whitelist."""

    status_code = 403
    code = "FORBIDDEN"


class NotFound(AppException):
    status_code = 404
    code = "NOT_FOUND"


class ExecutionFailure(AppException):
    """An external process failed to start or exited non-zero.

    ``details`` holds the captured stderr text verbatim.
    """

    status_code = 500
    code = "EXECUTION_FAILURE"


class KubernetesApiError(AppException):
    status_code = 500
    code = "KUBERNETES_API_ERROR"


class DockerUnavailable(AppException):
    status_code = 503
    code = "DOCKER_UNAVAILABLE"


def _build_error_payload(
    *,
    message: str,
    code: str,
    details: Any = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "error": message,
        "details": details,
        "code": code,
        "request_id": request_id or str(uuid.uuid4()),
    }


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or current_request_id() or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{error, details, code, request_id}``."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):  # type: ignore[override]
        req_id = _request_id(request)
        logger.warning(
            "http.app_exception",
            status=exc.status_code,
            code=exc.code,
            path=request.url.path,
            request_id=req_id,
        )
        payload = _build_error_payload(message=exc.message, code=exc.code, details=exc.details, request_id=req_id)
        return JSONResponse(status_code=exc.status_code, content=payload, headers={"X-Request-ID": req_id})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        req_id = _request_id(request)
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        details = None if isinstance(exc.detail, str) else exc.detail
        logger.warning("http.exception", status=exc.status_code, path=request.url.path, request_id=req_id)
        payload = _build_error_payload(message=message, code="HTTP_ERROR", details=details, request_id=req_id)
        return JSONResponse(status_code=exc.status_code, content=payload, headers={"X-Request-ID": req_id})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        req_id = _request_id(request)
        errors = exc.errors()
        logger.info("http.validation_error", path=request.url.path, errors=len(errors), request_id=req_id)
        payload = _build_error_payload(
            message="Request validation failed",
            code="VALIDATION_ERROR",
            details=jsonable_encoder(errors),
            request_id=req_id,
        )
        return JSONResponse(status_code=422, content=payload, headers={"X-Request-ID": req_id})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[override]
        req_id = _request_id(request)
        logger.exception("http.unhandled_exception", path=request.url.path, request_id=req_id)
        payload = _build_error_payload(message="Internal server error", code="INTERNAL_SERVER_ERROR", request_id=req_id)
        return JSONResponse(status_code=500, content=payload, headers={"X-Request-ID": req_id})
