from __future__ import annotations

import logging
import time
import uuid
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from services.common.docs import DOCUMENT_ROUTE, SWAGGER_UI_ROUTE

from ..application.schemas import ProblemDetail


API_CSP = "default-src 'none'; frame-ancestors 'none'; script-src 'none'"
# Swagger UI loads its bundle and stylesheet from the CDN and runs an inline bootstrap script.
SWAGGER_UI_CSP = (
    "default-src 'self'; frame-ancestors 'none'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https://fastapi.tiangolo.com; "
    "connect-src *"
)


def configure_json_logging(level: str = "INFO") -> logging.Logger:
    formatter = jsonlogger.JsonFormatter()
    for name in ("api.access", "templateapp.openapi"):
        named = logging.getLogger(name)
        if not named.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            named.addHandler(handler)
        named.setLevel(level)
    return logging.getLogger("api.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI, *, ui_prefix: str = "/swagger"):
        super().__init__(app)
        self._ui_prefix = ui_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.setdefault(
            "Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload"
        )
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        csp = SWAGGER_UI_CSP if request.url.path.startswith(self._ui_prefix) else API_CSP
        response.headers.setdefault("Content-Security-Policy", csp)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI, logger: logging.Logger, *, service_name: str):
        super().__init__(app)
        self._logger = logger
        self._service_name = service_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover - delegated to exception handler
            self._log(request, None, time.perf_counter() - start, exc=exc)
            raise
        self._log(request, response, time.perf_counter() - start)
        return response

    def _log(
        self,
        request: Request,
        response: Response | None,
        duration: float,
        *,
        exc: Exception | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "event": "http_request",
            "method": request.method,
            "path": request.url.path,
            "status_code": getattr(response, "status_code", 500),
            "duration_ms": round(duration * 1000, 3),
            "request_id": getattr(request.state, "request_id", None),
            "client": request.client.host if request.client else None,
            "service": self._service_name,
        }
        if exc:
            payload["error"] = str(exc)
            self._logger.error("request_failed", extra=payload)
        else:
            self._logger.info("request_completed", extra=payload)


def problem_response(request: Request, status_code: int, title: str, **fields: Any) -> JSONResponse:
    problem = ProblemDetail(
        title=title,
        status=int(status_code),
        instance=str(request.url),
        trace_id=getattr(request.state, "request_id", None),
        **fields,
    )
    return JSONResponse(
        problem.model_dump(by_alias=True, exclude_none=True),
        status_code=int(status_code),
        media_type="application/problem+json",
    )


def register_exception_handlers(app: FastAPI, *, documentation_prefixes: tuple[str, ...]) -> None:
    access_logger = logging.getLogger("api.access")
    openapi_logger = logging.getLogger("templateapp.openapi")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        title = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
        return problem_response(request, exc.status_code, title)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        access_logger.warning("validation_error", extra={"path": request.url.path, "errors": errors})
        return problem_response(
            request, HTTPStatus.UNPROCESSABLE_ENTITY, "Validation Error", errors=errors
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # A broken document cannot be served partially; flag it apart from API faults.
        if request.url.path.startswith(documentation_prefixes):
            openapi_logger.critical(
                "openapi_document_failed", exc_info=exc, extra={"path": request.url.path}
            )
            return problem_response(
                request,
                HTTPStatus.INTERNAL_SERVER_ERROR,
                "API documentation unavailable",
                type="urn:templateapp:problem:openapi-document",
            )
        access_logger.exception("unhandled_exception", extra={"path": request.url.path})
        return problem_response(request, HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")


def setup_middleware(app: FastAPI, *, log_level: str = "INFO") -> None:
    logger = configure_json_logging(log_level)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AccessLogMiddleware, logger=logger, service_name=app.title)
    app.add_middleware(SecurityHeadersMiddleware, ui_prefix=SWAGGER_UI_ROUTE)
    register_exception_handlers(app, documentation_prefixes=(DOCUMENT_ROUTE, SWAGGER_UI_ROUTE))
