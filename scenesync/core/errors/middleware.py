"""
FastAPI exception handlers.

- SceneSyncError: registry lookup -> structured JSON error response.
- Starlette HTTPException (routing 404/405): mapped onto registry codes.
- Anything else: logged with traceback, generic 500, no detail leaked.

All responses carry the fixed CORS headers; the catch-all handler runs
outside the user middleware stack, so the headers are attached here.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scenesync.core.cors import json_response
from scenesync.core.errors import SceneSyncError
from scenesync.core.errors.registry import error_registry

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    404: "SSY-API-001",
    405: "SSY-API-002",
}


def _fallback_body(code: str) -> dict:
    return {
        "error": {
            "code": code,
            "title": "Internal error",
            "message": "Internal server error",
            "retryable": False,
            "user_action_required": False,
            "remediation": [],
        }
    }


def build_error_response(code: str) -> JSONResponse:
    """Render the registry entry for *code* as a JSON error response."""
    entry = error_registry.get(code)
    if entry is None:
        return json_response(_fallback_body(code), status_code=500)

    return json_response(
        {
            "error": {
                "code": entry.code,
                "title": entry.title,
                "message": entry.safe_message,
                "retryable": entry.retryable,
                "user_action_required": entry.user_action_required,
                "remediation": entry.remediation,
            }
        },
        status_code=entry.http_status,
    )


async def scenesync_error_handler(request: Request, exc: SceneSyncError) -> JSONResponse:
    """Convert SceneSyncError into a structured JSON response."""
    entry = error_registry.get(exc.code)

    if entry is None:
        logger.error(
            "unregistered_error_code",
            extra={"error.code": exc.code, "error.message": exc.detail},
        )
        return json_response(_fallback_body(exc.code), status_code=500)

    log_extra = {
        "error.code": exc.code,
        "error.kind": type(exc).__name__,
        "error.message_safe": entry.safe_message,
        "error.message": exc.detail,
        "error.retryable": entry.retryable,
        **{f"error.ctx.{k}": v for k, v in exc.context.items()},
    }

    log_fn = _severity_to_log_fn(entry.severity)
    log_fn(entry.title, extra=log_extra)

    return build_error_response(exc.code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route-level 404/405 from Starlette, rendered in the registry envelope."""
    code = _HTTP_STATUS_CODES.get(exc.status_code)
    if code is None:
        return json_response({"error": {"code": None, "message": exc.detail}}, status_code=exc.status_code)
    return build_error_response(code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method, request.url.path, exc,
        exc_info=True,
    )
    return build_error_response("SSY-SYS-001")


def _severity_to_log_fn(severity: str):
    """Map registry severity to logger method."""
    return {
        "DEBUG": logger.debug,
        "INFO": logger.info,
        "WARN": logger.warning,
        "ERROR": logger.error,
        "CRITICAL": logger.critical,
    }.get(severity, logger.error)
