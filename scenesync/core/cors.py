"""
Fixed CORS policy for the scene sync API.

Every response (success, error, preflight) carries the same wildcard CORS
headers and a JSON content type. Starlette's CORSMiddleware only answers
when an Origin header is present, so the policy is applied here
unconditionally instead.
"""
from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, PUT, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
}


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    """JSONResponse with the CORS headers attached."""
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


class StaticCORSMiddleware(BaseHTTPMiddleware):
    """Answer every OPTIONS preflight and stamp CORS headers on all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(
                status_code=200,
                headers={**CORS_HEADERS, "Content-Type": "application/json"},
            )

        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        response.headers["Content-Type"] = "application/json"
        return response
