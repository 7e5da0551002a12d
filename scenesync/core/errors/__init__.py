"""
SceneSync error code system.

SceneSyncError is the base exception for all structured errors.
Raise it with an error code from the registry, and the error middleware
will produce a structured JSON response.

Usage:
    from scenesync.core.errors import SceneSyncError
    raise SceneSyncError("SSY-AUTH-002", detail="identity provider returned 401")
"""

from __future__ import annotations

import re

CODE_PATTERN = re.compile(r"^SSY-[A-Z]{2,6}-\d{3}$")


class SceneSyncError(Exception):
    """Structured application error tied to the error registry.

    Args:
        code: Registry error code, e.g. "SSY-VAL-003".
        detail: Internal-only detail message (never exposed to users).
        context: Arbitrary key-value context for structured logging.
    """

    def __init__(
        self,
        code: str,
        detail: str | None = None,
        context: dict | None = None,
    ) -> None:
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.detail = detail
        self.context = context or {}
        super().__init__(f"{code}: {detail}" if detail else code)


class AuthFailure(SceneSyncError):
    """Credential missing, malformed, or rejected by the identity provider."""


class ValidationFailure(SceneSyncError):
    """Request body malformed, wrong shape, or over a size/count limit."""


class StoreFailure(SceneSyncError):
    """Key-value backend write failed."""
