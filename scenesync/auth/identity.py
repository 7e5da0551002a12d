"""
Bearer token -> user identity.

The token is forwarded to the identity provider's profile endpoint
(Spotify ``GET /v1/me``); the ``id`` field of the response is the stable
user identity. Nothing is cached and nothing is retried: every request
re-validates its token.
"""

import logging
from typing import Optional

import httpx
from fastapi import Depends, Header

from scenesync.config import settings
from scenesync.core.errors import AuthFailure

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Extract token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthFailure("SSY-AUTH-001", detail="Authorization header missing or not Bearer")
    token = authorization[len(BEARER_PREFIX):]
    if not token.strip():
        raise AuthFailure("SSY-AUTH-001", detail="empty bearer token")
    return token


class IdentityResolver:
    """Resolves bearer tokens against the identity provider."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url or settings.identity_provider_url
        self._timeout = timeout if timeout is not None else settings.identity_timeout_s
        self._transport = transport

    async def resolve_identity(self, token: str) -> str:
        """Return the provider's user id for *token*, or raise AuthFailure."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            logger.warning("Identity provider unreachable: %s", e)
            raise AuthFailure("SSY-AUTH-002", detail=f"transport error: {type(e).__name__}") from e

        if not response.is_success:
            raise AuthFailure("SSY-AUTH-002", detail=f"identity provider returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise AuthFailure("SSY-AUTH-002", detail="identity provider returned non-JSON body") from e

        user_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(user_id, str) or not user_id:
            raise AuthFailure("SSY-AUTH-002", detail="identity provider response has no id")
        return user_id


_resolver: Optional[IdentityResolver] = None


def get_identity_resolver() -> IdentityResolver:
    global _resolver
    if _resolver is None:
        _resolver = IdentityResolver()
    return _resolver


async def get_current_identity(
    authorization: Optional[str] = Header(None),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> str:
    """FastAPI dependency: validated user identity for the request."""
    token = extract_bearer_token(authorization)
    return await resolver.resolve_identity(token)
