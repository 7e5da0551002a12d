"""
SceneSync Client — HTTP client for the scene sync API.
======================================================

Wraps GET/PUT /api/scenes for front ends and scripts. Every call returns an
ApiResult the caller must inspect; nothing runs in the background and
nothing is retried.

    client = SceneSyncClient("https://sync.example.com", token_provider)
    result = await client.fetch_scenes()
    if result.needs_reauth:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar, Union

import httpx
from pydantic import BaseModel

from scenesync.models.scenes import Scene

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
CONNECT_ERROR = "Cannot connect to sync service. Please check your internet connection."

T = TypeVar("T")
TokenProvider = Callable[[], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    needs_reauth: bool = False  # 401: token invalid or expired


_NOT_AUTHENTICATED = ApiResult(success=False, error="Not authenticated", needs_reauth=True)
_SESSION_EXPIRED = ApiResult(success=False, error="Session expired", needs_reauth=True)


class SceneSyncClient:
    """Async client for the scene sync API."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport

    async def _get_token(self) -> Optional[str]:
        try:
            return await self._token_provider()
        except Exception as e:
            logger.error("Failed to get access token: %s", e)
            return None

    async def _request(self, method: str, token: str, json: Optional[dict] = None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.request(method, f"{self._base_url}/api/scenes", json=json, headers=headers)

    async def fetch_scenes(self) -> ApiResult[list]:
        """GET /api/scenes"""
        token = await self._get_token()
        if not token:
            return _NOT_AUTHENTICATED

        try:
            response = await self._request("GET", token)
        except httpx.HTTPError as e:
            logger.error("Network error fetching scenes: %s", e)
            return ApiResult(success=False, error=CONNECT_ERROR)

        if response.status_code == 401:
            return _SESSION_EXPIRED
        if not response.is_success:
            logger.error("Failed to fetch scenes: %s", response.text)
            return ApiResult(success=False, error=f"Server error: {response.status_code}")

        try:
            scenes = response.json()["scenes"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Malformed scenes response: %s", e)
            return ApiResult(success=False, error="Malformed response from sync service")
        return ApiResult(success=True, data=scenes)

    async def save_scenes(self, scenes: Sequence[Union[Scene, dict]]) -> ApiResult[None]:
        """PUT /api/scenes: replaces the stored list with *scenes*."""
        token = await self._get_token()
        if not token:
            return _NOT_AUTHENTICATED

        body = {"scenes": [_dump(s) for s in scenes]}
        try:
            response = await self._request("PUT", token, json=body)
        except httpx.HTTPError as e:
            logger.error("Network error saving scenes: %s", e)
            return ApiResult(success=False, error=CONNECT_ERROR)

        if response.status_code == 401:
            return _SESSION_EXPIRED
        if not response.is_success:
            logger.error("Failed to save scenes: %s", response.text)
            return ApiResult(success=False, error=f"Server error: {response.status_code}")

        try:
            ok = response.json().get("ok") is True
        except (ValueError, AttributeError):
            ok = False
        if not ok:
            return ApiResult(success=False, error="Failed to save scenes")
        return ApiResult(success=True)


def _dump(scene: Any) -> Any:
    if isinstance(scene, BaseModel):
        return scene.model_dump(by_alias=True, exclude_none=False)
    return scene
