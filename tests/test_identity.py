"""
Tests for bearer token parsing and identity resolution against a mocked
identity provider (httpx.MockTransport).
"""

import httpx
import pytest

from scenesync.auth.identity import IdentityResolver, extract_bearer_token
from scenesync.core.errors import AuthFailure

PROFILE_URL = "https://identity.test/v1/me"


def resolver_for(handler) -> IdentityResolver:
    return IdentityResolver(url=PROFILE_URL, timeout=2.0, transport=httpx.MockTransport(handler))


class TestExtractBearerToken:
    def test_valid(self):
        assert extract_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc", "Bearer", "Bearer ", "Bearer    "])
    def test_rejected(self, header):
        with pytest.raises(AuthFailure) as exc_info:
            extract_bearer_token(header)
        assert exc_info.value.code == "SSY-AUTH-001"


class TestIdentityResolver:
    @pytest.mark.asyncio
    async def test_returns_provider_id(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "user123", "display_name": "Ada"})

        assert await resolver_for(handler).resolve_identity("tok") == "user123"
        assert len(seen) == 1
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert str(seen[0].url) == PROFILE_URL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 429, 500, 503])
    async def test_non_success_is_auth_failure(self, status):
        resolver = resolver_for(lambda request: httpx.Response(status, json={"error": "nope"}))
        with pytest.raises(AuthFailure) as exc_info:
            await resolver.resolve_identity("tok")
        assert exc_info.value.code == "SSY-AUTH-002"

    @pytest.mark.asyncio
    async def test_transport_error_is_auth_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthFailure):
            await resolver_for(handler).resolve_identity("tok")

    @pytest.mark.asyncio
    async def test_non_json_body_is_auth_failure(self):
        resolver = resolver_for(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(AuthFailure):
            await resolver.resolve_identity("tok")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"id": ""}, {"id": 42}, ["user123"]])
    async def test_missing_id_is_auth_failure(self, body):
        resolver = resolver_for(lambda request: httpx.Response(200, json=body))
        with pytest.raises(AuthFailure):
            await resolver.resolve_identity("tok")

    @pytest.mark.asyncio
    async def test_no_caching(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json={"id": "user123"})

        resolver = resolver_for(handler)
        await resolver.resolve_identity("tok")
        await resolver.resolve_identity("tok")
        assert len(calls) == 2
