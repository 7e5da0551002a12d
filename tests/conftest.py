"""
Pytest configuration for SceneSync tests.
Environment is set before any scenesync import so Settings picks it up.
"""

import os
import tempfile

_test_data_dir = tempfile.mkdtemp(prefix="scenesync_test_")
os.environ["SCENESYNC_KV_BACKEND"] = "memory"
os.environ.setdefault("SCENESYNC_DATABASE_URL", f"sqlite:///{_test_data_dir}/test.db")
os.environ.setdefault("SCENESYNC_IDENTITY_PROVIDER_URL", "https://identity.test/v1/me")

import pytest
from fastapi.testclient import TestClient

from scenesync.auth.identity import get_identity_resolver
from scenesync.core.errors import AuthFailure
from scenesync.core.errors.registry import error_registry
from scenesync.main import app
from scenesync.services.kv_backend import InMemoryKVBackend
from scenesync.services.scene_store import SceneStoreService, get_scene_store

# Load error registry so SceneSyncError returns correct HTTP status codes
error_registry.load()


class StubResolver:
    """Token -> identity table standing in for the identity provider."""

    def __init__(self, tokens: dict):
        self.tokens = tokens
        self.calls: list[str] = []

    async def resolve_identity(self, token: str) -> str:
        self.calls.append(token)
        if token not in self.tokens:
            raise AuthFailure("SSY-AUTH-002", detail="unknown test token")
        return self.tokens[token]


def make_scene(i: int = 1, name: str = "Morning") -> dict:
    return {
        "id": f"s{i}",
        "name": name,
        "volume": 40,
        "playlist": {
            "id": "37i9dQZF1DXcBWIGoYBM5M",
            "name": "Today's Top Hits",
            "uri": "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M",
            "imageUrl": None,
        },
        "device": {"id": "dev-1", "name": "Kitchen", "type": "Speaker"},
    }


@pytest.fixture
def kv():
    return InMemoryKVBackend()


@pytest.fixture
def store(kv):
    return SceneStoreService(kv)


@pytest.fixture
def resolver():
    return StubResolver({"token-123": "user123", "token-456": "user456"})


@pytest.fixture
def client(store, resolver):
    app.dependency_overrides[get_scene_store] = lambda: store
    app.dependency_overrides[get_identity_resolver] = lambda: resolver
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_scene_store, None)
        app.dependency_overrides.pop(get_identity_resolver, None)
