"""
Scene sync endpoints.

- GET /api/scenes: the caller's scenes, ``{"scenes": [...]}``
- PUT /api/scenes: replace the caller's scenes, ``{"ok": true}``

Both require ``Authorization: Bearer <token>``; the token is resolved to
the caller's identity on every request and scenes are keyed by it, so a
caller can only ever reach their own record.
"""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.requests import ClientDisconnect

from scenesync.auth.identity import get_current_identity
from scenesync.core.cors import json_response
from scenesync.core.errors import ValidationFailure
from scenesync.services.scene_store import SceneStoreService, get_scene_store, parse_payload

logger = logging.getLogger(__name__)

router = APIRouter(redirect_slashes=False)


@router.get("/scenes")
async def get_scenes(
    identity: str = Depends(get_current_identity),
    store: SceneStoreService = Depends(get_scene_store),
):
    return json_response(await store.fetch_scenes(identity))


@router.put("/scenes")
async def put_scenes(
    request: Request,
    identity: str = Depends(get_current_identity),
    store: SceneStoreService = Depends(get_scene_store),
):
    limit = store.max_payload_bytes

    # Reject on the declared size before reading anything
    size_hint = _content_length(request)
    if size_hint is not None and size_hint > limit:
        raise ValidationFailure("SSY-VAL-004", detail=f"content-length {size_hint}")

    body = await _read_body(request, limit)

    try:
        payload = parse_payload(body)
    except ValueError as e:
        raise ValidationFailure("SSY-VAL-001", detail=str(e)) from e

    await store.save_scenes(identity, payload, size_hint=size_hint)
    return json_response({"ok": True})


def _content_length(request: Request):
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the body, stopping as soon as it passes *limit* bytes.

    The Content-Length header can lie or be absent (chunked uploads), so
    the running count is what decides.
    """
    chunks = []
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if received > limit:
                raise ValidationFailure("SSY-VAL-004", detail=f"body passed {limit} bytes")
            chunks.append(chunk)
    except ClientDisconnect as e:
        raise ValidationFailure("SSY-VAL-005", detail="client disconnected") from e
    return b"".join(chunks)
