"""
Scene Store Service
===================

Per-identity encrypted scene storage on top of a KVBackend.

Read path (fetch_scenes):
    current key (hashed) -> legacy key (raw identity) -> empty list.
    Encrypted records are opened with the identity's key; legacy records
    are parsed as plain JSON. Anything unreadable degrades to an empty
    list and is logged as ``stored_scenes_unreadable``.

Write path (save_scenes):
    validate shape / count / size -> serialize -> seal -> put under the
    current key. Legacy records are never rewritten in place; they are
    superseded by the first save after the upgrade.

Concurrent saves for one identity are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from scenesync.config import settings
from scenesync.core.crypto import PayloadDecryptError, is_encrypted, open_sealed, seal
from scenesync.core.errors import StoreFailure, ValidationFailure
from scenesync.core.key_derivation import (
    encryption_key_for,
    hash_identity,
    legacy_storage_key_for,
    storage_key_for,
)
from scenesync.services.kv_backend import KVBackend, get_kv_backend

logger = logging.getLogger(__name__)

MAX_SCENES = 50
MAX_PAYLOAD_BYTES = 50 * 1024


def empty_payload() -> dict:
    return {"scenes": []}


class NonFiniteNumber(ValueError):
    """NaN or Infinity in a JSON document. Standard JSON has no such values."""


def _reject_constant(name: str) -> float:
    raise NonFiniteNumber(f"non-finite number {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):  # e.g. 1e400
        raise NonFiniteNumber(f"number out of range: {text}")
    return value


def parse_payload(text: Any) -> Any:
    """Strict JSON parse: NaN, Infinity and overflowing numbers raise NonFiniteNumber."""
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def serialize_payload(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


class SceneStoreService:
    """Reads and writes one identity's scene list through the KV backend."""

    def __init__(
        self,
        backend: KVBackend,
        max_scenes: int = MAX_SCENES,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
        key_prefix: str = "scenes:",
    ):
        self._backend = backend
        self.max_scenes = max_scenes
        self.max_payload_bytes = max_payload_bytes
        self.key_prefix = key_prefix

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def fetch_scenes(self, identity: str) -> dict:
        """Return ``{"scenes": [...]}`` for *identity*. Never raises on bad data."""
        key_ref = hash_identity(identity)[:8]

        try:
            raw = await self._backend.get(storage_key_for(identity, self.key_prefix))
            if raw is None:
                raw = await self._backend.get(legacy_storage_key_for(identity, self.key_prefix))
                if raw is not None:
                    logger.info("Serving legacy scene record for %s", key_ref)
        except Exception as e:
            self._log_unreadable(key_ref, "backend_read_failed", e)
            return empty_payload()

        if raw is None:
            return empty_payload()

        if is_encrypted(raw):
            try:
                text = open_sealed(raw, encryption_key_for(identity)).decode("utf-8")
            except (PayloadDecryptError, UnicodeDecodeError) as e:
                self._log_unreadable(key_ref, "decrypt_failed", e)
                return empty_payload()
        else:
            text = raw

        try:
            payload = parse_payload(text)
        except NonFiniteNumber as e:
            self._log_unreadable(key_ref, "invalid_structure", e)
            return empty_payload()
        except ValueError as e:
            self._log_unreadable(key_ref, "invalid_json", e)
            return empty_payload()

        if not isinstance(payload, dict) or not isinstance(payload.get("scenes"), list):
            self._log_unreadable(key_ref, "invalid_structure", None)
            return empty_payload()

        return payload

    @staticmethod
    def _log_unreadable(key_ref: str, reason: str, exc: Optional[BaseException]) -> None:
        logger.warning(
            "stored_scenes_unreadable",
            extra={"kv.key_ref": key_ref, "reason": reason, "error": str(exc) if exc else None},
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def validate_payload(self, payload: Any, size_hint: Optional[int] = None) -> bytes:
        """Check shape, item count and size. Returns the serialized payload."""
        if size_hint is not None and size_hint > self.max_payload_bytes:
            raise ValidationFailure("SSY-VAL-004", detail=f"size hint {size_hint} bytes")

        if not isinstance(payload, dict) or not isinstance(payload.get("scenes"), list):
            raise ValidationFailure("SSY-VAL-002", detail="payload.scenes must be an array")

        count = len(payload["scenes"])
        if count > self.max_scenes:
            raise ValidationFailure(
                "SSY-VAL-003",
                detail=f"{count} scenes (max {self.max_scenes})",
                context={"scene_count": count},
            )

        try:
            body = serialize_payload(payload)
        except ValueError as e:
            raise ValidationFailure("SSY-VAL-002", detail=str(e)) from e
        if len(body) > self.max_payload_bytes:
            raise ValidationFailure("SSY-VAL-004", detail=f"serialized payload {len(body)} bytes")
        return body

    async def save_scenes(self, identity: str, payload: Any, size_hint: Optional[int] = None) -> None:
        """Validate, encrypt and store *payload* as the full scene list for *identity*."""
        body = self.validate_payload(payload, size_hint)
        blob = seal(body, encryption_key_for(identity))
        key = storage_key_for(identity, self.key_prefix)

        try:
            await self._backend.put(key, blob)
        except Exception as e:
            raise StoreFailure(
                "SSY-KV-001",
                detail=str(e),
                context={"key_ref": hash_identity(identity)[:8]},
            ) from e

        logger.info(
            "Saved %d scenes for %s (%d bytes sealed)",
            len(payload["scenes"]), hash_identity(identity)[:8], len(blob),
        )


_service: Optional[SceneStoreService] = None


def get_scene_store() -> SceneStoreService:
    """FastAPI dependency: process-wide service on the configured backend."""
    global _service
    if _service is None:
        _service = SceneStoreService(
            get_kv_backend(),
            max_scenes=settings.max_scenes,
            max_payload_bytes=settings.max_payload_bytes,
            key_prefix=settings.storage_key_prefix,
        )
    return _service
