"""
Identity -> storage key / encryption key derivation.

All functions are pure: SHA-256 over the UTF-8 bytes of the identity, no
salt, no randomness, no I/O. The identity is therefore key material and
must never be logged or stored in the clear.

Storage key generations:
    legacy   scenes:<raw identity>          (read-only fallback)
    current  scenes:<sha256 hex, 32 chars>  (128 of 256 bits)
"""

from __future__ import annotations

import hashlib

DEFAULT_PREFIX = "scenes:"
KEY_HASH_LENGTH = 32  # hex characters


def _digest(identity: str) -> bytes:
    return hashlib.sha256(identity.encode("utf-8")).digest()


def hash_identity(identity: str) -> str:
    """Opaque, truncated hex hash of *identity* used in storage keys."""
    return _digest(identity).hex()[:KEY_HASH_LENGTH]


def storage_key_for(identity: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}{hash_identity(identity)}"


def legacy_storage_key_for(identity: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}{identity}"


def encryption_key_for(identity: str) -> bytes:
    """AES-256 key for *identity*. The full 32-byte digest, untruncated."""
    return _digest(identity)
