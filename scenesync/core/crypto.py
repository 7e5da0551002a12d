"""
Scene Payload Encryption
========================

AES-256-GCM sealing of stored scene payloads.

- Key: SHA-256(identity), see key_derivation.encryption_key_for
- Nonce: 96 bits, fresh from os.urandom on every seal
- Format: base64(nonce || ciphertext || 16-byte tag)

Records written before encryption was introduced are raw JSON objects;
is_encrypted() tells the two apart by the first character.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from scenesync.core.key_derivation import encryption_key_for

NONCE_LENGTH = 12  # 96-bit nonce
TAG_LENGTH = 16


class PayloadDecryptError(Exception):
    """Sealed blob could not be decoded or failed authentication."""


def seal(plaintext: bytes, key: bytes) -> str:
    """Encrypt *plaintext* under *key*. Returns the base64 transport string."""
    aesgcm = AESGCM(key)
    nonce = os.urandom(NONCE_LENGTH)
    ct_with_tag = aesgcm.encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ct_with_tag).decode("ascii")


def open_sealed(blob: str, key: bytes) -> bytes:
    """Decrypt a blob produced by seal().

    Fails closed: any decoding, framing, or authentication problem raises
    PayloadDecryptError and no plaintext is returned.
    """
    try:
        combined = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecryptError(f"invalid base64: {e}") from e

    if len(combined) < NONCE_LENGTH + TAG_LENGTH:
        raise PayloadDecryptError(f"sealed blob too short ({len(combined)} bytes)")

    nonce = combined[:NONCE_LENGTH]
    ct_with_tag = combined[NONCE_LENGTH:]
    try:
        return AESGCM(key).decrypt(nonce, ct_with_tag, None)
    except InvalidTag as e:
        raise PayloadDecryptError("authentication tag mismatch") from e
    except ValueError as e:
        # wrong key length
        raise PayloadDecryptError(str(e)) from e


def encrypt_text(plaintext: str, identity: str) -> str:
    """Seal UTF-8 *plaintext* under the key derived from *identity*."""
    return seal(plaintext.encode("utf-8"), encryption_key_for(identity))


def decrypt_text(blob: str, identity: str) -> str:
    """Inverse of encrypt_text()."""
    plaintext = open_sealed(blob, encryption_key_for(identity))
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadDecryptError("plaintext is not valid UTF-8") from e


def is_encrypted(raw: str) -> bool:
    """True unless *raw* is a legacy plaintext JSON object (starts with '{')."""
    return not raw.startswith("{")
