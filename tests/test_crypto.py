"""
Tests for AES-256-GCM payload sealing and legacy format detection.
"""

import base64
import json

import pytest

from scenesync.core.crypto import (
    NONCE_LENGTH,
    TAG_LENGTH,
    PayloadDecryptError,
    decrypt_text,
    encrypt_text,
    is_encrypted,
    open_sealed,
    seal,
)
from scenesync.core.key_derivation import encryption_key_for

KEY = encryption_key_for("user123")


class TestSealOpen:
    def test_round_trip(self):
        payload = {"scenes": [{"id": "s1", "name": "Morning", "volume": 40}]}
        plaintext = json.dumps(payload).encode()
        blob = seal(plaintext, KEY)
        assert json.loads(open_sealed(blob, KEY)) == payload

    def test_round_trip_empty_plaintext(self):
        assert open_sealed(seal(b"", KEY), KEY) == b""

    def test_blob_layout(self):
        plaintext = b"hello scenes"
        raw = base64.b64decode(seal(plaintext, KEY))
        assert len(raw) == NONCE_LENGTH + len(plaintext) + TAG_LENGTH

    def test_blob_is_not_json(self):
        blob = seal(b'{"scenes": []}', KEY)
        assert not blob.startswith("{")
        with pytest.raises(ValueError):
            json.loads(blob)

    def test_fresh_nonce_every_call(self):
        blobs = {seal(b"same plaintext", KEY) for _ in range(50)}
        nonces = {base64.b64decode(b)[:NONCE_LENGTH] for b in blobs}
        assert len(blobs) == 50
        assert len(nonces) == 50

    def test_wrong_key_fails(self):
        blob = seal(b"secret", KEY)
        with pytest.raises(PayloadDecryptError):
            open_sealed(blob, encryption_key_for("user456"))

    def test_every_single_byte_flip_detected(self):
        blob = seal(b'{"scenes": [{"id": "s1"}]}', KEY)
        raw = base64.b64decode(blob)
        for i in range(len(raw)):
            tampered = bytearray(raw)
            tampered[i] ^= 0x01
            with pytest.raises(PayloadDecryptError):
                open_sealed(base64.b64encode(bytes(tampered)).decode(), KEY)

    def test_truncated_blob(self):
        raw = base64.b64decode(seal(b"secret", KEY))
        with pytest.raises(PayloadDecryptError, match="too short"):
            open_sealed(base64.b64encode(raw[:20]).decode(), KEY)

    def test_invalid_base64(self):
        with pytest.raises(PayloadDecryptError, match="invalid base64"):
            open_sealed("not base64 at all!!", KEY)

    def test_empty_blob(self):
        with pytest.raises(PayloadDecryptError):
            open_sealed("", KEY)


class TestTextHelpers:
    def test_identity_bound_round_trip(self):
        blob = encrypt_text("Morning ☀", "user123")
        assert decrypt_text(blob, "user123") == "Morning ☀"

    def test_other_identity_cannot_read(self):
        blob = encrypt_text("Morning", "user123")
        with pytest.raises(PayloadDecryptError):
            decrypt_text(blob, "user456")


class TestIsEncrypted:
    @pytest.mark.parametrize("raw", ["{}", '{"scenes": []}', "{garbage"])
    def test_legacy_json(self, raw):
        assert is_encrypted(raw) is False

    @pytest.mark.parametrize("raw", ["", "abc", " {", "[]", "eyJzY2VuZXMiOiBbXX0="])
    def test_everything_else(self, raw):
        assert is_encrypted(raw) is True

    def test_sealed_blob(self):
        assert is_encrypted(seal(b"{}", KEY)) is True
