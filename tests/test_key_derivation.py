"""Tests for identity -> storage key / encryption key derivation."""

import hashlib

from scenesync.core.key_derivation import (
    encryption_key_for,
    hash_identity,
    legacy_storage_key_for,
    storage_key_for,
)


class TestStorageKey:
    def test_matches_truncated_sha256(self):
        expected = hashlib.sha256(b"user123").hexdigest()[:32]
        assert storage_key_for("user123") == f"scenes:{expected}"

    def test_deterministic(self):
        assert storage_key_for("user123") == storage_key_for("user123")

    def test_distinct_identities_distinct_keys(self):
        keys = {storage_key_for(f"user{i}") for i in range(500)}
        assert len(keys) == 500

    def test_hash_is_lowercase_hex_32_chars(self):
        h = hash_identity("Spotify User Ünïcode")
        assert len(h) == 32
        assert h == h.lower()
        int(h, 16)

    def test_does_not_leak_identity(self):
        assert "user123" not in storage_key_for("user123")

    def test_custom_prefix(self):
        assert storage_key_for("user123", prefix="x:").startswith("x:")


class TestLegacyStorageKey:
    def test_raw_identity(self):
        assert legacy_storage_key_for("user123") == "scenes:user123"

    def test_differs_from_current_key(self):
        assert legacy_storage_key_for("user123") != storage_key_for("user123")


class TestEncryptionKey:
    def test_full_digest(self):
        key = encryption_key_for("user123")
        assert len(key) == 32
        assert key == hashlib.sha256(b"user123").digest()

    def test_deterministic(self):
        assert encryption_key_for("abc") == encryption_key_for("abc")

    def test_distinct_identities(self):
        assert encryption_key_for("user123") != encryption_key_for("user456")

    def test_utf8_encoding(self):
        assert encryption_key_for("é") == hashlib.sha256("é".encode("utf-8")).digest()
