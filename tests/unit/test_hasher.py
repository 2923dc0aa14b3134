"""Tests for canonical hashing helpers."""

from __future__ import annotations

from noncegate.core.hasher import canonical_json_bytes, compute_record_hash, sha256_hex


class TestHasher:
    def test_canonical_json_is_sorted_and_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_sha256_hex(self):
        assert sha256_hex(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_record_hash_ignores_record_hash_field(self):
        fields = {"source_id": "w", "nonce": 1}
        assert compute_record_hash(fields) == compute_record_hash(
            {**fields, "record_hash": "anything"}
        )

    def test_record_hash_depends_on_content(self):
        assert compute_record_hash({"nonce": 1}) != compute_record_hash({"nonce": 2})
