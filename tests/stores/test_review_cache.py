"""Tests for the reviewer output cache."""

from __future__ import annotations

import json
from pathlib import Path

from auracoil.stores.review_cache import ReviewCache


def test_cache_round_trip(tmp_path: Path) -> None:
    cache = ReviewCache(tmp_path)

    path = cache.store("abc123", '{"suggestions": []}')

    assert path == tmp_path / ".auracoil" / "cache" / "abc123.json"
    assert cache.get("abc123") == '{"suggestions": []}'
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert set(stored) == {"hash", "timestamp", "content"}


def test_cache_miss(tmp_path: Path) -> None:
    assert ReviewCache(tmp_path).get("nothing") is None


def test_cache_ignores_entries_with_mismatched_hash(tmp_path: Path) -> None:
    cache = ReviewCache(tmp_path)
    path = cache.store("abc123", "content")
    path.write_text(json.dumps({"hash": "other", "content": "content"}), encoding="utf-8")

    assert cache.get("abc123") is None


def test_cache_ignores_corrupt_entries(tmp_path: Path) -> None:
    cache = ReviewCache(tmp_path)
    cache.store("abc123", "content").write_text("garbage", encoding="utf-8")

    assert cache.get("abc123") is None
