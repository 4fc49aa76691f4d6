"""Unit tests for platyplex/core/cache_store.py.

Covers the on-disk format, atomic persistence, strict schema validation,
merge-on-load and the immutability of completed records.
"""

from __future__ import annotations

import json
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from platyplex.core.cache_store import (
    CacheStore,
    default_cache_path,
    load_cache,
    persist_cache,
)
from platyplex.core.errors import PersistenceError
from platyplex.core.models import CacheRecord

WHEN = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestDefaultCachePath:
    @pytest.mark.unit
    def test_replaces_extension_with_suffix(self):
        assert default_cache_path(Path("runs/drops.json")) == Path("runs/drops-cache.json")

    @pytest.mark.unit
    def test_custom_suffix(self):
        assert default_cache_path(Path("drops.json"), ".cache.json") == Path("drops.cache.json")


class TestLoadCache:
    @pytest.mark.unit
    def test_missing_file_is_empty(self, temp_dir):
        assert load_cache(temp_dir / "nope.json") == {}

    @pytest.mark.unit
    def test_reads_short_keys(self, temp_dir):
        path = temp_dir / "c.json"
        path.write_text(json.dumps({
            "M1": {"to": "A", "txid": "T1", "date": "2024-05-01T12:00:00+00:00"},
            "M2": {"to": "B"},
        }))
        records = load_cache(path)
        assert records["M1"].transaction_id == "T1"
        assert records["M1"].timestamp == WHEN
        assert records["M1"].is_complete
        assert records["M2"].transaction_id is None
        assert not records["M2"].is_complete

    @pytest.mark.unit
    def test_bad_json_raises_persistence_error(self, temp_dir):
        path = temp_dir / "c.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError):
            load_cache(path)

    @pytest.mark.unit
    @pytest.mark.parametrize("payload", [
        [],
        {"M1": "T1"},
        {"M1": {"txid": "T1"}},
        {"M1": {"to": "A", "txid": ""}},
        {"M1": {"to": "A", "txid": "T1", "extra": 1}},
        {"M1": {"to": "A", "date": "yesterday"}},
    ])
    def test_schema_mismatch_raises_persistence_error(self, temp_dir, payload):
        path = temp_dir / "c.json"
        path.write_text(json.dumps(payload))
        with pytest.raises(PersistenceError):
            load_cache(path)


class TestPersistCache:
    @pytest.mark.unit
    def test_writes_short_keys_and_omits_missing(self, temp_dir):
        path = temp_dir / "c.json"
        persist_cache(path, {
            "M1": CacheRecord(destination="A", transaction_id="T1", timestamp=WHEN),
            "M2": CacheRecord(destination="B"),
        })
        data = json.loads(path.read_text())
        assert data["M1"]["to"] == "A"
        assert data["M1"]["txid"] == "T1"
        assert data["M1"]["date"].startswith("2024-05-01T12:00:00")
        assert data["M2"] == {"to": "B"}

    @pytest.mark.unit
    def test_creates_parent_directory(self, temp_dir):
        path = temp_dir / "nested" / "dir" / "c.json"
        persist_cache(path, {})
        assert json.loads(path.read_text()) == {}

    @pytest.mark.unit
    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_new_file_is_world_readable(self, temp_dir):
        path = temp_dir / "c.json"
        persist_cache(path, {})
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    @pytest.mark.unit
    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_rewrite_keeps_existing_mode(self, temp_dir):
        path = temp_dir / "c.json"
        path.write_text("{}")
        os.chmod(path, 0o664)
        persist_cache(path, {"M1": CacheRecord(destination="A", transaction_id="T1")})
        assert stat.S_IMODE(path.stat().st_mode) == 0o664

    @pytest.mark.unit
    def test_failed_replace_keeps_old_content(self, temp_dir):
        path = temp_dir / "c.json"
        persist_cache(path, {"M1": CacheRecord(destination="A", transaction_id="T1")})
        with patch("platyplex.core.cache_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                persist_cache(path, {"M2": CacheRecord(destination="B", transaction_id="T2")})
        assert set(load_cache(path)) == {"M1"}
        leftovers = [p for p in os.listdir(temp_dir) if p.endswith(".tmp")]
        assert leftovers == []


class TestCacheStore:
    @pytest.mark.unit
    def test_memory_only_store_never_touches_disk(self, temp_dir):
        store = CacheStore(None)
        store.record_success("M1", "A", "T1", WHEN)
        store.persist()
        assert not store.durable
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.unit
    def test_record_success_then_reload(self, temp_dir):
        path = temp_dir / "c.json"
        store = CacheStore(path)
        store.ensure_pending("M1", "A")
        store.record_success("M1", "A", "T1", WHEN)
        store.persist()

        reloaded = CacheStore(path).load()
        assert reloaded.completed("M1").transaction_id == "T1"
        assert reloaded.completed("M1").destination == "A"

    @pytest.mark.unit
    def test_completed_record_is_never_overwritten(self):
        store = CacheStore(None)
        store.record_success("M1", "A", "T1", WHEN)
        with pytest.raises(PersistenceError):
            store.record_success("M1", "A", "T2", WHEN)
        assert store.completed("M1").transaction_id == "T1"

    @pytest.mark.unit
    def test_ensure_pending_keeps_existing_record(self):
        store = CacheStore(None)
        store.record_success("M1", "A", "T1", WHEN)
        record = store.ensure_pending("M1", "Z")
        assert record.transaction_id == "T1"
        assert record.destination == "A"

    @pytest.mark.unit
    def test_pending_record_is_not_completed(self):
        store = CacheStore(None)
        store.ensure_pending("M1", None)
        assert "M1" in store
        assert store.completed("M1") is None
        assert store.get("M1").destination == ""

    @pytest.mark.unit
    def test_load_merges_without_dropping_completed_memory_records(self, temp_dir):
        path = temp_dir / "c.json"
        path.write_text(json.dumps({
            "M1": {"to": "A"},
            "M2": {"to": "B", "txid": "disk-T2"},
        }))
        store = CacheStore(path)
        store.record_success("M1", "A", "mem-T1", WHEN)
        store.load()
        assert store.completed("M1").transaction_id == "mem-T1"
        assert store.completed("M2").transaction_id == "disk-T2"
        assert len(store) == 2

    @pytest.mark.unit
    def test_load_invalid_file_raises(self, temp_dir):
        path = temp_dir / "c.json"
        path.write_text("[]")
        with pytest.raises(PersistenceError):
            CacheStore(path).load()

    @pytest.mark.unit
    def test_lock_rejects_second_holder(self, temp_dir):
        path = temp_dir / "c.json"
        first = CacheStore(path)
        second = CacheStore(path)
        with first.lock():
            with pytest.raises(PersistenceError, match="in use"):
                with second.lock():
                    pass
        with second.lock():
            pass
