"""Unit tests for recovery snapshot stores."""

import pytest

from sitesmith.services.exceptions import RecoveryQuotaExceededError
from sitesmith.services.recovery_store import (
    FileRecoveryStore,
    MemoryRecoveryStore,
    cleanup_stale,
    prune_oldest,
    remove_snapshot,
    timestamp_key,
    write_snapshot,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryRecoveryStore()
    return FileRecoveryStore(tmp_path / "recovery")


class TestStores:
    """Both stores behave as keyed string maps."""

    def test_set_get_remove(self, store):
        assert store.get("website-editor-a") is None

        store.set("website-editor-a", "<p>one</p>")
        assert store.get("website-editor-a") == "<p>one</p>"
        assert store.keys() == ["website-editor-a"]

        store.remove("website-editor-a")
        assert store.get("website-editor-a") is None
        store.remove("website-editor-a")

    def test_overwrite(self, store):
        store.set("k", "first")
        store.set("k", "second")
        assert store.get("k") == "second"

    def test_keys_with_unsafe_characters(self, store):
        store.set("weird/key name", "x")
        assert store.get("weird/key name") == "x"
        assert store.keys() == ["weird/key name"]


class TestQuota:
    """Test byte quotas."""

    @pytest.mark.parametrize("make_store", [
        lambda tmp_path: MemoryRecoveryStore(quota_bytes=10),
        lambda tmp_path: FileRecoveryStore(tmp_path / "recovery", quota_bytes=10),
    ])
    def test_quota_exceeded(self, tmp_path, make_store):
        store = make_store(tmp_path)
        store.set("a", "12345")

        with pytest.raises(RecoveryQuotaExceededError) as exc_info:
            store.set("b", "1234567")

        assert exc_info.value.needed == 12
        assert exc_info.value.quota == 10
        assert store.get("b") is None

    def test_overwrite_does_not_count_old_value(self):
        store = MemoryRecoveryStore(quota_bytes=10)
        store.set("a", "1234567890")
        store.set("a", "0987654321")
        assert store.get("a") == "0987654321"


class TestSnapshotHelpers:
    """Test snapshot/timestamp pairs."""

    def test_write_and_remove(self, store):
        write_snapshot(store, "website-editor-a", "<p>draft</p>", now=1700000000.5)

        assert store.get("website-editor-a") == "<p>draft</p>"
        assert store.get(timestamp_key("website-editor-a")) == "1700000000500"

        remove_snapshot(store, "website-editor-a")
        assert store.keys() == []

    def test_prune_oldest(self, store):
        for n in range(10):
            write_snapshot(store, f"website-editor-{n}", "x", now=1000 + n)

        assert prune_oldest(store) == 2
        assert store.get("website-editor-0") is None
        assert store.get("website-editor-1") is None
        assert store.get("website-editor-2") == "x"

    def test_prune_removes_at_least_one(self, store):
        write_snapshot(store, "website-editor-old", "x", now=1)
        write_snapshot(store, "website-editor-new", "x", now=2)

        assert prune_oldest(store) == 1
        assert store.get("website-editor-old") is None
        assert store.get("website-editor-new") == "x"

    def test_prune_empty_store(self, store):
        assert prune_oldest(store) == 0

    def test_cleanup_stale(self, store):
        day = 86400
        write_snapshot(store, "website-editor-old", "x", now=0)
        write_snapshot(store, "website-editor-fresh", "x", now=9 * day)
        write_snapshot(store, "other-app-old", "x", now=0)

        removed = cleanup_stale(store, 7 * day, now=10 * day)

        assert removed == 1
        assert store.get("website-editor-old") is None
        assert store.get("website-editor-fresh") == "x"
        assert store.get("other-app-old") == "x"

    def test_unparseable_timestamp_counts_as_oldest(self, store):
        store.set("website-editor-bad", "x")
        store.set(timestamp_key("website-editor-bad"), "yesterday")
        write_snapshot(store, "website-editor-good", "x", now=5)

        prune_oldest(store)

        assert store.get("website-editor-bad") is None
        assert store.get("website-editor-good") == "x"

    def test_untimestamped_snapshot_is_pruned_first(self, store):
        store.set("website-editor-orphan", "x" * 990)
        write_snapshot(store, "website-editor-good", "x", now=5)

        assert prune_oldest(store) == 1
        assert store.get("website-editor-orphan") is None
        assert store.get("website-editor-good") == "x"

    def test_orphaned_timestamp_is_pruned(self, store):
        store.set(timestamp_key("website-editor-gone"), "1")
        write_snapshot(store, "website-editor-good", "x", now=5)

        prune_oldest(store)

        assert store.keys() == sorted(["website-editor-good", timestamp_key("website-editor-good")])


class TestSnapshotQuota:
    """Test snapshot writes that hit the quota."""

    def test_failed_timestamp_write_rolls_back_content(self):
        # Room for the content but not for its timestamp
        store = MemoryRecoveryStore(quota_bytes=12)

        with pytest.raises(RecoveryQuotaExceededError):
            write_snapshot(store, "website-editor-a", "x" * 10, now=1700000000)

        assert store.keys() == []

    def test_failed_write_drops_previous_snapshot(self):
        store = MemoryRecoveryStore(quota_bytes=30)
        write_snapshot(store, "website-editor-a", "short", now=1)

        with pytest.raises(RecoveryQuotaExceededError):
            write_snapshot(store, "website-editor-a", "x" * 27, now=2)

        assert store.keys() == []

    def test_prune_frees_space_held_by_half_written_snapshot(self):
        store = MemoryRecoveryStore(quota_bytes=1000)
        store.set("website-editor-old", "x" * 990)

        with pytest.raises(RecoveryQuotaExceededError):
            write_snapshot(store, "website-editor-new", "y" * 100)

        prune_oldest(store)
        write_snapshot(store, "website-editor-new", "y" * 100)

        assert store.get("website-editor-old") is None
        assert store.get("website-editor-new") == "y" * 100
