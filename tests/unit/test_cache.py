"""Unit tests for the sync cache."""

import json

import pytest
from structlog.testing import capture_logs

from locale_sync.core.cache import SyncCache, SyncCacheStore
from locale_sync.core.store import CACHE_FILENAME


class TestSyncCache:
    """Test the in-memory snapshot."""

    def test_snapshot(self):
        """Test a snapshot flattens the source to strings."""
        cache = SyncCache.snapshot({"a": {"b": "x"}, "n": 2}, "en")

        assert cache.source_lang == "en"
        assert cache.source_data == {"a.b": "x", "n": "2"}
        assert cache.last_sync

    def test_on_disk_form_uses_camel_case(self):
        """Test the file layout uses camelCase keys and reads back unchanged."""
        cache = SyncCache(last_sync="2024-01-01T00:00:00+00:00", source_lang="en", source_data={"a": "x"})

        assert cache.to_dict() == {
            "lastSync": "2024-01-01T00:00:00+00:00",
            "sourceLang": "en",
            "sourceData": {"a": "x"},
        }
        assert SyncCache.from_dict(cache.to_dict()) == cache

    def test_from_dict_rejects_bad_shape(self):
        """Test missing fields and non-objects are refused."""
        with pytest.raises(ValueError):
            SyncCache.from_dict({"sourceLang": "en"})
        with pytest.raises(ValueError):
            SyncCache.from_dict(["not", "a", "dict"])

    def test_from_dict_rejects_mistyped_fields(self):
        """Test a non-string language or non-object snapshot is refused."""
        with pytest.raises(ValueError, match="invalid sync cache"):
            SyncCache.from_dict({"sourceLang": 5, "sourceData": {}})
        with pytest.raises(ValueError, match="invalid sync cache"):
            SyncCache.from_dict({"sourceLang": "en", "sourceData": ["a"]})

    def test_from_dict_normalizes_raw_leaves(self):
        """Test raw JSON leaves in an older file are read as their string form."""
        cache = SyncCache.from_dict({
            "sourceLang": "en",
            "sourceData": {"n": 1, "b": True, "z": None},
            "extra": "ignored",
        })

        assert cache.last_sync == ""
        assert cache.source_data == {"n": "1", "b": "true", "z": "null"}

    def test_from_dict_accepts_snake_case(self):
        """Test field names are accepted as well as camelCase aliases."""
        cache = SyncCache.from_dict({"last_sync": "t", "source_lang": "en", "source_data": {"a": "x"}})

        assert cache == SyncCache(last_sync="t", source_lang="en", source_data={"a": "x"})

    def test_diff_reports_new_and_changed_keys(self):
        """Test added and edited keys are reported in source order."""
        cache = SyncCache.snapshot({"a": "x", "b": "y"}, "en")

        assert cache.diff({"a": "x", "b": "changed", "c": "new"}) == ["b", "c"]

    def test_diff_ignores_removed_keys(self):
        """Test keys dropped from the source are not reported."""
        cache = SyncCache.snapshot({"a": "x", "gone": "y"}, "en")

        assert cache.diff({"a": "x"}) == []

    def test_number_and_string_compare_equal(self):
        """Test 1 and "1" are the same snapshot value."""
        cache = SyncCache.snapshot({"n": 1}, "en")

        assert cache.diff({"n": "1"}) == []


class TestSyncCacheStore:
    """Test cache persistence."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, locales_dir):
        """Test a saved cache loads back equal."""
        store = SyncCacheStore(locales_dir)
        cache = SyncCache.snapshot({"a": "x"}, "en")

        assert await store.save(cache)
        assert store.path == locales_dir / CACHE_FILENAME
        assert await store.load() == cache

    @pytest.mark.asyncio
    async def test_missing_cache(self, locales_dir):
        """Test an absent file means no cache."""
        assert await SyncCacheStore(locales_dir).load() is None

    @pytest.mark.asyncio
    async def test_corrupt_cache_treated_as_absent(self, locales_dir):
        """Test unparsable JSON means no cache."""
        (locales_dir / CACHE_FILENAME).write_text("{broken")

        assert await SyncCacheStore(locales_dir).load() is None

    @pytest.mark.asyncio
    async def test_invalid_cache_logged_and_treated_as_absent(self, locales_dir):
        """Test a well-formed file with the wrong layout is logged and ignored."""
        (locales_dir / CACHE_FILENAME).write_text(json.dumps({"sourceLang": "en"}))

        with capture_logs() as logs:
            assert await SyncCacheStore(locales_dir).load() is None

        assert logs[0]["event"] == "Failed to load sync cache"
        assert "sourceData" in logs[0]["error"]

    @pytest.mark.asyncio
    async def test_save_failure_returns_false(self, locales_dir):
        """Test an unwritable cache path reports failure."""
        (locales_dir / CACHE_FILENAME).mkdir()

        assert not await SyncCacheStore(locales_dir).save(SyncCache.snapshot({}, "en"))

    @pytest.mark.asyncio
    async def test_modified_keys_without_cache_are_all_keys(self, locales_dir):
        """Test every key is modified without a cache."""
        store = SyncCacheStore(locales_dir)

        assert await store.compute_modified_keys({"a": "x", "b": {"c": "y"}}, "en") == ["a", "b.c"]

    @pytest.mark.asyncio
    async def test_modified_keys_with_other_source_language(self, locales_dir):
        """Test a cache for another language is ignored."""
        store = SyncCacheStore(locales_dir)
        await store.save(SyncCache.snapshot({"a": "x"}, "de"))

        assert await store.compute_modified_keys({"a": "x"}, "en") == ["a"]

    @pytest.mark.asyncio
    async def test_modified_keys_against_cache(self, locales_dir):
        """Test only changed and new keys are modified against a cache."""
        (locales_dir / CACHE_FILENAME).write_text(json.dumps({
            "lastSync": "2024-01-01T00:00:00Z",
            "sourceLang": "en",
            "sourceData": {"a": "x", "b": "old", "n": 1},
        }))
        store = SyncCacheStore(locales_dir)

        modified = await store.compute_modified_keys({"a": "x", "b": "new", "n": "1", "c": "z"}, "en")

        assert modified == ["b", "c"]
