"""Tests for the JSON store and the settings, stats and bookmark layers.

WHY: A broken or hand-edited data file must never stop the reader from
starting. Loading falls back to defaults; saving is atomic.
"""

import json

import pytest

from rsvp_reader.config import MIN_WPM
from rsvp_reader.core.pacing import PacingConfig
from rsvp_reader.storage import (
    ReaderSettings,
    ReadingStats,
    add_bookmark,
    default_store,
    load_bookmarks,
    load_settings,
    load_stats,
    record_session,
    remove_bookmark,
    save_settings,
    save_stats,
    update_bookmark,
    update_stats,
)
from rsvp_reader.storage.settings import SETTINGS_KEY
from rsvp_reader.storage.stats import STATS_KEY


def _write_raw(store, key, content):
    store.directory.mkdir(parents=True, exist_ok=True)
    store.path_for(key).write_text(content, encoding="utf-8")


# ---------------------------------------------------------------------------
# JSONStore
# ---------------------------------------------------------------------------


class TestJSONStore:

    def test_missing_key_returns_default(self, store):
        assert store.load("nothing", default={"a": 1}) == {"a": 1}

    def test_save_and_load(self, store):
        assert store.save("thing", {"value": [1, 2, 3]}) is True
        assert store.load("thing") == {"value": [1, 2, 3]}

    def test_save_creates_directory(self, store):
        assert not store.directory.exists()
        store.save("thing", 1)
        assert store.path_for("thing").exists()

    def test_save_leaves_no_temp_files(self, store):
        store.save("thing", {"x": 1})
        store.save("thing", {"x": 2})
        assert [p.name for p in store.directory.iterdir()] == ["thing.json"]

    def test_corrupt_json_returns_default(self, store):
        _write_raw(store, "thing", "{not json")
        assert store.load("thing", default="fallback") == "fallback"

    def test_schema_mismatch_returns_default(self, store):
        store.save("thing", {"count": "many"})
        schema = {"type": "object", "properties": {"count": {"type": "integer"}}}
        assert store.load("thing", default=None, schema=schema) is None

    def test_unserializable_value_returns_false(self, store):
        assert store.save("thing", {"bad": object()}) is False
        assert store.load("thing") is None

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_invalid_keys_rejected(self, store, key):
        with pytest.raises(ValueError):
            store.path_for(key)

    def test_delete(self, store):
        store.save("thing", 1)
        assert store.delete("thing") is True
        assert store.delete("thing") is False

    def test_default_store_directory(self, tmp_path):
        assert default_store(tmp_path).directory == tmp_path


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:

    def test_defaults_when_nothing_stored(self, store):
        settings = load_settings(store)
        assert settings == ReaderSettings()
        assert settings.pacing() == PacingConfig(
            words_per_minute=settings.words_per_minute,
            chunk_size=settings.chunk_size,
            punctuation_pause_factor=settings.punctuation_pause_factor,
            short_word_speedup_factor=settings.short_word_speedup_factor,
        )

    def test_round_trip(self, store):
        settings = ReaderSettings(theme="light", words_per_minute=450, chunk_size=2)
        assert save_settings(store, settings) is True
        assert load_settings(store) == settings

    def test_partial_file_merges_over_defaults(self, store):
        store.save(SETTINGS_KEY, {"words_per_minute": 500, "unknown_key": True})
        settings = load_settings(store)
        assert settings.words_per_minute == 500
        assert settings.theme == "dark"

    def test_stored_pacing_is_normalized(self, store):
        store.save(SETTINGS_KEY, {"words_per_minute": 0, "chunk_size": 0})
        settings = load_settings(store)
        assert settings.words_per_minute == MIN_WPM
        assert settings.chunk_size == 1

    def test_wrong_type_falls_back_to_defaults(self, store):
        store.save(SETTINGS_KEY, {"words_per_minute": "fast"})
        assert load_settings(store) == ReaderSettings()


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class TestStats:

    def test_update_recomputes_average(self):
        stats = update_stats(ReadingStats(start_time=0), words_read=300, time_spent=60)
        assert stats.words_read == 300
        assert stats.time_spent == 60
        assert stats.average_wpm == 300

    def test_update_accumulates(self):
        stats = ReadingStats(start_time=0)
        stats = update_stats(stats, 100, 30)
        stats = update_stats(stats, 200, 30)
        assert stats.words_read == 300
        assert stats.average_wpm == 300

    def test_zero_time_keeps_previous_average(self):
        stats = update_stats(ReadingStats(average_wpm=42, start_time=0), 10, 0)
        assert stats.average_wpm == 42

    def test_update_does_not_mutate(self):
        original = ReadingStats(start_time=0)
        update_stats(original, 10, 10)
        assert original.words_read == 0

    def test_record_session_counts(self):
        stats = record_session(ReadingStats(start_time=0), 50, 10)
        assert stats.sessions == 1
        assert stats.average_wpm == 300

    def test_round_trip(self, store):
        stats = record_session(ReadingStats(start_time=123.0), 50, 10)
        save_stats(store, stats)
        assert load_stats(store) == stats

    def test_invalid_file_gives_fresh_stats(self, store):
        store.save(STATS_KEY, {"words_read": -5, "time_spent": 1})
        assert load_stats(store).words_read == 0


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------


class TestBookmarks:

    def test_empty_by_default(self, store):
        assert load_bookmarks(store) == []

    def test_add_and_load(self, store):
        bookmark = add_bookmark(store, title="Book", text="world!", position=1, note="here")
        assert len(bookmark.id) == 32
        assert load_bookmarks(store) == [bookmark]

    def test_ids_are_unique(self, store):
        first = add_bookmark(store, "Book", "a", 1)
        second = add_bookmark(store, "Book", "a", 1)
        assert first.id != second.id
        assert len(load_bookmarks(store)) == 2

    def test_remove(self, store):
        bookmark = add_bookmark(store, "Book", "a", 3)
        assert remove_bookmark(store, "unknown") is False
        assert remove_bookmark(store, bookmark.id) is True
        assert load_bookmarks(store) == []

    def test_update_keeps_id_and_timestamp(self, store):
        bookmark = add_bookmark(store, "Book", "a", 3)
        updated = update_bookmark(
            store, bookmark.id, note="changed", position=7, id="other", timestamp=0,
        )
        assert updated.note == "changed"
        assert updated.position == 7
        assert updated.id == bookmark.id
        assert updated.timestamp == bookmark.timestamp
        assert load_bookmarks(store) == [updated]

    def test_update_unknown_returns_none(self, store):
        assert update_bookmark(store, "missing", note="x") is None

    def test_extra_stored_keys_ignored(self, store):
        bookmark = add_bookmark(store, "Book", "a", 3)
        path = store.path_for("rsvp-reader-bookmarks")
        data = json.loads(path.read_text(encoding="utf-8"))
        data[0]["color"] = "red"
        path.write_text(json.dumps(data), encoding="utf-8")
        assert load_bookmarks(store) == [bookmark]
