"""
Unit tests for catalog_store: reading, atomic writing and timestamp refresh.
"""

import json
import os
from datetime import datetime, timezone

import pytest

import catalog_store
from catalog_store import CatalogWriteError, read_catalog, touch_catalog, write_catalog

JAN_1 = datetime(2025, 1, 1, 6, 0, tzinfo=timezone.utc)
FEB_1 = datetime(2025, 2, 1, 6, 0, tzinfo=timezone.utc)


class TestReadCatalog:
    """Tests for read_catalog."""

    def test_missing_file(self, tmp_path):
        assert read_catalog(tmp_path / "events-data.json") is None

    def test_corrupt_json(self, tmp_path):
        path = tmp_path / "events-data.json"
        path.write_text("{not json", encoding="utf-8")

        assert read_catalog(path) is None

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "events-data.json"
        path.write_text(json.dumps({"lastUpdated": "x", "events": "none"}), encoding="utf-8")

        assert read_catalog(path) is None

    def test_malformed_entries_skipped(self, tmp_path, create_event):
        path = tmp_path / "events-data.json"
        good = create_event(title="Spring Mixer")
        path.write_text(json.dumps({
            "lastUpdated": "2025-01-01T06:00:00+00:00",
            "events": [good.to_dict(), {"title": "No chamber", "date": "2025-04-01"}],
        }), encoding="utf-8")

        catalog = read_catalog(path)

        assert catalog.events == [good]
        assert catalog.last_updated == "2025-01-01T06:00:00+00:00"


class TestWriteCatalog:
    """Tests for write_catalog and touch_catalog."""

    def test_written_shape(self, tmp_path, create_event):
        path = tmp_path / "events-data.json"
        events = [create_event(title="Spring Mixer"), create_event(title="Tech Meetup Night")]

        write_catalog(path, events, now=JAN_1)
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["lastUpdated"] == "2025-01-01T06:00:00+00:00"
        assert [e["title"] for e in data["events"]] == ["Spring Mixer", "Tech Meetup Night"]
        assert read_catalog(path).events == events

    def test_creates_parent_directory(self, tmp_path, create_event):
        path = tmp_path / "site" / "events-data.json"
        write_catalog(path, [create_event()])

        assert path.exists()

    def test_touch_keeps_events_and_refreshes_timestamp(self, tmp_path, create_event):
        path = tmp_path / "events-data.json"
        events = [create_event(title="Spring Mixer")]
        write_catalog(path, events, now=JAN_1)

        touch_catalog(path, read_catalog(path), now=FEB_1)
        catalog = read_catalog(path)

        assert catalog.events == events
        assert catalog.last_updated == "2025-02-01T06:00:00+00:00"

    def test_touch_without_catalog_writes_empty_one(self, tmp_path):
        path = tmp_path / "events-data.json"
        touch_catalog(path, None, now=FEB_1)

        assert read_catalog(path).events == []

    def test_unwritable_location_raises(self, tmp_path, create_event):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(CatalogWriteError):
            write_catalog(blocker / "events-data.json", [create_event()])

    def test_failed_replace_keeps_previous_catalog(self, tmp_path, create_event, monkeypatch):
        path = tmp_path / "events-data.json"
        write_catalog(path, [create_event(title="Spring Mixer")], now=JAN_1)
        before = path.read_text(encoding="utf-8")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(catalog_store.os, "replace", broken_replace)

        with pytest.raises(CatalogWriteError):
            write_catalog(path, [], now=FEB_1)

        assert path.read_text(encoding="utf-8") == before
        assert os.listdir(tmp_path) == ["events-data.json"]
