"""Tests for the processed link store."""

import json

from satirefeed.storage.history import ProcessedLinkStore


class TestProcessedLinkStore:

    def test_in_memory(self):
        store = ProcessedLinkStore()

        store.add("https://news.example.com/1")

        assert store.has("https://news.example.com/1")
        assert not store.has("https://news.example.com/2")
        assert len(store) == 1

    def test_empty_link_ignored(self):
        store = ProcessedLinkStore()

        store.add("")

        assert len(store) == 0
        assert not store.has("")

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "data" / "processed_links.json"

        ProcessedLinkStore(path).add("https://news.example.com/1")
        reloaded = ProcessedLinkStore(path)

        assert "https://news.example.com/1" in reloaded
        assert json.loads(path.read_text()) == ["https://news.example.com/1"]

    def test_corrupt_file_starts_fresh(self, tmp_path):
        path = tmp_path / "processed_links.json"
        path.write_text("{not json")

        store = ProcessedLinkStore(path)

        assert len(store) == 0
        store.add("https://news.example.com/1")
        assert json.loads(path.read_text()) == ["https://news.example.com/1"]

    def test_non_list_file_starts_fresh(self, tmp_path):
        path = tmp_path / "processed_links.json"
        path.write_text('{"links": ["https://news.example.com/1"]}')

        assert len(ProcessedLinkStore(path)) == 0

    def test_clear(self, tmp_path):
        path = tmp_path / "processed_links.json"
        store = ProcessedLinkStore(path)
        store.add("https://news.example.com/1")
        store.add("https://news.example.com/2")

        assert store.clear() == 2
        assert len(store) == 0
        assert not path.exists()
        assert len(ProcessedLinkStore(path)) == 0
