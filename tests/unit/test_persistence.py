"""
Unit tests for the persistence policy.

Tests bootstrap of backing files, snapshot parsing and flush modes.
"""

import json
from unittest.mock import patch

import pytest

from jsondb_engine.core.persistence import (JsonFilePersistence,
                                            backing_file_path, encode_snapshot,
                                            load_or_initialize, serialize)
from jsondb_engine.exceptions import PersistenceError


def test_backing_file_path(tmp_path):
    assert backing_file_path(tmp_path, "users") == tmp_path / "users.json"


class TestSerialize:
    def test_wraps_documents_under_collection_name(self):
        payload = serialize("users", [{"name": "Ann"}], indent=2)
        assert json.loads(payload) == {"users": [{"name": "Ann"}]}

    def test_indentation(self):
        payload = serialize("users", [{"name": "Ann"}], indent=4)
        assert '\n    "users": [' in payload

    def test_zero_indent_is_compact(self):
        assert serialize("users", [], indent=0) == '{"users": []}'

    def test_non_ascii_is_kept(self):
        assert "Åse" in serialize("users", [{"name": "Åse"}], indent=2)


class TestLoadOrInitialize:
    """Test loading a collection on first access."""

    def test_missing_file_creates_directory_and_file(self, data_dir, read_backing_file):
        path = backing_file_path(data_dir, "users")
        assert not data_dir.exists()

        documents = load_or_initialize("users", path)

        assert documents == []
        assert path.exists()
        assert read_backing_file(path) == {"users": []}
        assert path.read_text(encoding="utf-8") == '{\n  "users": []\n}'

    def test_existing_file_is_loaded_in_order(self, data_dir):
        data_dir.mkdir()
        path = backing_file_path(data_dir, "users")
        path.write_text(
            json.dumps({"users": [{"name": "Ann"}, {"name": "Bob"}]}), encoding="utf-8"
        )

        assert load_or_initialize("users", path) == [{"name": "Ann"}, {"name": "Bob"}]

    def test_missing_collection_key_yields_empty_collection(self, data_dir):
        data_dir.mkdir()
        path = backing_file_path(data_dir, "users")
        path.write_text(json.dumps({"other": [{"x": 1}]}), encoding="utf-8")

        assert load_or_initialize("users", path) == []

    @pytest.mark.parametrize(
        "content, message",
        [
            ("{not json", "not valid JSON"),
            ("[]", "must hold a JSON object"),
            ('{"users": {"name": "Ann"}}', "must be an array"),
            ('{"users": [1, 2]}', "is not an object"),
        ],
    )
    def test_malformed_file_raises(self, data_dir, content, message):
        data_dir.mkdir()
        path = backing_file_path(data_dir, "users")
        path.write_text(content, encoding="utf-8")

        with pytest.raises(PersistenceError, match=message) as exc_info:
            load_or_initialize("users", path)
        assert exc_info.value.path == str(path)

    def test_unreadable_path_raises(self, tmp_path):
        # A directory where the file should be cannot be read as text
        path = tmp_path / "users.json"
        path.mkdir()
        with pytest.raises(PersistenceError, match="Could not read backing file"):
            load_or_initialize("users", path)

    def test_uncreatable_directory_raises(self, tmp_path):
        blocker = tmp_path / "data"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        path = blocker / "users.json"
        with pytest.raises(PersistenceError):
            load_or_initialize("users", path)


class TestFlush:
    """Test snapshot flushing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("write_sync", [True, False])
    async def test_flush_overwrites_full_snapshot(self, tmp_path, read_backing_file, write_sync):
        path = tmp_path / "users.json"
        persistence = JsonFilePersistence("users", path, write_sync=write_sync)

        await persistence.flush([{"name": "Ann"}, {"name": "Bob"}])
        await persistence.flush([{"name": "Cid"}])

        assert read_backing_file(path) == {"users": [{"name": "Cid"}]}

    @pytest.mark.asyncio
    async def test_sync_flush_does_not_use_worker_thread(self, tmp_path):
        persistence = JsonFilePersistence("users", tmp_path / "users.json", write_sync=True)
        with patch("jsondb_engine.core.persistence.asyncio.to_thread") as to_thread:
            await persistence.flush([])
        to_thread.assert_not_called()

    @pytest.mark.asyncio
    async def test_deferred_flush_uses_worker_thread(self, tmp_path, read_backing_file):
        path = tmp_path / "users.json"
        persistence = JsonFilePersistence("users", path, write_sync=False)

        calls = []

        async def fake_to_thread(func, *args):
            calls.append(func)
            return func(*args)

        with patch("jsondb_engine.core.persistence.asyncio.to_thread", side_effect=fake_to_thread):
            await persistence.flush([{"name": "Ann"}])

        assert len(calls) == 1
        assert read_backing_file(path) == {"users": [{"name": "Ann"}]}

    @pytest.mark.asyncio
    async def test_configure_changes_indentation(self, tmp_path):
        path = tmp_path / "users.json"
        persistence = JsonFilePersistence("users", path)
        persistence.configure(write_sync=True, indent=4)

        await persistence.flush([{"name": "Ann"}])

        assert '\n    "users"' in path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path):
        path = tmp_path / "missing-dir" / "users.json"
        persistence = JsonFilePersistence("users", path)

        with pytest.raises(PersistenceError, match="Could not write backing file"):
            await persistence.flush([])

    @pytest.mark.asyncio
    async def test_unencodable_text_leaves_file_intact(self, tmp_path, read_backing_file):
        path = tmp_path / "users.json"
        persistence = JsonFilePersistence("users", path)
        await persistence.flush([{"name": "Ann"}])

        with pytest.raises(PersistenceError, match="cannot be encoded"):
            await persistence.flush([{"name": "Ann"}, {"name": "bad\ud800"}])

        assert read_backing_file(path) == {"users": [{"name": "Ann"}]}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_numbers_are_not_written(self, tmp_path, read_backing_file, number):
        path = tmp_path / "users.json"
        persistence = JsonFilePersistence("users", path)
        await persistence.flush([{"score": 1.5}])

        with pytest.raises(PersistenceError, match="cannot be written as JSON"):
            await persistence.flush([{"score": number}])

        assert read_backing_file(path) == {"users": [{"score": 1.5}]}


def test_encode_snapshot_returns_utf8_bytes(tmp_path):
    payload = encode_snapshot("users", [{"name": "Åse"}], 0, tmp_path / "users.json")
    assert payload == '{"users": [{"name": "Åse"}]}'.encode("utf-8")


def test_invalid_utf8_file_raises(data_dir):
    data_dir.mkdir()
    path = backing_file_path(data_dir, "users")
    path.write_bytes(b'{"users": [{"name": "\xff"}]}')

    with pytest.raises(PersistenceError, match="not valid utf-8") as exc_info:
        load_or_initialize("users", path)
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
