"""
Tests for JSON storage and TOML store configuration.
"""

import json

import pytest

from clientbook.config import (
    CONFIG_FILENAME,
    DEFAULT_DATA_FILE,
    StoreConfig,
    get_default_store_path,
    load_config,
    load_or_create_config,
    save_config,
)
from clientbook.errors import StorageError
from clientbook.storage import JsonStorage, load_data
from clientbook.types import Tag

from helpers import index_counts


class TestJsonStorage:

    def test_missing_file_is_empty_book(self, store):
        model = JsonStorage(store / "data.json").load()
        assert model.clients == () and model.projects == ()
        assert len(model.tag_index) == 0

    def test_save_and_load_restores_links_and_index(self, store, model):
        storage = JsonStorage(store / "data.json")
        storage.save(model)

        loaded = storage.load()
        assert loaded.clients == model.clients
        assert loaded.projects == model.projects
        assert loaded.projects[0].client is loaded.clients[0]
        assert index_counts(loaded) == index_counts(model)

    def test_no_temp_file_left(self, store, model):
        JsonStorage(store / "data.json").save(model)
        assert sorted(p.name for p in store.iterdir()) == ["data.json"]

    def test_corrupt_file(self, store):
        path = store / "data.json"
        path.write_text("{not json")
        with pytest.raises(StorageError):
            load_data(path)

    def test_unknown_linked_client(self, store):
        path = store / "data.json"
        path.write_text(json.dumps({
            "clients": [],
            "projects": [{"title": "Site", "client": "Ghost"}],
        }))
        with pytest.raises(StorageError, match="unknown client"):
            load_data(path)

    def test_invalid_tag_in_file(self, store):
        path = store / "data.json"
        path.write_text(json.dumps({"clients": [{"name": "Alex", "tags": ["no spaces"]}]}))
        with pytest.raises(StorageError):
            load_data(path)

    def test_tags_normalized_on_load(self, store):
        path = store / "data.json"
        path.write_text(json.dumps({"clients": [{"name": "Alex", "tags": ["Friends"]}]}))
        clients, _ = load_data(path)
        assert clients[0].tags == frozenset({Tag("friends")})


class TestStoreConfig:

    def test_create_default(self, store):
        config = load_or_create_config(store)
        assert (store / CONFIG_FILENAME).exists()
        assert config.data_path == store / DEFAULT_DATA_FILE

    def test_round_trip(self, store):
        save_config(StoreConfig(path=store, data_file="book.json"))
        config = load_config(store)
        assert config.data_file == "book.json"
        assert config.version == 1

    def test_newer_version_rejected(self, store):
        (store / CONFIG_FILENAME).write_text('[store]\nversion = 99\n')
        with pytest.raises(ValueError, match="newer"):
            load_config(store)

    def test_missing_config(self, store):
        with pytest.raises(FileNotFoundError):
            load_config(store)

    def test_default_store_path_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLIENTBOOK_STORE_PATH", str(tmp_path / "custom"))
        assert get_default_store_path() == tmp_path / "custom"

    def test_default_store_path_home(self, monkeypatch):
        monkeypatch.delenv("CLIENTBOOK_STORE_PATH", raising=False)
        assert get_default_store_path().name == ".clientbook"
