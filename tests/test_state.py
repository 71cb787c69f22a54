import json
import os
import time as clock

import pytest

from inkdeck.services.cache_storage import FilesystemCacheStore
from inkdeck.state import InventoryError, InventoryStore, load_inventory


def _write_inventory(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)


def _sample_payload():
    return {
        "version": 1,
        "devices": [
            {"id": "d1", "name": "Kitchen", "current_screen_image": "active-uuid-1", "sleep_mode_from": "22:00"},
            {"id": "d2", "name": "Hall", "current_screen_image": None, "device_model_id": "m1"},
        ],
        "device_models": [
            {"id": "m1", "width": 1024, "height": 768, "colors": 256, "bit_depth": 8},
        ],
        "playlists": [
            {"id": "p2", "device_id": "d1", "items": [{"id": "i2", "plugin_id": "x"}]},
            {"id": "p1", "device_id": "d1", "items": []},
            {"id": "p3", "device_id": "d2", "items": []},
        ],
        "plugins": [
            {"id": "plugin-1", "current_image": "plugin-uuid"},
            {"id": "plugin-2", "current_image": None},
        ],
    }


def test_load_missing_inventory_is_empty(tmp_path):
    store = load_inventory(tmp_path / "inventory.json")

    assert store.list_devices() == []
    assert store.list_active_cache_keys() == set()


def test_reads_snapshots(tmp_path):
    path = tmp_path / "inventory.json"
    _write_inventory(path, _sample_payload())
    store = load_inventory(path)

    assert [device.id for device in store.list_devices()] == ["d1", "d2"]
    assert store.get_device("d1").sleep_mode_from.hour == 22
    assert store.get_device("missing") is None
    assert store.get_device_model("m1").bit_depth == 8
    assert [playlist.id for playlist in store.playlists_for_device("d1")] == ["p2", "p1"]
    assert store.get_plugin("plugin-1").current_image == "plugin-uuid"


def test_active_cache_keys_skip_nulls(tmp_path):
    path = tmp_path / "inventory.json"
    _write_inventory(path, _sample_payload())

    keys = load_inventory(path).list_active_cache_keys()

    assert keys == {"active-uuid-1", "plugin-uuid"}


def test_set_plugin_cache_key_persists(tmp_path):
    path = tmp_path / "inventory.json"
    _write_inventory(path, _sample_payload())
    store = load_inventory(path)

    store.set_plugin_cache_key("plugin-1", None)

    reloaded = load_inventory(path)
    assert reloaded.get_plugin("plugin-1").current_image is None
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    assert payload["version"] == 1
    assert "updated_at" in payload


def test_set_unknown_plugin_fails(tmp_path):
    store = InventoryStore(path=tmp_path / "inventory.json")

    with pytest.raises(InventoryError):
        store.set_plugin_cache_key("nope", None)


def test_invalid_record_raises(tmp_path):
    path = tmp_path / "inventory.json"
    _write_inventory(path, {"devices": [{"id": "d1", "width": "wide"}]})

    with pytest.raises(InventoryError):
        load_inventory(path).list_devices()


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "inventory.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(InventoryError):
        load_inventory(path)


def test_filesystem_cache_store(tmp_path):
    store = FilesystemCacheStore(tmp_path)
    (tmp_path / "a.png").write_bytes(b"png")
    (tmp_path / "a.bmp").write_bytes(b"bmp")
    (tmp_path / "b.png").write_bytes(b"png")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    past = clock.time() - 600
    os.utime(tmp_path / "b.png", (past, past))

    cached = {entry.key: entry for entry in store.list_cache_files()}

    assert set(cached) == {"a", "b"}
    assert cached["b"].modified_at == pytest.approx(past)

    store.delete_cache_file("a")

    assert not (tmp_path / "a.png").exists()
    assert not (tmp_path / "a.bmp").exists()
    assert (tmp_path / "b.png").exists()


def test_filesystem_cache_store_missing_directory(tmp_path):
    assert FilesystemCacheStore(tmp_path / "absent").list_cache_files() == []
