"""JSON-backed inventory of devices, playlists and plugins."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from .models import DeviceModelSnapshot, DeviceSnapshot, PlaylistSnapshot, PluginSnapshot

STATE_VERSION = 1

_SECTIONS = ("devices", "device_models", "playlists", "plugins")


class InventoryError(RuntimeError):
    """Raised when the inventory file cannot be read or updated."""


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class InventoryStore:
    """Represents the on-disk inventory.

    Records are kept as raw mappings and validated into snapshots on read.
    Playlists are returned in the order they are stored.
    """

    path: Path
    data: Dict[str, Any] = field(default_factory=dict)
    _dirty: bool = field(default=False, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        for section in _SECTIONS:
            records = self.data.setdefault(section, [])
            if not isinstance(records, list):
                raise InventoryError(f"Expected a list for '{section}' in {self.path}")

    def save(self) -> None:
        with self._lock:
            if not self._dirty:
                return
            payload = {
                "version": STATE_VERSION,
                "updated_at": _utcnow_iso(),
                **self.data,
            }
            _ensure_parent(self.path)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, default=str)
            tmp_path.replace(self.path)
            self._dirty = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _records(self, section: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(record) for record in self.data[section]]

    def _parse(self, model, record: Dict[str, Any]):
        try:
            return model.model_validate(record)
        except ValidationError as exc:
            raise InventoryError(f"Invalid {model.__name__} record {record.get('id')!r}: {exc}") from exc

    def _find(self, section: str, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self._records(section):
            if str(record.get("id")) == record_id:
                return record
        return None

    def list_devices(self) -> List[DeviceSnapshot]:
        return [self._parse(DeviceSnapshot, record) for record in self._records("devices")]

    def get_device(self, device_id: str) -> Optional[DeviceSnapshot]:
        record = self._find("devices", device_id)
        return self._parse(DeviceSnapshot, record) if record is not None else None

    def get_device_model(self, model_id: str) -> Optional[DeviceModelSnapshot]:
        record = self._find("device_models", model_id)
        return self._parse(DeviceModelSnapshot, record) if record is not None else None

    def playlists_for_device(self, device_id: str) -> List[PlaylistSnapshot]:
        return [
            self._parse(PlaylistSnapshot, record)
            for record in self._records("playlists")
            if str(record.get("device_id")) == device_id
        ]

    def list_plugins(self) -> List[PluginSnapshot]:
        return [self._parse(PluginSnapshot, record) for record in self._records("plugins")]

    def get_plugin(self, plugin_id: str) -> Optional[PluginSnapshot]:
        record = self._find("plugins", plugin_id)
        return self._parse(PluginSnapshot, record) if record is not None else None

    def list_active_cache_keys(self) -> Set[str]:
        with self._lock:
            keys = {record.get("current_screen_image") for record in self.data["devices"]}
            keys |= {record.get("current_image") for record in self.data["plugins"]}
        keys.discard(None)
        return {str(key) for key in keys}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def set_plugin_cache_key(self, plugin_id: str, key: Optional[str]) -> None:
        with self._lock:
            for record in self.data["plugins"]:
                if str(record.get("id")) == plugin_id:
                    break
            else:
                raise InventoryError(f"Unknown plugin: {plugin_id}")

            if record.get("current_image") == key:
                return
            record["current_image"] = key
            self._dirty = True
            self.save()


def load_inventory(path: Path) -> InventoryStore:
    if not path.exists():
        return InventoryStore(path=path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle) or {}
    except json.JSONDecodeError as exc:
        raise InventoryError(f"Failed to parse inventory file: {path}") from exc
    if not isinstance(payload, dict):
        raise InventoryError(f"Expected mapping at top level of {path}")
    # Remove metadata keys we manage separately
    data = {k: v for k, v in payload.items() if k not in {"version", "updated_at"}}
    return InventoryStore(path=path, data=data)
