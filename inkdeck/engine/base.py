"""Interfaces the decision engine uses to reach its collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Protocol, Set

from ..models import DeviceModelSnapshot, DeviceSnapshot, PlaylistSnapshot, PluginSnapshot


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current, timezone-aware time."""


@dataclass(frozen=True)
class SystemClock:
    """Wall clock in a fixed timezone."""

    tz: tzinfo = timezone.utc

    def now(self) -> datetime:
        return datetime.now(self.tz)


@dataclass
class FixedClock:
    """Clock pinned to a given instant, advanced manually."""

    current: datetime

    def now(self) -> datetime:
        return self.current


class InventoryReader(Protocol):
    """Read access to device, playlist and plugin snapshots."""

    def list_devices(self) -> List[DeviceSnapshot]:
        ...

    def get_device(self, device_id: str) -> Optional[DeviceSnapshot]:
        ...

    def get_device_model(self, model_id: str) -> Optional[DeviceModelSnapshot]:
        ...

    def playlists_for_device(self, device_id: str) -> List[PlaylistSnapshot]:
        """Playlists of a device in their display priority order."""

    def list_plugins(self) -> List[PluginSnapshot]:
        ...

    def get_plugin(self, plugin_id: str) -> Optional[PluginSnapshot]:
        ...

    def list_active_cache_keys(self) -> Set[str]:
        """Non-null ``current_screen_image`` and ``current_image`` values."""


class CacheKeyWriter(Protocol):
    """Write access to a plugin's cached image key."""

    def set_plugin_cache_key(self, plugin_id: str, key: Optional[str]) -> None:
        ...


@dataclass(frozen=True)
class CachedFile:
    """A rendered image on storage."""

    key: str
    modified_at: float


class CacheFileStore(Protocol):
    """Storage holding rendered images addressed by cache key."""

    def list_cache_files(self) -> Iterable[CachedFile]:
        ...

    def delete_cache_file(self, key: str) -> None:
        """Remove the files stored under ``key``; raise ``OSError`` on failure."""
