"""Lifecycle of cached rendered images."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

import structlog
from structlog.stdlib import BoundLogger

from ..config import DisplayDefaults
from ..models import DeviceSnapshot, PluginSnapshot
from .base import CacheFileStore, CacheKeyWriter, Clock, InventoryReader, SystemClock

# Shared by every invalidator in the process; keyed by plugin id.
_PLUGIN_LOCKS: Dict[str, threading.Lock] = {}
_PLUGIN_LOCKS_GUARD = threading.Lock()


@dataclass
class CleanupReport:
    """Outcome of one orphan sweep."""

    scanned: int = 0
    deleted: List[str] = field(default_factory=list)
    kept_active: int = 0
    kept_recent: int = 0
    failed: List[str] = field(default_factory=list)
    cancelled: bool = False

    def as_dict(self) -> Dict[str, object]:
        return {
            "scanned": self.scanned,
            "deleted": len(self.deleted),
            "kept_active": self.kept_active,
            "kept_recent": self.kept_recent,
            "failed": len(self.failed),
            "cancelled": self.cancelled,
        }


def is_standard_device(device: DeviceSnapshot, defaults: DisplayDefaults) -> bool:
    """Whether renders made for the default display fit ``device`` unchanged.

    Unset dimensions count as the defaults.
    """

    if device.device_model_id is not None:
        return False
    if device.width is not None and device.width != defaults.width:
        return False
    if device.height is not None and device.height != defaults.height:
        return False
    if device.rotation is not None and device.rotation != defaults.rotation:
        return False
    return True


class ImageCacheInvalidator:
    """Clears plugin cache keys and sweeps orphaned image files.

    Renderers must store new plugin keys through :meth:`assign_plugin_cache_key`
    so an invalidation decided before a fresh render cannot clear it.
    """

    def __init__(
        self,
        inventory: InventoryReader,
        writer: CacheKeyWriter,
        files: CacheFileStore,
        *,
        defaults: Optional[DisplayDefaults] = None,
        grace_seconds: float = 0.0,
        clock: Optional[Clock] = None,
        logger: Optional[BoundLogger] = None,
    ) -> None:
        self.inventory = inventory
        self.writer = writer
        self.files = files
        self.defaults = defaults or DisplayDefaults()
        self.grace_seconds = grace_seconds
        self.clock = clock or SystemClock()
        self.logger = logger or structlog.get_logger("inkdeck.cache")

    @contextmanager
    def plugin_lock(self, plugin_id: str) -> Iterator[None]:
        with _PLUGIN_LOCKS_GUARD:
            lock = _PLUGIN_LOCKS.setdefault(plugin_id, threading.Lock())
        with lock:
            yield

    def cache_is_shareable(self) -> bool:
        """``False`` as soon as any device needs a non-default render."""

        return all(is_standard_device(device, self.defaults) for device in self.inventory.list_devices())

    def reset_if_not_cacheable(self, plugin: Optional[PluginSnapshot]) -> bool:
        """Clear ``plugin``'s cached image when some device cannot share it.

        Returns ``True`` when the key was cleared. ``None`` and plugins
        without a cached image are ignored.
        """

        if plugin is None or plugin.current_image is None:
            return False

        with self.plugin_lock(plugin.id):
            if self.cache_is_shareable():
                return False
            self.writer.set_plugin_cache_key(plugin.id, None)

        self.logger.info("cache.plugin_reset", plugin_id=plugin.id, previous=plugin.current_image)
        return True

    def assign_plugin_cache_key(self, plugin_id: str, key: Optional[str]) -> None:
        with self.plugin_lock(plugin_id):
            self.writer.set_plugin_cache_key(plugin_id, key)
        self.logger.debug("cache.plugin_assigned", plugin_id=plugin_id, key=key)

    def cleanup_folder(self, cancel_event: Optional[threading.Event] = None) -> CleanupReport:
        """Delete stored images that no device or plugin references.

        Only files last modified before the active-key scan started (minus
        the grace period) are removed, so images written by a concurrent
        render survive even if their key was not yet recorded.
        """

        report = CleanupReport()
        cutoff = self.clock.now().timestamp() - self.grace_seconds
        active = self.inventory.list_active_cache_keys()

        for cached in list(self.files.list_cache_files()):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                self.logger.info("cache.cleanup_cancelled", deleted=len(report.deleted))
                break

            report.scanned += 1
            if cached.key in active:
                report.kept_active += 1
                continue
            if cached.modified_at >= cutoff:
                report.kept_recent += 1
                continue

            try:
                self.files.delete_cache_file(cached.key)
            except OSError as exc:
                report.failed.append(cached.key)
                self.logger.warning("cache.delete_failed", key=cached.key, error=str(exc))
                continue
            report.deleted.append(cached.key)
            self.logger.debug("cache.deleted", key=cached.key)

        self.logger.info("cache.cleanup_completed", **report.as_dict())
        return report
