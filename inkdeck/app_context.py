"""Shared application context for Inkdeck CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import ConfigPaths, GlobalConfig, image_cache_dir, inventory_path, load_global_config
from .engine import ImageCacheInvalidator, SystemClock
from .services import FilesystemCacheStore
from .state import InventoryStore, load_inventory


@dataclass
class AppContext:
    """Container for resolved configuration and collaborators."""

    paths: ConfigPaths
    global_config: GlobalConfig
    inventory: InventoryStore
    cache_store: FilesystemCacheStore
    clock: SystemClock

    def invalidator(self, logger=None) -> ImageCacheInvalidator:
        return ImageCacheInvalidator(
            self.inventory,
            self.inventory,
            self.cache_store,
            defaults=self.global_config.display,
            grace_seconds=self.global_config.cache.grace_seconds,
            clock=self.clock,
            logger=logger,
        )


def determine_paths(config_dir: Optional[Path]) -> ConfigPaths:
    """Resolve configuration paths based on optional CLI override."""

    return ConfigPaths.from_base_dir(config_dir) if config_dir else ConfigPaths.default()


def resolve_timezone(tz_name: str) -> tuple[ZoneInfo, str]:
    """Return the configured zone, or UTC when the name is unknown."""

    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC"), "UTC"
    return tz, tz.key


def load_context(paths: ConfigPaths) -> AppContext:
    """Load global configuration and the inventory from disk."""

    global_config = load_global_config(paths.global_config)
    inventory = load_inventory(inventory_path(paths, global_config))
    cache_store = FilesystemCacheStore(image_cache_dir(paths, global_config))
    tz, _ = resolve_timezone(global_config.runtime.timezone)

    return AppContext(
        paths=paths,
        global_config=global_config,
        inventory=inventory,
        cache_store=cache_store,
        clock=SystemClock(tz),
    )
