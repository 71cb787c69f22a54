"""Rendering decisions for e-ink devices."""

from __future__ import annotations

from .base import CachedFile, CacheFileStore, CacheKeyWriter, Clock, FixedClock, InventoryReader, SystemClock
from .cache import CleanupReport, ImageCacheInvalidator
from .image_format import classify_image_format
from .image_settings import effective_image_format, resolve_image_settings
from .planner import DisplayPlan, plan_display
from .playlists import next_item
from .plugins import plugin_data_is_stale
from .sleep import device_sleep_ends_in_seconds, is_sleeping, sleep_ends_in_seconds
from .telemetry import battery_percent, device_health, wifi_bars

__all__ = [
    "CachedFile",
    "CacheFileStore",
    "CacheKeyWriter",
    "CleanupReport",
    "Clock",
    "DisplayPlan",
    "FixedClock",
    "ImageCacheInvalidator",
    "InventoryReader",
    "SystemClock",
    "battery_percent",
    "classify_image_format",
    "device_health",
    "device_sleep_ends_in_seconds",
    "effective_image_format",
    "is_sleeping",
    "next_item",
    "plan_display",
    "plugin_data_is_stale",
    "resolve_image_settings",
    "sleep_ends_in_seconds",
    "wifi_bars",
]
