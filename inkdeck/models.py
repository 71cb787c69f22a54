"""Read-only snapshots of devices, playlists and plugins."""

from __future__ import annotations

from datetime import datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .timewindow import as_utc, in_daily_window


class ImageFormat(str, Enum):
    """Output image encodings understood by the renderer."""

    AUTO = "auto"
    PNG_8BIT_GRAYSCALE = "png_8bit_grayscale"
    BMP3_1BIT_SRGB = "bmp3_1bit_srgb"
    PNG_1BIT = "png_1bit"
    PNG_8BIT_256C = "png_8bit_256c"
    PNG_2BIT_4C = "png_2bit_4c"

    @property
    def label(self) -> str:
        return _IMAGE_FORMAT_LABELS[self]


_IMAGE_FORMAT_LABELS = {
    ImageFormat.AUTO: "Auto",
    ImageFormat.PNG_8BIT_GRAYSCALE: "PNG 8-bit Grayscale Gray 2c",
    ImageFormat.BMP3_1BIT_SRGB: "BMP3 1-bit sRGB 2c",
    ImageFormat.PNG_1BIT: "PNG 1-bit Grayscale 2c",
    ImageFormat.PNG_8BIT_256C: "PNG 8-bit Grayscale Gray 256c",
    ImageFormat.PNG_2BIT_4C: "PNG 2-bit Grayscale 4c",
}


class DataStrategy(str, Enum):
    """How a plugin receives its data payload."""

    POLLING = "polling"
    WEBHOOK = "webhook"


class _Snapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class DeviceModelSnapshot(_Snapshot):
    """Hardware profile shared by devices of the same kind."""

    id: str
    name: str = ""
    width: int
    height: int
    colors: int
    bit_depth: int
    scale_factor: float = 1.0
    rotation: int = 0
    mime_type: str = "image/png"
    offset_x: int = 0
    offset_y: int = 0


class DeviceSnapshot(_Snapshot):
    """State of a single physical device as last reported."""

    id: str
    name: str = ""
    last_battery_voltage: Optional[float] = None
    last_rssi_level: Optional[int] = None
    sleep_mode_enabled: bool = False
    sleep_mode_from: Optional[time] = None
    sleep_mode_to: Optional[time] = None
    device_model_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    rotation: Optional[int] = None
    image_format: Optional[ImageFormat] = None
    current_screen_image: Optional[str] = None
    mirror_device_id: Optional[str] = None
    proxy_cloud_response: Optional[Dict[str, Any]] = None


class PlaylistItemSnapshot(_Snapshot):
    """One entry of a playlist pointing at a plugin."""

    id: str
    plugin_id: str
    order: int = 0
    is_active: bool = True
    last_displayed_at: Optional[datetime] = None

    @field_validator("last_displayed_at")
    @classmethod
    def normalise_displayed_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else as_utc(value)


class PlaylistSnapshot(_Snapshot):
    """Ordered group of items shown on a device during an active window."""

    id: str
    device_id: str
    name: str = ""
    is_active: bool = True
    active_from: Optional[time] = None
    active_until: Optional[time] = None
    weekdays: Optional[Tuple[int, ...]] = None
    items: Tuple[PlaylistItemSnapshot, ...] = Field(default_factory=tuple)

    @field_validator("weekdays")
    @classmethod
    def check_weekdays(cls, value: Optional[Tuple[int, ...]]) -> Optional[Tuple[int, ...]]:
        if value is not None and any(day < 1 or day > 7 for day in value):
            raise ValueError("weekdays must use ISO numbers 1 (Monday) to 7 (Sunday).")
        return value

    def is_active_now(self, now: datetime) -> bool:
        """Whether the weekday filter and daily window admit ``now``."""

        if self.weekdays and now.isoweekday() not in self.weekdays:
            return False
        if self.active_from is None or self.active_until is None:
            return True
        return in_daily_window(now.time(), self.active_from, self.active_until)

    def active_items(self) -> List[PlaylistItemSnapshot]:
        # sorted() is stable, so equal orders keep their stored sequence
        return sorted((item for item in self.items if item.is_active), key=lambda item: item.order)

    def next_item(self, now: datetime) -> Optional[PlaylistItemSnapshot]:
        """Item following the most recently displayed one, wrapping around."""

        if not self.is_active_now(now):
            return None
        items = self.active_items()
        if not items:
            return None

        displayed = [item for item in items if item.last_displayed_at is not None]
        if not displayed:
            return items[0]

        last = max(displayed, key=lambda item: item.last_displayed_at)
        position = items.index(last)
        return items[(position + 1) % len(items)]


class PluginSnapshot(_Snapshot):
    """Content source whose rendered output may be cached."""

    id: str
    name: str = ""
    current_image: Optional[str] = None
    data_strategy: Optional[DataStrategy] = None
    data_stale_minutes: Optional[int] = Field(default=None, ge=1)
    data_payload_updated_at: Optional[datetime] = None
    polling_url: Optional[str] = None
    polling_verb: Optional[str] = None
    polling_header: Optional[str] = None

    @field_validator("data_payload_updated_at")
    @classmethod
    def normalise_payload_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else as_utc(value)


class EffectiveImageSettings(_Snapshot):
    """Fully resolved rendering configuration for one device."""

    width: int
    height: int
    colors: int
    bit_depth: int
    scale_factor: float
    rotation: int
    mime_type: str
    offset_x: int
    offset_y: int
    image_format: Optional[ImageFormat] = None
    use_model_settings: bool = False
