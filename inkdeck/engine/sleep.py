"""Sleep window arithmetic for devices."""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ..models import DeviceSnapshot
from ..timewindow import seconds_between, window_end


def sleep_ends_in_seconds(now: datetime, start: time, end: time) -> Optional[int]:
    """Seconds until the sleep window containing ``now`` ends.

    ``start > end`` describes an overnight window, so at 12:13 a 22:00-13:00
    window is still running from the previous evening and ends at 13:00 the
    same day. Returns ``None`` when ``now`` is outside the window.
    """

    ends_at = window_end(now, start, end)
    if ends_at is None:
        return None
    return seconds_between(now, ends_at)


def device_sleep_ends_in_seconds(device: DeviceSnapshot, now: datetime) -> Optional[int]:
    if not device.sleep_mode_enabled:
        return None
    if device.sleep_mode_from is None or device.sleep_mode_to is None:
        return None
    return sleep_ends_in_seconds(now, device.sleep_mode_from, device.sleep_mode_to)


def is_sleeping(device: DeviceSnapshot, now: datetime) -> bool:
    return device_sleep_ends_in_seconds(device, now) is not None
