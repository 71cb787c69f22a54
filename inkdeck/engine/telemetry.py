"""Translate raw device telemetry into dashboard indicators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..config import TelemetrySettings
from ..models import DeviceSnapshot

MIN_VOLTAGE = 3.0
MAX_VOLTAGE = 4.2


def battery_percent(
    voltage: float,
    *,
    min_voltage: float = MIN_VOLTAGE,
    max_voltage: float = MAX_VOLTAGE,
) -> float:
    """Linear Li-ion charge estimate, clamped to ``[0, 100]``."""

    if voltage <= min_voltage:
        return 0.0
    if voltage >= max_voltage:
        return 100.0

    percent = ((voltage - min_voltage) / (max_voltage - min_voltage)) * 100
    # half away from zero; percent is positive here
    return float(math.floor(percent + 0.5))


def wifi_bars(rssi: int) -> int:
    """Signal bars from RSSI in dBm.

    A reading of zero or above means the device reported no connection and
    maps to 0 bars.
    """

    if rssi >= 0:
        return 0
    if rssi <= -80:
        return 1
    if rssi <= -60:
        return 2
    return 3


@dataclass(frozen=True)
class FirmwareUpdate:
    """Firmware update instruction cached from the upstream cloud response."""

    available: bool
    url: Optional[str] = None


def firmware_update(device: DeviceSnapshot) -> FirmwareUpdate:
    response = device.proxy_cloud_response or {}
    url = response.get("firmware_url") or None
    return FirmwareUpdate(available=bool(response.get("update_firmware")), url=url)


def classify_log_level(message: str) -> str:
    """Severity shown next to a device log line."""

    lowered = message.lower()
    if "error" in lowered:
        return "error"
    if "warning" in lowered:
        return "warning"
    return "info"


@dataclass(frozen=True)
class DeviceHealth:
    battery_percent: Optional[float]
    wifi_bars: Optional[int]
    firmware: FirmwareUpdate


def device_health(device: DeviceSnapshot, settings: Optional[TelemetrySettings] = None) -> DeviceHealth:
    """Bundle the indicators shown for ``device``; missing readings stay ``None``."""

    settings = settings or TelemetrySettings()
    battery = None
    if device.last_battery_voltage is not None:
        battery = battery_percent(
            device.last_battery_voltage,
            min_voltage=settings.min_voltage,
            max_voltage=settings.max_voltage,
        )
    bars = wifi_bars(device.last_rssi_level) if device.last_rssi_level is not None else None
    return DeviceHealth(battery_percent=battery, wifi_bars=bars, firmware=firmware_update(device))
