import pytest

from inkdeck.config import TelemetrySettings
from inkdeck.engine.telemetry import (
    battery_percent,
    classify_log_level,
    device_health,
    firmware_update,
    wifi_bars,
)
from inkdeck.models import DeviceSnapshot


@pytest.mark.parametrize(
    "voltage, expected",
    [
        (3.0, 0),
        (4.2, 100),
        (2.9, 0),
        (4.3, 100),
        (-1.0, 0),
        (3.6, 50),
        (3.3, 25),
    ],
)
def test_battery_percent(voltage, expected):
    assert battery_percent(voltage) == expected


def test_battery_percent_rounds_half_up():
    # 0.0625 / 0.5 is exactly 12.5%
    assert battery_percent(0.0625, min_voltage=0.0, max_voltage=0.5) == 13
    assert battery_percent(0.125, min_voltage=0.0, max_voltage=0.5) == 25


def test_battery_percent_custom_range():
    assert battery_percent(3.5, min_voltage=3.0, max_voltage=4.0) == 50


@pytest.mark.parametrize(
    "rssi, expected",
    [
        (0, 0),
        (12, 0),
        (-90, 1),
        (-80, 1),
        (-79, 2),
        (-70, 2),
        (-60, 2),
        (-59, 3),
        (-50, 3),
        (-1, 3),
    ],
)
def test_wifi_bars(rssi, expected):
    assert wifi_bars(rssi) == expected


def test_firmware_update_reads_proxy_response():
    device = DeviceSnapshot(
        id="d1",
        proxy_cloud_response={"update_firmware": True, "firmware_url": "https://example.test/fw.bin"},
    )

    update = firmware_update(device)

    assert update.available is True
    assert update.url == "https://example.test/fw.bin"


def test_firmware_update_without_response():
    update = firmware_update(DeviceSnapshot(id="d1"))

    assert update.available is False
    assert update.url is None


def test_classify_log_level():
    assert classify_log_level("Display ERROR while refreshing") == "error"
    assert classify_log_level("Warning: low battery") == "warning"
    assert classify_log_level("Woke up from deep sleep") == "info"


def test_device_health_leaves_missing_readings_empty():
    device = DeviceSnapshot(id="d1", last_rssi_level=-70)

    health = device_health(device, TelemetrySettings())

    assert health.battery_percent is None
    assert health.wifi_bars == 2
    assert health.firmware.available is False


def test_device_health_uses_configured_range():
    device = DeviceSnapshot(id="d1", last_battery_voltage=3.5)

    health = device_health(device, TelemetrySettings(min_voltage=3.0, max_voltage=4.0))

    assert health.battery_percent == 50
