import pytest

from inkdeck.config import DisplayDefaults
from inkdeck.engine.image_format import classify_image_format
from inkdeck.engine.image_settings import effective_image_format, resolve_image_settings
from inkdeck.models import DeviceModelSnapshot, DeviceSnapshot, ImageFormat


def _model(**overrides):
    values = {
        "id": "m1",
        "width": 1024,
        "height": 768,
        "colors": 256,
        "bit_depth": 8,
        "scale_factor": 1.5,
        "rotation": 90,
        "mime_type": "image/png",
        "offset_x": 10,
        "offset_y": 20,
    }
    values.update(overrides)
    return DeviceModelSnapshot(**values)


def test_model_settings_take_precedence():
    device = DeviceSnapshot(
        id="d1",
        device_model_id="m1",
        width=640,
        height=400,
        rotation=180,
        image_format=ImageFormat.PNG_1BIT,
    )

    settings = resolve_image_settings(device, _model())

    assert settings.width == 1024
    assert settings.height == 768
    assert settings.colors == 256
    assert settings.bit_depth == 8
    assert settings.scale_factor == 1.5
    assert settings.rotation == 90
    assert settings.mime_type == "image/png"
    assert settings.offset_x == 10
    assert settings.offset_y == 20
    assert settings.image_format is ImageFormat.PNG_8BIT_256C
    assert settings.use_model_settings is True


def test_device_overrides_without_model():
    device = DeviceSnapshot(
        id="d1",
        width=800,
        height=480,
        rotation=180,
        image_format="png_8bit_grayscale",
    )

    settings = resolve_image_settings(device)

    assert settings.width == 800
    assert settings.height == 480
    assert settings.rotation == 180
    assert settings.image_format is ImageFormat.PNG_8BIT_GRAYSCALE
    assert settings.use_model_settings is False


def test_defaults_for_missing_device_properties():
    settings = resolve_image_settings(DeviceSnapshot(id="d1"))

    assert settings.width == 800
    assert settings.height == 480
    assert settings.rotation == 0
    assert settings.colors == 2
    assert settings.bit_depth == 1
    assert settings.scale_factor == 1.0
    assert settings.mime_type == "image/png"
    assert settings.offset_x == 0
    assert settings.offset_y == 0
    assert settings.image_format is None
    assert settings.use_model_settings is False


def test_configured_defaults_are_used():
    defaults = DisplayDefaults(width=1872, height=1404, colors=16, bit_depth=4)

    settings = resolve_image_settings(DeviceSnapshot(id="d1", height=1000), defaults=defaults)

    assert (settings.width, settings.height) == (1872, 1000)
    assert (settings.colors, settings.bit_depth) == (16, 4)


def test_effective_image_format_defaults_to_auto():
    settings = resolve_image_settings(DeviceSnapshot(id="d1"))

    assert effective_image_format(settings) is ImageFormat.AUTO


@pytest.mark.parametrize(
    "mime_type, bit_depth, colors, expected",
    [
        ("image/bmp", 1, 2, ImageFormat.BMP3_1BIT_SRGB),
        ("image/png", 8, 2, ImageFormat.PNG_8BIT_GRAYSCALE),
        ("image/png", 8, 256, ImageFormat.PNG_8BIT_256C),
        ("image/png", 2, 4, ImageFormat.PNG_2BIT_4C),
        ("image/jpeg", 16, 65536, ImageFormat.AUTO),
        ("image/png", 1, 2, ImageFormat.AUTO),
        ("image/bmp", 8, 2, ImageFormat.AUTO),
    ],
)
def test_classify_image_format(mime_type, bit_depth, colors, expected):
    assert classify_image_format(mime_type, bit_depth, colors) is expected


def test_image_format_labels():
    assert ImageFormat.PNG_2BIT_4C.value == "png_2bit_4c"
    assert ImageFormat.PNG_2BIT_4C.label == "PNG 2-bit Grayscale 4c"
    assert all(fmt.label for fmt in ImageFormat)
