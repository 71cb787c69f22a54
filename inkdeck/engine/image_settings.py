"""Resolve the rendering configuration of a device."""

from __future__ import annotations

from typing import Optional

from ..config import DisplayDefaults
from ..models import DeviceModelSnapshot, DeviceSnapshot, EffectiveImageSettings, ImageFormat
from .image_format import classify_image_format

_DEFAULTS = DisplayDefaults()


def resolve_image_settings(
    device: DeviceSnapshot,
    model: Optional[DeviceModelSnapshot] = None,
    defaults: DisplayDefaults = _DEFAULTS,
) -> EffectiveImageSettings:
    """Settings from the device model when there is one, else device overrides over defaults.

    The two sources are never mixed: a model supplies every field. Without a
    model, ``image_format`` is only set when the device carries one.
    """

    if model is not None:
        return EffectiveImageSettings(
            width=model.width,
            height=model.height,
            colors=model.colors,
            bit_depth=model.bit_depth,
            scale_factor=model.scale_factor,
            rotation=model.rotation,
            mime_type=model.mime_type,
            offset_x=model.offset_x,
            offset_y=model.offset_y,
            image_format=classify_image_format(model.mime_type, model.bit_depth, model.colors),
            use_model_settings=True,
        )

    return EffectiveImageSettings(
        width=_pick(device.width, defaults.width),
        height=_pick(device.height, defaults.height),
        colors=defaults.colors,
        bit_depth=defaults.bit_depth,
        scale_factor=defaults.scale_factor,
        rotation=_pick(device.rotation, defaults.rotation),
        mime_type=defaults.mime_type,
        offset_x=defaults.offset_x,
        offset_y=defaults.offset_y,
        image_format=device.image_format,
        use_model_settings=False,
    )


def effective_image_format(settings: EffectiveImageSettings) -> ImageFormat:
    """Format handed to the renderer; an unset device format means AUTO."""

    return settings.image_format or ImageFormat.AUTO


def _pick(value, fallback):
    return fallback if value is None else value
