"""Combine the engine's decisions into one plan per device."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from ..config import DisplayDefaults
from ..models import DeviceSnapshot, EffectiveImageSettings, ImageFormat, PlaylistItemSnapshot
from .base import InventoryReader
from .image_settings import effective_image_format, resolve_image_settings
from .playlists import next_item
from .sleep import device_sleep_ends_in_seconds


@dataclass(frozen=True)
class DisplayPlan:
    """What a device should show next and how it should be rendered."""

    device_id: str
    content_device_id: str
    item: Optional[PlaylistItemSnapshot]
    sleep_seconds: Optional[int]
    settings: EffectiveImageSettings
    image_format: ImageFormat

    @property
    def sleeping(self) -> bool:
        return self.sleep_seconds is not None


def content_source(device: DeviceSnapshot, inventory: InventoryReader) -> DeviceSnapshot:
    """Device whose playlists feed ``device``; mirrors are followed one hop."""

    if device.mirror_device_id is None or device.mirror_device_id == device.id:
        return device
    mirrored = inventory.get_device(device.mirror_device_id)
    return mirrored if mirrored is not None else device


def plan_display(
    device: DeviceSnapshot,
    inventory: InventoryReader,
    now: datetime,
    defaults: Optional[DisplayDefaults] = None,
    logger: Optional[BoundLogger] = None,
) -> DisplayPlan:
    logger = logger or structlog.get_logger("inkdeck.planner")
    model = None
    if device.device_model_id is not None:
        model = inventory.get_device_model(device.device_model_id)
        if model is None:
            logger.warning(
                "planner.model_missing",
                device_id=device.id,
                device_model_id=device.device_model_id,
            )

    if defaults is None:
        settings = resolve_image_settings(device, model)
    else:
        settings = resolve_image_settings(device, model, defaults)
    source = content_source(device, inventory)
    sleep_seconds = device_sleep_ends_in_seconds(device, now)

    item = None
    if sleep_seconds is None:
        item = next_item(inventory.playlists_for_device(source.id), now, logger=logger)

    return DisplayPlan(
        device_id=device.id,
        content_device_id=source.id,
        item=item,
        sleep_seconds=sleep_seconds,
        settings=settings,
        image_format=effective_image_format(settings),
    )
