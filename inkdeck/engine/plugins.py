"""Plugin data freshness."""

from __future__ import annotations

from datetime import datetime, timedelta

from ..models import DataStrategy, PluginSnapshot
from ..timewindow import as_utc


def plugin_data_is_stale(plugin: PluginSnapshot, now: datetime) -> bool:
    """Whether a polling plugin is due for a new fetch.

    Webhook plugins are pushed to and never go stale. A polling plugin
    without ``data_stale_minutes`` is refetched every time.
    A naive ``now`` is read as UTC.
    """

    if plugin.data_strategy != DataStrategy.POLLING:
        return False
    if plugin.data_payload_updated_at is None or plugin.data_stale_minutes is None:
        return True
    return as_utc(now) - plugin.data_payload_updated_at >= timedelta(minutes=plugin.data_stale_minutes)
