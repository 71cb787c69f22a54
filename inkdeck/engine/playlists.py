"""Select the next playlist item for a device."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from structlog.stdlib import BoundLogger

from ..models import PlaylistItemSnapshot, PlaylistSnapshot


def next_item(
    playlists: Iterable[PlaylistSnapshot],
    now: datetime,
    logger: Optional[BoundLogger] = None,
) -> Optional[PlaylistItemSnapshot]:
    """Return the first item offered by an active playlist, in caller order.

    Playlists flagged inactive are skipped; the first one that is active at
    ``now`` and yields an item decides the result.
    """

    for playlist in playlists:
        if not playlist.is_active:
            continue
        if not playlist.is_active_now(now):
            continue
        item = playlist.next_item(now)
        if item is not None:
            if logger is not None:
                logger.debug(
                    "playlists.item_selected",
                    playlist_id=playlist.id,
                    item_id=item.id,
                    plugin_id=item.plugin_id,
                )
            return item

    if logger is not None:
        logger.debug("playlists.no_item", at=now.isoformat())
    return None
