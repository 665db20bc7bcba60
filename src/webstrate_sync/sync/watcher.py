"""Polling watcher for the mirror file.

Checks the file's modification time and size at a fixed interval and puts
a ``LOCAL_CHANGE`` event on the sync queue when either changes.  The
watcher never reads the content: the controller does that when it
handles the event, and it drops notifications whose content it has
already seen (including our own writes).
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from webstrate_sync.core.async_utils import run_sync
from webstrate_sync.sync.models import EventKind, SyncEvent

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25


def file_signature(path: Path) -> tuple[int, int] | None:
    """Return ``(mtime_ns, size)`` for *path*, or ``None`` if it is missing."""
    try:
        stat = os.stat(path)
    except FileNotFoundError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


class MirrorWatcher:
    """Watch one file and report changes on a queue.

    Args:
        path: File to watch.
        queue: Event queue shared with the sync controller.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        path: Path,
        queue: asyncio.Queue[SyncEvent],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.path = path
        self.queue = queue
        self.interval = interval
        self._signature: tuple[int, int] | None = None

    async def run(self) -> None:
        """Poll until cancelled."""
        self._signature = await run_sync(file_signature, self.path)
        logger.debug("Watching %s every %.2fs", self.path, self.interval)
        while True:
            await asyncio.sleep(self.interval)
            await self.poll()

    async def poll(self) -> bool:
        """Check the file once; return True if a change event was queued."""
        signature = await run_sync(file_signature, self.path)
        if signature == self._signature:
            return False
        self._signature = signature
        if signature is None:
            logger.debug("Mirror file %s disappeared", self.path)
            return False
        self.queue.put_nowait(SyncEvent(kind=EventKind.LOCAL_CHANGE))
        return True
