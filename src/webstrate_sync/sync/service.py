"""Session runner: connection lifecycle around the sync controller.

``SyncService.run()`` owns everything with a lifetime longer than one
reaction:

1. Creates the mount directory and starts the mirror watcher.
2. Connects to the server and subscribes to the document.
3. Bootstraps the document (create if missing) and writes the mirror.
4. Feeds server messages and watcher events through one queue consumed
   by ``SyncController.run()``.
5. When the transport closes, waits per ``ReconnectPolicy`` and starts
   over from step 2 with a fresh document.
6. On exit (cancellation or a fatal ``ProtocolError``) deletes the mirror
   file and destroys the document.
"""

from __future__ import annotations

import asyncio
import logging

from webstrate_sync.config import Config
from webstrate_sync.core.connection import Connection, ReconnectPolicy
from webstrate_sync.core.document import Document
from webstrate_sync.errors import ConnectionClosedError
from webstrate_sync.file_handler import ensure_mount_dir, mirror_path
from webstrate_sync.sync.controller import SyncController
from webstrate_sync.sync.models import EventKind, SyncEvent
from webstrate_sync.sync.session import DocumentSession
from webstrate_sync.sync.watcher import MirrorWatcher

logger = logging.getLogger(__name__)


class SyncService:
    """Keep one document and its mirror file in sync until cancelled.

    Args:
        config: Validated configuration.
        connection_factory: Callable ``(url, max_frame_size) -> Connection``;
            replaceable in tests.
    """

    def __init__(
        self,
        config: Config,
        connection_factory=Connection,
    ) -> None:
        self.config = config
        self.connection_factory = connection_factory
        self.queue: asyncio.Queue[SyncEvent] = asyncio.Queue()
        self.mirror = mirror_path(config.mount_dir, config.document_id)
        self.policy = ReconnectPolicy(
            delay=config.reconnect_delay,
            factor=config.reconnect_factor,
            max_delay=config.reconnect_max_delay,
        )
        self.session: DocumentSession | None = None
        self.controller: SyncController | None = None

    async def run(self) -> None:
        """Sync until cancelled.

        Raises:
            ProtocolError: If the server reports an error (fatal).
        """
        ensure_mount_dir(self.mirror)
        watcher = MirrorWatcher(
            self.mirror, self.queue, self.config.poll_interval
        )
        watcher_task = asyncio.create_task(watcher.run())
        attempt = 0
        try:
            while True:
                if await self.run_connection():
                    attempt = 0
                delay = self.policy.next_delay(attempt)
                attempt += 1
                logger.info("Attempting to reconnect in %.1fs.", delay)
                await asyncio.sleep(delay)
        finally:
            await _cancel(watcher_task)
            if self.session is not None:
                self.session.close()

    async def run_connection(self) -> bool:
        """Run one connection until it closes.

        Returns:
            True if the document was subscribed on this connection.

        Raises:
            ProtocolError: If the server reports an error.
        """
        logger.info("Connecting to %s...", self.config.host)
        connection = self.connection_factory(
            self.config.websocket_url, self.config.max_frame_size
        )
        try:
            await connection.open()
        except ConnectionClosedError as exc:
            logger.warning("Connection error: %s", exc)
            return False
        logger.info("Connected.")

        document = Document(
            connection, self.config.collection, self.config.document_id
        )
        self._attach(document)
        _drain(self.queue)

        pump = asyncio.create_task(self._pump(connection, document))
        consumer = asyncio.create_task(self.controller.run(self.queue))
        subscribe = asyncio.create_task(document.subscribe())
        subscribed = False
        try:
            await asyncio.wait(
                {subscribe, pump, consumer},
                return_when=asyncio.FIRST_COMPLETED,
            )
            _raise_failures(pump, consumer)
            if subscribe.done():
                subscribe.result()
                subscribed = True
                self.controller.bootstrap()
                await asyncio.wait(
                    {pump, consumer}, return_when=asyncio.FIRST_COMPLETED
                )
                _raise_failures(pump, consumer)
        except ConnectionClosedError as exc:
            logger.warning("Subscription failed: %s", exc)
        finally:
            document.detach()
            for task in (subscribe, pump, consumer):
                await _cancel(task)
            await connection.close()

        logger.info("Connection closed: %s", connection.close_reason or "unknown")
        return subscribed

    def _attach(self, document: Document) -> None:
        if self.session is None:
            self.session = DocumentSession(document, self.mirror)
            self.controller = SyncController(self.session)
        else:
            self.session.attach(document)
        self.controller.attach()

    async def _pump(self, connection: Connection, document: Document) -> None:
        async for message in connection.messages():
            self.queue.put_nowait(
                SyncEvent(kind=EventKind.SERVER_MESSAGE, message=message)
            )
        # Let the consumer finish what was already received first.
        await self.queue.join()
        document.subscribed = False


def _drain(queue: asyncio.Queue) -> None:
    """Discard queued events left over from a previous connection."""
    while not queue.empty():
        queue.get_nowait()
        queue.task_done()


def _raise_failures(*tasks: asyncio.Task) -> None:
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception():
            raise task.exception()


async def _cancel(task: asyncio.Task) -> None:
    if task.done():
        # Failures were already raised or are moot during teardown.
        if not task.cancelled():
            task.exception()
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
