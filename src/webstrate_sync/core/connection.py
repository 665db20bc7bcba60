"""Websocket transport speaking the ShareDB JSON message protocol.

The connection only moves messages: it opens the socket, performs the
handshake, serializes outgoing messages through a single writer task and
yields decoded incoming messages.  Routing messages to documents and
reacting to them is the caller's job.

Frames carrying a ``wa`` key belong to the webstrates server's own
side channel and are dropped here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from ..errors import ConnectionClosedError, ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_MAX_FRAME_SIZE = 20 * 1024 * 1024  # 20 MB


@dataclass(frozen=True)
class ReconnectPolicy:
    """Delay schedule between reconnect attempts.

    ``factor == 1`` gives a fixed delay; a larger factor gives
    exponential backoff capped at ``max_delay``.
    """

    delay: float = 1.0
    factor: float = 1.0
    max_delay: float = 30.0

    def next_delay(self, attempt: int) -> float:
        """Return the delay in seconds before reconnect attempt *attempt* (0-based)."""
        return min(self.delay * (self.factor**attempt), self.max_delay)


class Connection:
    """One websocket connection to a ShareDB server.

    Args:
        url: Full websocket URL, including the ``/ws/`` path.
        max_frame_size: Largest accepted incoming frame, in bytes.
    """

    def __init__(
        self, url: str, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
    ) -> None:
        self.url = url
        self.max_frame_size = max_frame_size
        self.client_id: str | None = None
        self.close_reason: str = ""

        self._ws = None
        self._outbox: asyncio.Queue[dict] = asyncio.Queue()
        self._writer: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def open(self) -> None:
        """Open the socket and send the handshake.

        Raises:
            ConnectionClosedError: If the server cannot be reached or the
                websocket upgrade fails.
        """
        try:
            self._ws = await websockets.connect(
                self.url, max_size=self.max_frame_size
            )
        except (OSError, InvalidHandshake, asyncio.TimeoutError) as exc:
            raise ConnectionClosedError(
                f"Unable to connect to {self.url}: {exc}"
            ) from exc
        self._writer = asyncio.create_task(self._write_loop())
        self.post({"a": "hs", "id": None})

    def post(self, message: dict) -> None:
        """Queue *message* for sending without waiting."""
        self._outbox.put_nowait(message)

    async def messages(self) -> AsyncIterator[dict]:
        """Yield decoded messages until the socket closes.

        Handshake replies are consumed here and set ``client_id``.

        Raises:
            ProtocolError: If the server sends an undecodable frame or a
                connection-level error.
        """
        if self._ws is None:
            raise ConnectionClosedError("Connection is not open")

        try:
            async for raw in self._ws:
                message = self._decode(raw)
                if message is None:
                    continue
                yield message
        except ConnectionClosed as exc:
            self.close_reason = exc.rcvd.reason if exc.rcvd else str(exc)
        else:
            self.close_reason = "closed by server"
        finally:
            await self._stop_writer()
            self._ws = None

    async def close(self) -> None:
        """Close the socket; safe to call more than once."""
        ws = self._ws
        self._ws = None
        await self._stop_writer()
        if ws is not None:
            await ws.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decode(self, raw: str | bytes) -> dict | None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ProtocolError(f"Undecodable frame from server: {exc}") from exc

        if not isinstance(message, dict):
            raise ProtocolError("Server frame is not a JSON object")

        if message.get("error") and "d" not in message:
            default = (
                "Handshake failed"
                if message.get("a") in ("hs", "init")
                else "Unknown error"
            )
            raise _protocol_error(message["error"], default)

        if "wa" in message:
            return None

        if message.get("a") in ("hs", "init"):
            self.client_id = message.get("id")
            logger.debug("Handshake complete, client id %s", self.client_id)
            return None

        return message

    async def _write_loop(self) -> None:
        while True:
            message = await self._outbox.get()
            if self._ws is None:
                return
            try:
                await self._ws.send(json.dumps(message))
            except ConnectionClosed:
                logger.debug("Dropping outgoing %s, socket closed", message.get("a"))
                return

    async def _stop_writer(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None or writer.done():
            return
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass


def _protocol_error(error, default: str) -> ProtocolError:
    if isinstance(error, dict):
        return ProtocolError(error.get("message", default), error.get("code"))
    return ProtocolError(str(error))
