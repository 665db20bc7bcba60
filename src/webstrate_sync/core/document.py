"""Client-side view of one shared json0 document.

``Document`` mirrors the subset of the ShareDB client document API that the
sync loop relies on:

- ``data`` / ``type`` / ``version``: the current snapshot.
- ``subscribe()``: fetch the snapshot and start receiving remote ops.
- ``create()``: create the document if the server has none.
- ``submit_op()``: apply an op locally (raising ``OpRejectedError`` if it
  does not fit) and queue it for the server.
- ``on_change()``: register a callback run after every applied op, with
  the op and a flag telling whether this client produced it.

Messages from the server are fed in through ``handle_message()``.  One op
is in flight at a time; later submissions wait in a pending list.  When a
remote op arrives while an own op is still in flight the local snapshot
can no longer be patched safely (that would need OT transform).  The
document then marks itself diverged: pending ops are held back, remote
ops are ignored, and once the in-flight op is acknowledged the pending
ops are dropped and the authoritative snapshot is refetched.  The
version only moves with applied ops, acknowledgements and snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from ..errors import ConnectionClosedError, OpRejectedError, ProtocolError
from .json0 import JSON0_TYPE_URI, apply_op, is_json0

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[list | None, bool], None]


class Document:
    """One document in a collection, bound to a connection.

    Args:
        connection: Object with a non-blocking ``post(message)`` method
            and a ``client_id`` attribute.
        collection: Collection name (``webstrates``).
        doc_id: Document identifier.
    """

    def __init__(self, connection, collection: str, doc_id: str) -> None:
        self.connection = connection
        self.collection = collection
        self.id = doc_id

        self.type: str | None = None
        self.data: Any = None
        self.version: int | None = None
        self.subscribed = False

        self._callbacks: list[ChangeCallback] = []
        self._inflight: dict | None = None
        self._pending: list[dict] = []
        self._seq = 0
        self._diverged = False
        self._fetching = False
        self._subscribe_waiter: asyncio.Future | None = None
        self._destroyed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def on_change(self, callback: ChangeCallback) -> None:
        """Register *callback(op, local)* to run after each applied op."""
        self._callbacks.append(callback)

    async def subscribe(self) -> None:
        """Subscribe to the document and wait for its snapshot.

        Raises:
            ProtocolError: If the server answers with an error.
            ConnectionClosedError: If the connection closes first.
        """
        loop = asyncio.get_running_loop()
        self._subscribe_waiter = loop.create_future()
        self.connection.post({"a": "s", "c": self.collection, "d": self.id})
        await self._subscribe_waiter

    def create(self, type_name: str = "json0", data: Any = None) -> None:
        """Create the document on the server with the given type.

        Raises:
            ProtocolError: If the document already has a type or the type
                is not json0.
        """
        if self.type is not None:
            raise ProtocolError("Document already exists")
        if not is_json0(type_name):
            raise ProtocolError(f"Unsupported document type: {type_name}")

        self.type = JSON0_TYPE_URI
        self.data = data
        self._enqueue({"create": {"type": JSON0_TYPE_URI, "data": data}})

    def submit_op(self, op: list[dict]) -> None:
        """Apply *op* locally and send it to the server.

        Raises:
            OpRejectedError: If the op does not apply to the current
                snapshot.  The snapshot is left unchanged.
        """
        if self.type is None:
            raise OpRejectedError("Document has not been created")
        if not op:
            return

        self.data = apply_op(self.data, op)
        self._enqueue({"op": op})
        self._emit(op, True)

    def has_pending_ops(self) -> bool:
        return self._inflight is not None or bool(self._pending)

    def detach(self) -> None:
        """Forget the connection state after the transport closed.

        Ops not yet acknowledged are dropped; the next subscription
        supplies a fresh snapshot.
        """
        dropped = len(self._pending) + (1 if self._inflight else 0)
        if dropped:
            logger.warning(
                "Dropping %d unacknowledged op(s) for %s/%s",
                dropped,
                self.collection,
                self.id,
            )
        self._inflight = None
        self._pending = []
        self._diverged = False
        self._fetching = False
        self.subscribed = False
        if self._subscribe_waiter and not self._subscribe_waiter.done():
            self._subscribe_waiter.set_exception(
                ConnectionClosedError("Connection closed before subscribe")
            )

    def destroy(self) -> None:
        """Stop reacting to server traffic and drop all callbacks."""
        self._destroyed = True
        self._callbacks.clear()
        self.detach()

    # ------------------------------------------------------------------
    # Server messages
    # ------------------------------------------------------------------

    def handle_message(self, message: dict) -> None:
        """Process one decoded server message addressed to this document."""
        if self._destroyed:
            return

        action = message.get("a")
        if message.get("error"):
            error = message["error"]
            exc = ProtocolError(
                error.get("message", "Unknown error"), error.get("code")
            )
            if (
                action == "s"
                and self._subscribe_waiter
                and not self._subscribe_waiter.done()
            ):
                self._subscribe_waiter.set_exception(exc)
                return
            raise exc

        if action == "s":
            self._handle_snapshot(message.get("data") or {})
            self.subscribed = True
            if self._subscribe_waiter and not self._subscribe_waiter.done():
                self._subscribe_waiter.set_result(None)
        elif action == "f":
            self._handle_snapshot(message.get("data") or {})
            self._emit(None, False)
        elif action == "op":
            self._handle_op(message)
        else:
            logger.debug("Ignoring document message: %s", action)

    def _handle_snapshot(self, snapshot: dict) -> None:
        self.version = snapshot.get("v", 0)
        self.type = snapshot.get("type")
        self.data = snapshot.get("data")
        self._diverged = False
        self._fetching = False
        if self._pending:
            # Edits made while diverged were against a stale snapshot.
            self._drop_pending("superseded by the refetched snapshot")

    def _handle_op(self, message: dict) -> None:
        if self._is_ack(message):
            self._inflight = None
            if self._diverged:
                self._resync()
                return
            self.version = message.get("v", self.version or 0) + 1
            self._flush()
            return

        if self._diverged:
            # The refetched snapshot will include this op.
            logger.debug("Ignoring op v%s while resyncing", message.get("v"))
            return

        version = message.get("v")
        if self.version is not None and version is not None:
            if version < self.version:
                logger.debug("Ignoring old op v%s (at v%s)", version, self.version)
                return
            if version > self.version:
                logger.warning(
                    "Missed ops between v%s and v%s, refetching",
                    self.version,
                    version,
                )
                self._diverged = True

        if self.has_pending_ops():
            # Cannot rebase onto own unacknowledged ops without transform.
            logger.info("Concurrent edits detected, refetching snapshot")
            self._diverged = True

        if self._diverged:
            self._resync()
            return

        self.version = (version if version is not None else self.version or 0) + 1
        if "create" in message:
            create = message["create"] or {}
            self.type = create.get("type")
            self.data = create.get("data")
            self._emit(None, False)
        elif "del" in message:
            self.type = None
            self.data = None
            self._emit(None, False)
        elif "op" in message:
            op = message["op"]
            try:
                self.data = apply_op(self.data, op)
            except OpRejectedError as exc:
                raise ProtocolError(
                    f"Remote op does not apply to local snapshot: {exc}"
                ) from exc
            self._emit(op, False)

    def _resync(self) -> None:
        """Fetch the authoritative snapshot once nothing is in flight."""
        if self._inflight is not None or self._fetching:
            return
        if self._pending:
            self._drop_pending("made against a diverged snapshot")
        self._fetching = True
        self.connection.post({"a": "f", "c": self.collection, "d": self.id})

    def _drop_pending(self, reason: str) -> None:
        logger.warning(
            "Dropping %d local op(s) for %s/%s %s",
            len(self._pending),
            self.collection,
            self.id,
            reason,
        )
        self._pending = []

    def _is_ack(self, message: dict) -> bool:
        return (
            self._inflight is not None
            and message.get("src") == self.connection.client_id
            and message.get("seq") == self._inflight.get("seq")
            and "op" not in message
            and "create" not in message
        )

    # ------------------------------------------------------------------
    # Outgoing ops
    # ------------------------------------------------------------------

    def _enqueue(self, body: dict) -> None:
        self._seq += 1
        self._pending.append(
            {
                "a": "op",
                "c": self.collection,
                "d": self.id,
                "seq": self._seq,
                **body,
            }
        )
        self._flush()

    def _flush(self) -> None:
        if self._inflight is not None or self._diverged or not self._pending:
            return
        message = self._pending.pop(0)
        message["v"] = self.version or 0
        message["src"] = self.connection.client_id
        self._inflight = message
        self.connection.post(message)

    def _emit(self, op: list | None, local: bool) -> None:
        for callback in list(self._callbacks):
            callback(op, local)
