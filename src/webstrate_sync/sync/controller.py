"""Sync controller: keeps the mirror file and the shared document converged.

The controller reacts to two kinds of events, one at a time:

1. **Remote change** (``on_remote_change``) -- the document snapshot
   changed, whoever caused it.  The snapshot is serialized; if the markup
   equals what the mirror already holds nothing happens, otherwise the
   mirror is written synchronously.  A local save the watcher has not
   picked up yet is overwritten with a warning; the server wins.
2. **Local change** (``on_local_change``) -- the mirror file changed.  The
   content is parsed, normalized and diffed against the snapshot, and the
   resulting op is submitted.  A rejected op triggers conflict recovery.

Failures are contained per reaction: a parse or serialization error is
logged and the reaction is skipped without touching cross-reaction
state.  Only protocol errors from the server propagate (they end the
session).

All reactions run from ``run()``, the single consumer of the event queue,
so no reaction ever observes another one half done.
"""

from __future__ import annotations

import asyncio
import logging

from webstrate_sync.converters.markup import from_markup, to_markup
from webstrate_sync.converters.tree import normalize
from webstrate_sync.errors import (
    MalformedTreeError,
    OpRejectedError,
    ParseError,
)
from webstrate_sync.file_handler import read_file_with_encoding, write_file
from webstrate_sync.sync.diff import diff
from webstrate_sync.sync.models import (
    EventKind,
    Reaction,
    ReactionKind,
    SyncEvent,
)
from webstrate_sync.sync.recovery import ConflictRecovery, skeleton_op
from webstrate_sync.sync.session import DocumentSession

logger = logging.getLogger(__name__)


class SyncController:
    """Drive converters, diff and recovery for one session.

    Args:
        session: The session whose document and mirror are synced.
        recovery: Recovery policy; defaults to ``ConflictRecovery``.
    """

    def __init__(
        self,
        session: DocumentSession,
        recovery: ConflictRecovery | None = None,
    ) -> None:
        self.session = session
        self.recovery = recovery or ConflictRecovery(session)
        self.last_reaction: Reaction | None = None

    def attach(self) -> None:
        """Register for change notifications of the session's document."""
        self.session.document.on_change(self._document_changed)

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    async def run(self, queue: asyncio.Queue[SyncEvent]) -> None:
        """Consume events from *queue* forever, one reaction at a time.

        Raises:
            ProtocolError: From the document; the caller ends the session.
        """
        while True:
            event = await queue.get()
            try:
                self.handle(event)
            finally:
                queue.task_done()

    def handle(self, event: SyncEvent) -> Reaction | None:
        """Dispatch one event to the matching reaction."""
        if event.kind == EventKind.LOCAL_CHANGE:
            return self.on_local_change()

        message = event.message or {}
        document = self.session.document
        if message.get("c") != document.collection or message.get(
            "d"
        ) != document.id:
            logger.debug(
                "Ignoring message for %s/%s", message.get("c"), message.get("d")
            )
            return None
        # Change callbacks run from inside handle_message.
        document.handle_message(message)
        return None

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def bootstrap(self) -> Reaction:
        """Create the document if the server has none, then write the mirror.

        Call once after each successful subscription.
        """
        document = self.session.document
        if document.type is None:
            logger.info("Document doesn't exist on server, creating it.")
            document.create("json0")
            # The change notification writes the mirror.
            document.submit_op(skeleton_op())
            return self._done(ReactionKind.BOOTSTRAP, op_count=1)

        return self.on_remote_change()

    # ------------------------------------------------------------------
    # Remote -> local
    # ------------------------------------------------------------------

    def _document_changed(self, op: list | None, local: bool) -> None:
        self.on_remote_change()

    def on_remote_change(self) -> Reaction:
        """Write the current snapshot to the mirror unless it is an echo."""
        session = self.session
        if session.closed:
            return self._done(ReactionKind.SKIP_INACTIVE)

        try:
            markup = to_markup(session.current_tree)
        except MalformedTreeError as exc:
            logger.error("Unable to serialize document: %s", exc)
            return self._done(ReactionKind.SKIP_ERROR, error=str(exc))

        if markup == session.last_written_markup:
            return self._done(ReactionKind.SKIP_ECHO)

        self._warn_if_mirror_edited()
        try:
            write_file(session.mirror_path, markup)
        except OSError as exc:
            logger.error(
                "Unable to write mirror file %s: %s", session.mirror_path, exc
            )
            return self._done(ReactionKind.SKIP_ERROR, error=str(exc))

        session.record_write(markup)
        logger.debug(
            "Wrote %d chars to %s", len(markup), session.mirror_path
        )
        return self._done(ReactionKind.WRITE)

    def _warn_if_mirror_edited(self) -> None:
        # A save the watcher has not polled yet is about to be overwritten.
        session = self.session
        if session.last_local_markup is None:
            return
        try:
            content, _ = read_file_with_encoding(session.mirror_path)
        except OSError:
            return
        if content != session.last_local_markup:
            logger.warning(
                "Mirror file %s changed locally since last sync; "
                "overwriting with remote changes",
                session.mirror_path,
            )

    # ------------------------------------------------------------------
    # Local -> remote
    # ------------------------------------------------------------------

    def on_local_change(self) -> Reaction:
        """Submit the difference between the mirror file and the snapshot."""
        session = self.session
        if not session.active:
            logger.debug("Subscription inactive, ignoring local change")
            return self._done(ReactionKind.SKIP_INACTIVE)

        try:
            content, _ = read_file_with_encoding(session.mirror_path)
        except OSError as exc:
            logger.warning(
                "Unable to read mirror file %s: %s", session.mirror_path, exc
            )
            return self._done(ReactionKind.SKIP_ERROR, error=str(exc))

        if content == session.last_local_markup:
            return self._done(ReactionKind.SKIP_UNCHANGED)
        session.record_local(content)

        try:
            tree = normalize(from_markup(content))
        except ParseError as exc:
            logger.warning("Unable to parse %s: %s", session.mirror_path, exc)
            return self._done(ReactionKind.SKIP_ERROR, error=str(exc))

        ops = diff(session.current_tree, tree)
        if not ops:
            return self._done(ReactionKind.SKIP_UNCHANGED)

        try:
            session.document.submit_op(ops)
        except OpRejectedError as exc:
            logger.warning("Local edit rejected (%s)", exc)
            self.recovery.recover()
            return self._done(ReactionKind.RECOVER, error=str(exc))

        logger.debug("Submitted %d op component(s)", len(ops))
        return self._done(ReactionKind.SUBMIT, op_count=len(ops))

    def _done(self, kind: ReactionKind, **fields) -> Reaction:
        reaction = Reaction(kind=kind, **fields)
        self.last_reaction = reaction
        return reaction
