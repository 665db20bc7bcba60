"""Conflict recovery: reset the shared document to a minimal skeleton.

Used when a local diff does not apply to the live snapshot.  Rather than
leave the mirror and the document diverged, the whole document is
replaced by ``["html", {}, ["body", {}]]`` with a single root-level
insert.  The local edit that caused the conflict is discarded; the
remote-change path then rewrites the mirror from the reset document.
"""

import logging

from webstrate_sync.converters.tree import skeleton_tree

logger = logging.getLogger(__name__)


def skeleton_op() -> list[dict]:
    """Return the json0 op that replaces the whole document with the skeleton."""
    return [{"p": [], "oi": skeleton_tree()}]


class ConflictRecovery:
    """Full-document reset policy for one session.

    Args:
        session: The ``DocumentSession`` whose document is reset.
    """

    def __init__(self, session) -> None:
        self.session = session
        self.recoveries = 0

    def recover(self) -> None:
        """Replace the document content with the skeleton tree.

        Creates the document first if the server has none.  A root-level
        ``oi`` applies to any snapshot, so this cannot itself be rejected.
        """
        document = self.session.document
        logger.warning("Invalid document, rebuilding.")
        if document.type is None:
            document.create("json0")
        document.submit_op(skeleton_op())
        self.recoveries += 1
