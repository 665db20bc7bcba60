"""Per-document session state.

``DocumentSession`` holds everything a sync run needs across reactions:
the document object, the mirror file path and the two markup snapshots
used for echo suppression.

- ``last_written_markup`` is checked by the remote-change path.  A remote
  change that serializes to the same text is an echo of our own op and is
  not written again.
- ``last_local_markup`` is checked by the local-change path.  A
  notification whose content is unchanged is a duplicate and is ignored.

Both paths update both snapshots: after a write the file holds the
written markup, and after a local edit it holds the edited text, which
the echo of the resulting op must not overwrite.

The session is created on subscribe and closed on shutdown, which deletes
the mirror file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from webstrate_sync.file_handler import remove_file

logger = logging.getLogger(__name__)


class DocumentSession:
    """State shared by the sync controller and the service loop.

    Args:
        document: The document object (see ``core.document.Document``).
        mirror_path: Absolute path of the local mirror file.
    """

    def __init__(self, document, mirror_path: Path) -> None:
        self.document = document
        self.mirror_path = mirror_path
        self.last_written_markup: str | None = None
        self.last_local_markup: str | None = None
        self.closed = False

    @property
    def current_tree(self) -> Any:
        """The document snapshot; read-only outside of submitted ops."""
        return self.document.data

    @property
    def active(self) -> bool:
        """True while the document subscription is live."""
        return not self.closed and bool(self.document.subscribed)

    def attach(self, document) -> None:
        """Bind a fresh document after a reconnect.

        Both markup snapshots are reset so the first snapshot of the new
        subscription is always written to the mirror.
        """
        self.document = document
        self.last_written_markup = None
        self.last_local_markup = None

    def record_write(self, markup: str) -> None:
        """Remember *markup* as just written to the mirror."""
        self.last_written_markup = markup
        self.last_local_markup = markup

    def record_local(self, content: str) -> None:
        """Remember *content* as just read from the mirror."""
        self.last_local_markup = content
        self.last_written_markup = content

    def close(self) -> None:
        """Tear the session down and delete the mirror file (best effort)."""
        if self.closed:
            return
        self.closed = True
        try:
            if remove_file(self.mirror_path):
                logger.info("Removed mirror file %s", self.mirror_path)
        except OSError as exc:
            logger.warning(
                "Could not remove mirror file %s: %s", self.mirror_path, exc
            )
        destroy = getattr(self.document, "destroy", None)
        if destroy is not None:
            destroy()
