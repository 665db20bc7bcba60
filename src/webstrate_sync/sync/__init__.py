"""Bidirectional sync between a mirror file and a shared json0 document.

Modules:

- ``diff``       -- ``diff``: structural tree diff producing json0 ops.
- ``session``    -- ``DocumentSession``: per-document state.
- ``controller`` -- ``SyncController``: remote-change and local-change
  reactions, bootstrap.
- ``recovery``   -- ``ConflictRecovery``: reset to the skeleton document.
- ``watcher``    -- ``MirrorWatcher``: polling file watcher.
- ``service``    -- ``SyncService``: connection lifecycle and reconnects.
- ``models``     -- ``SyncEvent``, ``Reaction`` and their enums.

Usage example
-------------
::

    import asyncio
    from webstrate_sync.config import load_config
    from webstrate_sync.sync import SyncService

    config = load_config(document_id="notes", host="ws://localhost:7007")
    asyncio.run(SyncService(config).run())
"""

from .controller import SyncController
from .diff import diff
from .models import EventKind, Reaction, ReactionKind, SyncEvent
from .recovery import ConflictRecovery, skeleton_op
from .service import SyncService
from .session import DocumentSession
from .watcher import MirrorWatcher

__all__ = [
    "ConflictRecovery",
    "DocumentSession",
    "EventKind",
    "MirrorWatcher",
    "Reaction",
    "ReactionKind",
    "SyncController",
    "SyncEvent",
    "SyncService",
    "diff",
    "skeleton_op",
]
