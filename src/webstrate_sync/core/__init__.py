"""ShareDB client pieces: json0 application, documents and the websocket connection."""

from .async_utils import run_sync
from .connection import Connection, ReconnectPolicy
from .document import Document
from .json0 import JSON0_TYPE_URI, apply_op

__all__ = [
    "JSON0_TYPE_URI",
    "Connection",
    "Document",
    "ReconnectPolicy",
    "apply_op",
    "run_sync",
]
