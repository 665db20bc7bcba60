"""Exception hierarchy for webstrate-sync.

Errors are grouped by how far they are allowed to travel:

- ``ParseError`` and ``MalformedTreeError`` are contained within a single
  sync reaction (the reaction is logged and skipped).
- ``OpRejectedError`` is contained by a full document reset.
- ``ProtocolError`` is fatal for the session.
- ``ConnectionClosedError`` is recoverable via reconnect.
"""


class SyncError(Exception):
    """Base class for all webstrate-sync errors."""


class MalformedTreeError(SyncError):
    """A JsonML tree cannot be serialized to markup."""


class ParseError(SyncError):
    """Markup text cannot be parsed into a JsonML tree."""


class OpRejectedError(SyncError):
    """A json0 operation does not apply to the current document snapshot.

    Attributes:
        component: The op component that failed to apply, if known.
    """

    def __init__(self, message: str, component: dict | None = None):
        super().__init__(message)
        self.component = component


class ProtocolError(SyncError):
    """The collaborative-editing server reported an error.

    Attributes:
        code: Server error code, if one was sent.
    """

    def __init__(self, message: str, code: int | str | None = None):
        super().__init__(message)
        self.code = code


class ConnectionClosedError(SyncError):
    """The transport closed before a request could be answered."""
