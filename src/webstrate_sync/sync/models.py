"""Pydantic models for the sync loop.

- ``EventKind`` / ``SyncEvent``: items on the single event queue.
- ``ReactionKind`` / ``Reaction``: what one reaction did.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class EventKind(str, Enum):
    """Sources feeding the event queue."""

    SERVER_MESSAGE = "server_message"
    LOCAL_CHANGE = "local_change"


class SyncEvent(BaseModel):
    """One queued event.

    Attributes:
        kind: Which source produced the event.
        message: Decoded server message for ``SERVER_MESSAGE`` events.
    """

    kind: EventKind
    message: dict[str, Any] | None = None

    model_config = {"frozen": True}


class ReactionKind(str, Enum):
    """Outcome of a single sync reaction."""

    WRITE = "write"
    SUBMIT = "submit"
    RECOVER = "recover"
    BOOTSTRAP = "bootstrap"
    SKIP_ECHO = "skip_echo"
    SKIP_UNCHANGED = "skip_unchanged"
    SKIP_INACTIVE = "skip_inactive"
    SKIP_ERROR = "skip_error"


class Reaction(BaseModel):
    """Result of one remote-change or local-change reaction.

    Attributes:
        kind: What the reaction ended up doing.
        op_count: Number of json0 components submitted, if any.
        error: Error message when the reaction was skipped on failure.
    """

    kind: ReactionKind
    op_count: int = 0
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def skipped(self) -> bool:
        """True when the reaction changed neither side."""
        return self.kind.value.startswith("skip")
