"""Tests for sync.models -- queue events and reaction outcomes."""

import pytest
from pydantic import ValidationError

from webstrate_sync.sync.models import EventKind, Reaction, ReactionKind, SyncEvent


class TestSyncEvent:
    def test_local_change_has_no_message(self):
        event = SyncEvent(kind=EventKind.LOCAL_CHANGE)
        assert event.message is None

    def test_server_message(self):
        event = SyncEvent(kind="server_message", message={"a": "op"})
        assert event.kind is EventKind.SERVER_MESSAGE

    def test_frozen(self):
        event = SyncEvent(kind=EventKind.LOCAL_CHANGE)
        with pytest.raises(ValidationError):
            event.kind = EventKind.SERVER_MESSAGE


class TestReaction:
    @pytest.mark.parametrize(
        "kind",
        [
            ReactionKind.SKIP_ECHO,
            ReactionKind.SKIP_UNCHANGED,
            ReactionKind.SKIP_INACTIVE,
            ReactionKind.SKIP_ERROR,
        ],
    )
    def test_skipped(self, kind):
        assert Reaction(kind=kind).skipped

    @pytest.mark.parametrize(
        "kind",
        [
            ReactionKind.WRITE,
            ReactionKind.SUBMIT,
            ReactionKind.RECOVER,
            ReactionKind.BOOTSTRAP,
        ],
    )
    def test_not_skipped(self, kind):
        assert not Reaction(kind=kind).skipped

    def test_defaults(self):
        reaction = Reaction(kind=ReactionKind.WRITE)
        assert reaction.op_count == 0
        assert reaction.error is None
