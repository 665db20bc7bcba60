"""Shared pytest fixtures for webstrate-sync tests."""

import pytest

from webstrate_sync.converters.tree import skeleton_tree
from webstrate_sync.core.document import Document
from webstrate_sync.core.json0 import JSON0_TYPE_URI
from webstrate_sync.sync.controller import SyncController
from webstrate_sync.sync.session import DocumentSession

COLLECTION = "webstrates"
DOC_ID = "notes"


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live webstrates server",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live webstrates server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeConnection:
    """In-memory stand-in for ``Connection``: records posted messages."""

    def __init__(self, client_id: str = "client-1"):
        self.client_id = client_id
        self.sent: list[dict] = []

    def post(self, message: dict) -> None:
        self.sent.append(message)


def snapshot_message(data, version=1, type_name=JSON0_TYPE_URI) -> dict:
    """Build the server's reply to a subscribe request."""
    return {
        "a": "s",
        "c": COLLECTION,
        "d": DOC_ID,
        "data": {"v": version, "type": type_name, "data": data},
    }


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def document(connection):
    """A document that has not been subscribed yet."""
    return Document(connection, COLLECTION, DOC_ID)


@pytest.fixture
def subscribed_document(document):
    """A document subscribed at version 1 holding the skeleton tree."""
    document.handle_message(snapshot_message(skeleton_tree()))
    return document


@pytest.fixture
def session(subscribed_document, tmp_path):
    return DocumentSession(subscribed_document, tmp_path / f"{DOC_ID}.html")


@pytest.fixture
def controller(session):
    ctrl = SyncController(session)
    ctrl.attach()
    return ctrl


@pytest.fixture
def make_snapshot():
    """Factory for subscribe replies: ``make_snapshot(data, version=1)``."""
    return snapshot_message
