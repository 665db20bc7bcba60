"""Round trip against a running webstrates server (``--run-live``).

Expects a server at ``WEBSTRATE_HOST`` (default ``ws://localhost:7007``).
"""

import asyncio
import os
import uuid

import pytest

from webstrate_sync.config import Config
from webstrate_sync.sync.service import SyncService

pytestmark = pytest.mark.live


def test_document_mirrored_and_cleaned_up(tmp_path):
    config = Config(
        document_id=f"sync-test-{uuid.uuid4().hex[:8]}",
        host=os.environ.get("WEBSTRATE_HOST", "ws://localhost:7007"),
        mount_dir=str(tmp_path),
        poll_interval=0.05,
    )
    service = SyncService(config)

    async def scenario():
        task = asyncio.create_task(service.run())
        for _ in range(100):
            if service.mirror.exists():
                break
            await asyncio.sleep(0.05)
        content = service.mirror.read_text()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return content

    assert asyncio.run(scenario()).startswith("<html")
    assert not service.mirror.exists()
