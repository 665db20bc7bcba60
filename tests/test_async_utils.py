"""Tests for core.async_utils.run_sync."""

import asyncio
import threading

from webstrate_sync.core.async_utils import run_sync


def _sync_add(a: int, b: int) -> int:
    return a + b


def test_run_sync_calls_function():
    assert asyncio.run(run_sync(_sync_add, 3, 4)) == 7


def test_run_sync_passes_kwargs():
    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    assert asyncio.run(run_sync(_kw_func, name="world")) == "hello world"


def test_run_sync_uses_worker_thread():
    main_thread = threading.get_ident()
    worker = asyncio.run(run_sync(threading.get_ident))
    assert worker != main_thread
