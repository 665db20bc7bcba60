"""Tests for webstrate_sync.lifespan -- startup/shutdown lifecycle.

Tests the sync_lifespan() async context manager which:
- Loads .env and YAML config (unless given)
- Resolves the final Config with CLI overrides
- Fails fast with RuntimeError on invalid configuration
"""

import asyncio
from unittest.mock import patch

import pytest

from webstrate_sync.config import Config
from webstrate_sync.config_schema import UnifiedConfig, build_config
from webstrate_sync.lifespan import load_unified_config, sync_lifespan


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "WEBSTRATE_SYNC_CONFIG",
        "WEBSTRATE_ID",
        "WEBSTRATE_HOST",
        "WEBSTRATE_MOUNT_DIR",
        "WEBSTRATE_RECONNECT_DELAY",
        "WEBSTRATE_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def _enter(**kwargs):
    async def scenario():
        async with sync_lifespan(**kwargs) as ctx:
            return ctx

    return asyncio.run(scenario())


class TestSyncLifespan:
    def test_defaults(self):
        ctx = _enter()
        config = ctx["config"]
        assert isinstance(config, Config)
        assert config.document_id == "contenteditable"

    def test_cli_overrides(self):
        ctx = _enter(config_overrides={"document_id": "notes", "host": "example.com"})
        assert ctx["config"].document_id == "notes"
        assert ctx["config"].host == "wss://example.com"

    def test_unified_config_used(self):
        unified = build_config({"mirror": {"document_id": "slides"}})
        ctx = _enter(unified=unified)
        assert ctx["config"].document_id == "slides"

    def test_yaml_file_loaded(self, isolated):
        config_dir = isolated / ".webstrate_sync"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text(
            "server:\n  collection: drafts\n"
        )
        ctx = _enter()
        assert ctx["config"].collection == "drafts"

    def test_invalid_config_raises_runtime_error(self):
        with pytest.raises(RuntimeError, match="Configuration error"):
            _enter(config_overrides={"document_id": "../bad"})

    def test_logs_shutdown(self, caplog):
        with caplog.at_level("INFO"):
            _enter()
        assert "webstrate-sync shutting down." in caplog.text


class TestLoadUnifiedConfig:
    def test_zero_config(self):
        unified, sources = load_unified_config()
        assert unified == UnifiedConfig()
        assert sources == []

    def test_invalid_yaml_raises_runtime_error(self, isolated):
        config_dir = isolated / ".webstrate_sync"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text("reconnect:\n  factor: 0.1\n")

        with pytest.raises(RuntimeError, match="Invalid config file"):
            load_unified_config()

    def test_dotenv_loaded(self):
        with patch("webstrate_sync.lifespan.load_dotenv") as mock_dotenv:
            load_unified_config()
        mock_dotenv.assert_called_once()
