"""Configuration file schema for webstrate_sync.

Defines Pydantic models for the YAML config structure with sections for
the server, the mirror file, reconnect behaviour and logging, plus an
adapter that flattens a validated config into the fallback dict consumed
by ``config.load_config()``.

Usage:
    from webstrate_sync.config_schema import build_config, flatten_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=flatten_config(unified))
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """Collaborative-editing server settings."""

    host: str | None = Field(
        default=None, description="Server host or ws:// / wss:// URL"
    )
    collection: str = Field(
        default="webstrates", description="Document collection name"
    )
    max_frame_size: int = Field(
        default=20 * 1024 * 1024,
        ge=1024,
        description="Largest accepted websocket frame in bytes",
    )

    model_config = {"frozen": True}


class MirrorConfig(BaseModel):
    """Local mirror file settings.

    Attributes:
        document_id: Document to mirror.
        mount_dir: Directory that holds ``<document_id>.html``.
        poll_interval: Seconds between mirror file checks.
    """

    document_id: str | None = Field(default=None, description="Document id")
    mount_dir: str | None = Field(
        default=None, description="Mirror directory"
    )
    poll_interval: float = Field(
        default=0.25, gt=0, le=60, description="Watcher poll interval"
    )

    model_config = {"frozen": True}


class ReconnectConfig(BaseModel):
    """Delay schedule after the connection drops.

    ``factor == 1`` keeps a fixed delay; larger values back off
    exponentially up to ``max_delay``.
    """

    delay: float = Field(default=1.0, ge=0)
    factor: float = Field(default=1.0, ge=1)
    max_delay: float = Field(default=30.0, ge=0)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(default="text")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged YAML dict.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def flatten_config(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten *unified* into the ``yaml_fallbacks`` dict for ``load_config``.

    ``None`` values are left out so that they never shadow defaults.
    """
    flat = {
        "host": unified.server.host,
        "collection": unified.server.collection,
        "max_frame_size": unified.server.max_frame_size,
        "document_id": unified.mirror.document_id,
        "mount_dir": unified.mirror.mount_dir,
        "poll_interval": unified.mirror.poll_interval,
        "reconnect_delay": unified.reconnect.delay,
        "reconnect_factor": unified.reconnect.factor,
        "reconnect_max_delay": unified.reconnect.max_delay,
    }
    return {key: value for key, value in flat.items() if value is not None}
