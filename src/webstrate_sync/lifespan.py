"""Lifespan management for sync process startup and shutdown."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError
from yaml import YAMLError

from .config import load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, flatten_config

logger = logging.getLogger(__name__)


def load_unified_config() -> tuple[UnifiedConfig, list[str]]:
    """Load .env and YAML config files.

    Returns:
        The validated file config and a description of each source used.

    Raises:
        RuntimeError: If a config file is invalid.
    """
    # .env first so ${VAR} interpolation in YAML can use its values
    load_dotenv()

    sources: list[str] = []
    try:
        config_files = discover_config_files()
        unified = build_config(load_hierarchical_config())
    except (YAMLError, ValidationError) as e:
        logger.error("Invalid config file: %s", e)
        raise RuntimeError(f"Invalid config file: {e}") from e

    if config_files:
        sources.append(f"config file: {config_files[0]}")
    return unified, sources


@asynccontextmanager
async def sync_lifespan(
    config_overrides: dict[str, Any] | None = None,
    unified: UnifiedConfig | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage sync process startup and shutdown.

    On startup:
    - Load .env and YAML config (unless *unified* is given)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Log the resolved document, server and mirror directory

    On shutdown:
    - Log shutdown message (the service deletes the mirror file itself)

    Args:
        config_overrides: Optional dict with CLI values (document_id, host,
            mount_dir, debug).
        unified: Already loaded file config.

    Yields:
        Dict with 'config' key containing the validated Config

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("webstrate-sync starting...")

    overrides = config_overrides or {}
    sources: list[str] = []
    if unified is None:
        unified, sources = load_unified_config()

    try:
        config = load_config(
            document_id=overrides.get("document_id"),
            host=overrides.get("host"),
            mount_dir=overrides.get("mount_dir"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=flatten_config(unified),
        )
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise RuntimeError(f"Configuration error: {e}") from e

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    logger.info("Document: %s", config.document_id)
    logger.info("Mount directory: %s", config.mount_dir)

    try:
        yield {"config": config}
    finally:
        logger.info("webstrate-sync shutting down.")
