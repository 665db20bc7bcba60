"""Configuration for a sync session.

Reads the document id, server host and mirror settings from CLI args,
environment variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    WEBSTRATE_ID: Document identifier (optional, default: contenteditable)
    WEBSTRATE_HOST: Server host or websocket URL (optional, default: ws://localhost:7007)
    WEBSTRATE_MOUNT_DIR: Directory for mirror files (optional, default: ./documents)
    WEBSTRATE_RECONNECT_DELAY: Seconds before reconnecting (optional, default: 1)
    WEBSTRATE_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .validators import normalize_host, validate_document_id

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_ID = "contenteditable"
DEFAULT_HOST = "ws://localhost:7007"
DEFAULT_MOUNT_DIR = "./documents"
DEFAULT_COLLECTION = "webstrates"
WEBSOCKET_PATH = "/ws/"


@dataclass
class Config:
    document_id: str = DEFAULT_DOCUMENT_ID
    host: str = DEFAULT_HOST
    mount_dir: str = DEFAULT_MOUNT_DIR
    collection: str = DEFAULT_COLLECTION
    poll_interval: float = 0.25
    reconnect_delay: float = 1.0
    reconnect_factor: float = 1.0
    reconnect_max_delay: float = 30.0
    max_frame_size: int = 20 * 1024 * 1024
    debug: bool = False

    @property
    def websocket_url(self) -> str:
        """Full websocket URL of the server endpoint."""
        return self.host.rstrip("/") + WEBSOCKET_PATH


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Normalizes the host in place: a host without a ``ws://`` or
    ``wss://`` scheme gets ``wss://``.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the document id, host or a numeric setting is invalid.
    """
    ok, reason = validate_document_id(config.document_id)
    if not ok:
        raise ValueError(f"Invalid document id '{config.document_id}': {reason}")

    config.host = normalize_host(config.host)
    parsed = urlparse(config.host)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid host '{config.host}': must include a hostname"
        )

    if not config.collection.strip():
        raise ValueError("Collection name cannot be empty")

    if config.poll_interval <= 0:
        raise ValueError(
            f"Invalid poll interval {config.poll_interval}: must be positive"
        )

    if config.reconnect_delay < 0 or config.reconnect_max_delay < 0:
        raise ValueError("Reconnect delays cannot be negative")

    if config.reconnect_factor < 1:
        raise ValueError(
            f"Invalid reconnect factor {config.reconnect_factor}: must be >= 1"
        )

    if config.host.startswith("ws://") and parsed.hostname not in (
        "localhost",
        "127.0.0.1",
        "::1",
    ):
        logger.warning(
            "WARNING: unencrypted websocket connection to %s", parsed.hostname
        )


def _get_float_env(key: str) -> float | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid {key} '{raw}': must be a number") from None


def load_config(
    document_id: str | None = None,
    host: str | None = None,
    mount_dir: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        document_id: Override document id.
        host: Override server host.
        mount_dir: Override mirror directory.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file
            (see ``config_schema.flatten_config``).

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If any resolved value is invalid.
    """
    fb = yaml_fallbacks or {}

    final_id = (
        document_id
        or os.getenv("WEBSTRATE_ID")
        or fb.get("document_id")
        or DEFAULT_DOCUMENT_ID
    )
    final_host = (
        host or os.getenv("WEBSTRATE_HOST") or fb.get("host") or DEFAULT_HOST
    )
    final_mount = (
        mount_dir
        or os.getenv("WEBSTRATE_MOUNT_DIR")
        or fb.get("mount_dir")
        or DEFAULT_MOUNT_DIR
    )

    if debug:
        final_debug = True
    else:
        env_debug = os.getenv("WEBSTRATE_DEBUG")
        if env_debug is not None:
            final_debug = env_debug.lower() in ("true", "1", "yes", "on")
        else:
            final_debug = bool(fb.get("debug", False))

    env_delay = _get_float_env("WEBSTRATE_RECONNECT_DELAY")
    final_delay = (
        env_delay
        if env_delay is not None
        else float(fb.get("reconnect_delay", 1.0))
    )

    config = Config(
        document_id=final_id.strip(),
        host=final_host.strip(),
        mount_dir=final_mount,
        collection=fb.get("collection", DEFAULT_COLLECTION),
        poll_interval=float(fb.get("poll_interval", 0.25)),
        reconnect_delay=final_delay,
        reconnect_factor=float(fb.get("reconnect_factor", 1.0)),
        reconnect_max_delay=float(fb.get("reconnect_max_delay", 30.0)),
        max_frame_size=int(fb.get("max_frame_size", 20 * 1024 * 1024)),
        debug=final_debug,
    )

    validate_config(config)

    return config
