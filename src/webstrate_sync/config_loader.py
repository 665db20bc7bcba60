"""
Config file discovery and loading for webstrate_sync.

Finds YAML config files by convention, merges them with "project wins"
semantics and interpolates ``${VAR}`` references from the environment.

Usage:
    from webstrate_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WEBSTRATE_SYNC_CONFIG"
CONFIG_DIR_NAME = ".webstrate_sync"

# ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    An unset or empty variable uses the default when one is given and the
    empty string otherwise.  ``${`` without a closing brace is left as is.
    """

    def _substitute(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_substitute, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def discover_config_files() -> list[Path]:
    """Return existing config files, highest precedence first.

    Search order:
        1. ``WEBSTRATE_SYNC_CONFIG`` env var (explicit path)
        2. ``.webstrate_sync/config.yml`` in CWD (project-level)
        3. ``~/.config/webstrate_sync/config.yml`` (user-level)
    """
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    candidates.append(Path.cwd() / CONFIG_DIR_NAME / "config.yml")
    candidates.append(
        Path.home() / ".config" / "webstrate_sync" / "config.yml"
    )

    return [path for path in candidates if path.exists()]


def load_yaml_file(path: Path) -> Any:
    """Parse one YAML file with the safe loader."""
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are applied from lowest to highest precedence; top-level keys
    of a higher-precedence file replace those of lower ones (no deep
    merge).  Environment interpolation runs after the merge.

    Returns an empty dict when no config files exist (zero-config).

    Raises:
        yaml.YAMLError: If a config file is not valid YAML.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = load_yaml_file(path)
        except yaml.YAMLError:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
