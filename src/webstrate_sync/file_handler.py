"""File handler module: mirror path resolution, encoding-aware read/write, cleanup.

All functions touch only the filesystem.  The watcher and controller call
them directly from the event loop; mirror files are small.
"""

import logging
from pathlib import Path

from charset_normalizer import from_bytes

from webstrate_sync.validators import validate_document_id

logger = logging.getLogger(__name__)

MIRROR_SUFFIX = ".html"

# =============================================================================
# Mirror Path
# =============================================================================


def mirror_path(mount_dir: str | Path, document_id: str) -> Path:
    """Return the mirror file path for *document_id* under *mount_dir*.

    Args:
        mount_dir: Directory holding mirror files (may be relative).
        document_id: Webstrate identifier; must be a valid file stem.

    Returns:
        Absolute path ``<mount_dir>/<document_id>.html``.

    Raises:
        ValueError: If the document id is not usable as a filename.
    """
    ok, reason = validate_document_id(document_id)
    if not ok:
        raise ValueError(reason)
    return Path(mount_dir).expanduser().resolve() / f"{document_id}{MIRROR_SUFFIX}"


def ensure_mount_dir(path: Path) -> Path:
    """Create the directory holding *path* if it does not exist yet."""
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.parent


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    try:
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        logger.warning("Could not detect encoding of %s, using utf-8", path)
        return (raw.decode("utf-8", errors="replace"), "utf-8")
    return (str(result), result.encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def remove_file(path: Path) -> bool:
    """Delete *path*, tolerating a file that is already gone.

    Returns:
        True if a file was removed, False if it did not exist.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
