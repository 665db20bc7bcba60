"""
Input validation functions for webstrate-sync.

Validates the document identifier and the remote host before a session
is started.  The document id becomes a file name, so it must not be able
to escape the mount directory.
"""

import re

_DOCUMENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")

_WS_SCHEME = re.compile(r"^wss?://")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Document id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_document_id(document_id: str) -> tuple[bool, str]:
    """
    Validate a webstrate document identifier.

    Args:
        document_id: The identifier to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain '..' or path separators
        - Must start with a letter or digit and contain only letters,
          digits, '_', '-' and '.'
    """
    if not document_id or not document_id.strip():
        return (
            False,
            format_validation_error("Document id", "cannot be empty"),
        )

    if ".." in document_id or "/" in document_id or "\\" in document_id:
        return (
            False,
            format_validation_error(
                "Document id", "cannot contain '..' or path separators"
            ),
        )

    if not _DOCUMENT_ID_PATTERN.match(document_id):
        return (
            False,
            format_validation_error(
                "Document id",
                "may only contain letters, digits, '_', '-' and '.'",
            ),
        )

    return (True, "")


def normalize_host(host: str) -> str:
    """Return *host* with a websocket scheme, defaulting to ``wss://``.

    Examples:
        >>> normalize_host("ws://localhost:7007")
        'ws://localhost:7007'
        >>> normalize_host("webstrates.example.com")
        'wss://webstrates.example.com'
    """
    host = host.strip()
    if _WS_SCHEME.match(host):
        return host
    return "wss://" + host
