"""Command-line entry point for webstrate-sync.

Mirrors one webstrate to ``<mount-dir>/<id>.html`` and keeps both sides in
sync until interrupted.  Ctrl-C deletes the mirror file and exits with
status 0; a protocol error from the server exits with status 1.
"""

import argparse
import asyncio
import logging
import sys

from . import __version__
from .errors import ProtocolError
from .lifespan import load_unified_config, sync_lifespan
from .logger import setup_logging
from .sync.service import SyncService


async def main(config_overrides: dict | None = None) -> None:
    """Configure logging, resolve configuration and run the sync service.

    Args:
        config_overrides: Optional dict with CLI values (document_id, host,
            mount_dir, debug, log_file, log_format).

    Raises:
        RuntimeError: If configuration is invalid.
        ProtocolError: If the server reports an error.
    """
    overrides = dict(config_overrides or {})
    unified, _ = load_unified_config()

    setup_logging(
        debug=overrides.get("debug", False),
        log_file=overrides.pop("log_file", None) or unified.logging.file,
        debug_format=overrides.pop("log_format", None) or unified.logging.format,
        level=unified.logging.level,
    )

    async with sync_lifespan(
        config_overrides=overrides, unified=unified
    ) as ctx:
        config = ctx["config"]
        if config.debug:
            # WEBSTRATE_DEBUG is only known once config is resolved
            logging.getLogger().setLevel(logging.DEBUG)
            logging.getLogger("websockets").setLevel(logging.NOTSET)
        service = SyncService(config)
        await service.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webstrate-sync",
        description="Mirror a webstrate to a local HTML file and keep both in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mirror the default document from a local server
  webstrate-sync

  # Mirror document "notes" from a remote server (wss:// is assumed)
  webstrate-sync --id notes --host webstrates.example.com

  # Custom mirror directory and debug logging to a file
  webstrate-sync --id notes --mount-dir ~/webstrates --debug --log-file sync.log

The mirror file is deleted when the program exits.
        """,
    )
    parser.add_argument(
        "--id",
        dest="document_id",
        help="Document id (default: contenteditable, or WEBSTRATE_ID)",
    )
    parser.add_argument(
        "--host",
        "-H",
        help="Server host or websocket URL (default: ws://localhost:7007, or WEBSTRATE_HOST)",
    )
    parser.add_argument(
        "--mount-dir",
        help="Directory for mirror files (default: ./documents, or WEBSTRATE_MOUNT_DIR)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"webstrate-sync version {__version__}",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Entry point that parses CLI arguments and maps outcomes to exit codes."""
    args = build_parser().parse_args(argv)

    config_overrides = {
        key: value
        for key, value in vars(args).items()
        if value not in (None, False)
    }

    try:
        asyncio.run(main(config_overrides))
    except RuntimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    except ProtocolError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
