# File: resquel/cli.py
"""
Resquel - Command-Line Interface
================================

Serves a route configuration as a REST API with uvicorn, or checks it.

Usage examples::

    # Serve on the default host / port
    python -m resquel --config routes.yaml

    # Mount under /api with verbose output
    resquel -c routes.yaml --prefix /api -v

    # Point the same config at another database
    resquel -c routes.yaml --database-url postgresql+asyncpg://app@db/app

    # Validate only (nothing is served)
    resquel -c routes.yaml --validate-only

Exit codes:
    0 - success
    1 - validation error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("resquel")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_INPUT_ERROR: int = 4

DATABASE_URL_ENV: str = "RESQUEL_DATABASE_URL"


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root resquel logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity < 0:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("resquel")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


def _uvicorn_log_level(verbosity: int) -> str:
    if verbosity >= 2:
        return "debug"
    if verbosity >= 1:
        return "info"
    if verbosity < 0:
        return "critical"
    return "warning"


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from resquel import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="resquel",
        description=(
            "Resquel - REST routes compiled from a declarative config.\n\n"
            "Each route maps an HTTP method and path to one SQL operation on "
            "one table, wrapped in optional before / after hooks."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -c routes.yaml\n"
            "  %(prog)s -c routes.yaml --prefix /api -v\n"
            "  %(prog)s -c routes.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Resquel v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "-c", "--config",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the route configuration file (JSON or YAML).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the configuration; do not connect or serve.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--database-url",
        type=str,
        default=os.environ.get(DATABASE_URL_ENV),
        metavar="URL",
        help=f"Override db.url (default: ${DATABASE_URL_ENV} if set).",
    )
    config_group.add_argument(
        "--prefix",
        type=str,
        default="",
        metavar="PREFIX",
        help="URL prefix the routes are mounted under (e.g. '/api').",
    )

    # --- Server ---
    server_group = parser.add_argument_group("server")
    server_group.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1).",
    )
    server_group.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind (default: 8000).",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(config_path: Path, database_url: Optional[str]) -> int:
    """
    Run validation only. Returns the appropriate exit code.
    """
    from resquel.loader import read_config
    from resquel.utils import Timer
    from resquel.validators import validate_full

    logger.info("Running validation-only mode for: %s", config_path)

    try:
        config = read_config(config_path, database_url=database_url)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load configuration: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_full(config)

    print(f"\n{'='*50}")
    print("  Route Configuration Report")
    print(f"{'='*50}")
    print(f"  File:     {config_path.name}")
    print(f"  Routes:   {len(config.routes)}")
    print(f"  Tables:   {', '.join(config.table_names)}")
    print(f"  Database: {config.db.dialect_name}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")
    print()
    print(result.format_report())
    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Serve mode
# ---------------------------------------------------------------------------


def _run_server(config_path: Path, args: argparse.Namespace, verbosity: int) -> int:
    """Build the app and hand it to uvicorn. Returns the exit code."""
    import uvicorn

    from resquel.core import Resquel, create_app

    try:
        resquel: Resquel = Resquel.from_file(config_path, database_url=args.database_url)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load configuration: %s", exc)
        return EXIT_INPUT_ERROR

    app = create_app(resquel, prefix=args.prefix)
    logger.info(
        "Serving %d route(s) on http://%s:%d%s",
        len(resquel.config.routes),
        args.host,
        args.port,
        args.prefix,
    )
    # Configuration errors surface from the lifespan and stop the server.
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=_uvicorn_log_level(verbosity),
    )
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)

    config_path: Path = Path(args.config).resolve()

    if not config_path.exists():
        logger.error("Config file not found: %s", config_path)
        sys.exit(EXIT_INPUT_ERROR)

    if not config_path.is_file():
        logger.error("Config path is not a file: %s", config_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(config_path, args.database_url))

    if args.prefix and not args.prefix.startswith("/"):
        logger.error("--prefix must start with '/', got '%s'.", args.prefix)
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    sys.exit(_run_server(config_path, args, verbosity))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_INPUT_ERROR",
]
