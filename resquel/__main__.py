# File: resquel/__main__.py
"""
Resquel - Module entry point.

Allows serving a configuration directly via::

    python -m resquel --config routes.yaml

This module simply delegates to the CLI entry point defined in ``resquel.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from resquel.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
