# File: goscaffold/__main__.py
"""
goscaffold — Module entry point.

Allows running the scaffolder directly via::

    python -m goscaffold feature Product --fields "name:string,price:float"

This module simply delegates to the CLI entry point defined in ``goscaffold.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from goscaffold.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
