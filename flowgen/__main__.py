# File: flowgen/__main__.py
"""
Flowgen — Module entry point.

Allows running the generator directly via::

    python -m flowgen build -s draft.yaml

This module simply delegates to the CLI entry point defined in ``flowgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from flowgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
