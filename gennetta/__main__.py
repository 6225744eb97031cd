# File: gennetta/__main__.py
"""
GenNetta — module entry point.

    python -m gennetta -c "Server=db1;Database=Shop;Trusted_Connection=true" -o ./ShopApp

Delegates to ``gennetta.cli.cli_main``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from gennetta.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
