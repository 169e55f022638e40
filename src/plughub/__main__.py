"""Entry point for ``python -m plughub``."""

from plughub.cli import cli

if __name__ == "__main__":
    cli()
