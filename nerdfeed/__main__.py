"""Allow ``python -m nerdfeed``."""

from nerdfeed.cli.main import cli


if __name__ == "__main__":
    cli()
