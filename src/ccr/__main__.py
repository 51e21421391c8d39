"""Allow running ccr as a module: python -m ccr."""

from .cli import cli

if __name__ == "__main__":  # pragma: no cover
    cli()
