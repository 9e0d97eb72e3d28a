"""Trust Layer command line interface."""

from trustlayer.cli.main import cli

__all__ = ["cli"]
