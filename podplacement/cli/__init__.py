"""podplacement command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``podplacement`` script).
"""

from podplacement.cli.main import cli

__all__ = ["cli"]
