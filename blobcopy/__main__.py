"""Allow running as ``python -m blobcopy``."""

from .main import cli

cli()
