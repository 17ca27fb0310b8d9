import importlib.metadata
import sys

import click

from ..cli_logger import logger
from ..decorators import handle_exceptions

DISTRIBUTION = "pkgsmith"


@click.command()
@handle_exceptions
def version():
    """Print the installed pkgsmith version."""
    try:
        installed = importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        logger.error(f"{DISTRIBUTION} is not installed as a distribution; run 'pip install -e .' first.")
        sys.exit(1)
    click.echo(f"{DISTRIBUTION} {installed}")
