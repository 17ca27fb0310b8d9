import sys

import click

from .. import installer
from ..cli_logger import logger
from ..decorators import handle_exceptions


@click.command()
@handle_exceptions
def doctor():
    """Check that the tools pkgsmith relies on are installed."""
    logger.info("Running environment check...")
    if installer.check_environment():
        logger.success("Environment check completed successfully.")
    else:
        logger.error("Environment check found issues. Please review the errors above.")
        sys.exit(1)
