import functools
import sys

import click

from .cli_logger import logger
from .errors import PkgsmithError


def handle_exceptions(func):
    """A decorator to handle common exceptions for CLI commands."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            sys.exit(1)
        except click.ClickException:
            raise
        except PkgsmithError as e:
            logger.error(f"Error: {e}")
            sys.exit(1)
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.info("Please check the log file for more details.")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
