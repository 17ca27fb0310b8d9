import click

from .. import installer
from ..decorators import handle_exceptions


@click.command(name="install-bin")
@click.argument("package", type=click.Path(dir_okay=False))
@click.argument("root", default="/", required=False, type=click.Path(file_okay=False))
@handle_exceptions
def install_bin(package, root):
    """Install a binary package.

    PACKAGE: A .tar.zst or .tar.gz package produced by 'pkgsmith build'.
    ROOT: Directory to install into (default: /).
    """
    installer.install_package(package, root)
