import click

from .. import builder
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..recipe import load_recipe


@click.command()
@click.argument("recipes", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.pass_context
@handle_exceptions
def build(ctx, recipes):
    """Build one or more recipes into binary packages.

    RECIPES: Paths to TOML recipe files, built in the given order.
    """
    context = ctx.obj["context"]
    loaded = [load_recipe(path) for path in recipes]
    packages = builder.build_recipes(loaded, context)

    logger.success(f"{len(packages)} package(s) built:")
    for package in packages:
        click.echo(package.archive_path)
