import click

from .. import builder
from ..decorators import handle_exceptions
from ..recipe import load_recipe


@click.command(name="build+install")
@click.argument("recipe", type=click.Path(dir_okay=False))
@click.argument("root", default="/", required=False, type=click.Path(file_okay=False))
@click.pass_context
@handle_exceptions
def build_install(ctx, recipe, root):
    """Build a recipe, then install its newest package into ROOT (default: /)."""
    builder.build_and_install(load_recipe(recipe), ctx.obj["context"], root)
