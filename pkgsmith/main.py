import click

from . import config as config_module
from .context import BuildContext
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory holding pkgsmith.toml.")
@click.option("--work-dir", envvar="WORK", default=None, help="Directory for downloads and extracted sources.")
@click.option("--staging-root", envvar="DESTDIR", default=None, help="Directory builds install into (DESTDIR).")
@click.option("--output-dir", envvar="OUT", default=None, help="Directory packages are written to.")
@click.option("--jobs", "-j", envvar="JOBS", type=int, default=None, help="Parallel jobs handed to the build tool.")
@click.option("--prefix", envvar="PREFIX", default=None, help="Default install prefix for recipes.")
@click.option("--patch-level", envvar="PATCH_LEVEL", type=int, default=None, help="Default strip level for patches.")
@click.pass_context
def cli(ctx, path, work_dir, staging_root, output_dir, jobs, prefix, patch_level):
    """pkgsmith: build, package and install software from recipes."""
    conf = config_module.load_config(path=path)
    settings = config_module.resolve_settings(conf, {
        "work_dir": work_dir,
        "staging_root": staging_root,
        "output_dir": output_dir,
        "jobs": jobs,
        "prefix": prefix,
        "patch_level": patch_level,
    })
    try:
        build_context = BuildContext.from_settings(settings)
    except (TypeError, ValueError) as e:
        raise click.BadParameter(str(e)) from e
    ctx.obj = {"path": path, "config": conf, "context": build_context}

cli.add_command(build)
cli.add_command(install_bin)
cli.add_command(build_install)
cli.add_command(doctor)
cli.add_command(version)

if __name__ == '__main__':
    cli()
