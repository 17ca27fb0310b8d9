import enum

from . import downloader, installer, packager
from .cli_logger import logger
from .hooks import HookRunner
from .recipe import validate_recipe
from .utils import extract
from .utils.build_system_resolver import resolve_build_strategy
from .utils.patch_resolver import apply_patches


class Stage(enum.Enum):
    VALIDATE = "validate"
    ACQUIRE_SOURCE = "acquire-source"
    APPLY_PATCHES = "apply-patches"
    BUILD = "build"
    PACKAGE = "package"
    DONE = "done"
    FAILED = "failed"


class RecipeExecutor:
    """
    Drives one recipe through
    VALIDATE -> ACQUIRE_SOURCE -> APPLY_PATCHES -> BUILD -> PACKAGE -> DONE.

    Hooks run around the stages: ``pre_fetch`` before the source is acquired,
    ``post_extract`` right after, ``pre_build`` once patches are applied and
    ``post_build`` after the staged install. Any error moves the executor to
    FAILED and is re-raised unchanged; nothing is retried or cleaned up.
    """

    def __init__(self, recipe, context):
        self.recipe = recipe
        self.context = context
        self.state = None
        self.source_root = None
        self.package = None

    def _enter(self, stage):
        self.state = stage
        logger.step_info(f"[{self.recipe.label}] {stage.value}")

    def execute(self):
        try:
            return self._execute()
        except Exception:
            self.state = Stage.FAILED
            logger.error(f"Build of {self.recipe.label or self.recipe.name or 'recipe'} failed.")
            raise

    def _execute(self):
        recipe, context = self.recipe, self.context

        self._enter(Stage.VALIDATE)
        validate_recipe(recipe)
        logger.info(f"Building {recipe.label}")
        context.prepare()
        env = context.environment(recipe)
        hooks = HookRunner(recipe, env)

        hooks.run("pre_fetch")
        self._enter(Stage.ACQUIRE_SOURCE)
        self.source_root = self._acquire_source()
        hooks.run("post_extract", self.source_root)

        self._enter(Stage.APPLY_PATCHES)
        apply_patches(
            self.source_root,
            recipe.patch_sources,
            context,
            patch_level=recipe.effective_patch_level(context),
        )
        hooks.run("pre_build", self.source_root)

        self._enter(Stage.BUILD)
        strategy = resolve_build_strategy(recipe, self.source_root, context, env=env)
        strategy.run(self.source_root, context)
        hooks.run("post_build", self.source_root)

        self._enter(Stage.PACKAGE)
        self.package = packager.package_staging_root(
            context.staging_root, recipe.name, recipe.version, context.output_dir
        )

        self.state = Stage.DONE
        logger.success(f"Built {recipe.label}: {self.package.archive_path}")
        return self.package

    def _acquire_source(self):
        recipe = self.recipe
        if recipe.git_url:
            return downloader.fetch_repository(
                recipe.git_url, self.context, dest_dir=recipe.git_dir, ref=recipe.git_ref
            )
        archive_path = downloader.fetch_file(recipe.source_url, self.context)
        return extract(archive_path, self.context)


def build_recipe(recipe, context):
    return RecipeExecutor(recipe, context).execute()


def build_recipes(recipes, context):
    """Build ``recipes`` one after another, wiping the staging root after each."""
    packages = []
    for recipe in recipes:
        packages.append(build_recipe(recipe, context))
        context.reset_staging_root()
    return packages


def build_and_install(recipe, context, root_dir="/"):
    """Build ``recipe``, then install its newest package into ``root_dir``."""
    build_recipe(recipe, context)
    package_path = installer.latest_package(context.output_dir, recipe.name, recipe.version)
    return installer.install_package(package_path, root_dir)
