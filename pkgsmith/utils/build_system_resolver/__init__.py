"""
Chooses how a source root is built.

A recipe with ``build_steps`` always gets ``ExplicitSteps``. Otherwise the
source root is inspected for marker files, in priority order:

- ``configure``      -> Autotools
- ``CMakeLists.txt`` -> CMake
- ``meson.build``    -> Meson
"""
from ...cli_logger import logger
from ...errors import BuildSystemNotDetectedError
from .base_resolver import BuildStrategy, ThreePhaseBuild
from .resolvers import Autotools, CMake, ExplicitSteps, Meson

AUTODETECT_ORDER = (Autotools, CMake, Meson)


def detect_build_system(source_root):
    """Return the first autodetectable strategy class for ``source_root``, or ``None``."""
    for strategy in AUTODETECT_ORDER:
        if strategy.detect(source_root):
            logger.info(f"  - Found '{strategy.marker}', assuming {strategy.name}.")
            return strategy
    return None


def resolve_build_strategy(recipe, source_root, context, env=None):
    if recipe.build_steps:
        logger.info(f"  - Using {len(recipe.build_steps)} explicit build step(s) for {recipe.label}.")
        return ExplicitSteps(recipe.build_steps, env=env)

    strategy = detect_build_system(source_root)
    if strategy is None:
        raise BuildSystemNotDetectedError(
            f"Could not detect a build system in {source_root}. Provide build_steps in the recipe."
        )
    return strategy(recipe.effective_prefix(context), env=env)


__all__ = [
    "AUTODETECT_ORDER",
    "Autotools",
    "BuildStrategy",
    "CMake",
    "ExplicitSteps",
    "Meson",
    "ThreePhaseBuild",
    "detect_build_system",
    "resolve_build_strategy",
]
