"""Recipe model, validation and the TOML recipe loader.

A recipe file looks like::

    name = "hello"
    version = "2.12"
    source_url = "https://ftp.gnu.org/gnu/hello/hello-${VERSION}.tar.gz"
    patches = ["fix-build.patch"]
    build_steps = [
        "./configure --prefix=$PREFIX",
        "make -j$JOBS",
        "make DESTDIR=$DESTDIR install",
    ]

    [hooks]
    post_build = "echo built $NAME-$VERSION"

or uses a ``[git]`` table (``url``, ``dir``, ``ref``) instead of
``source_url``.
"""
import os
import string
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import toml

from .cli_logger import logger
from .errors import RecipeValidationError
from .utils.command_executor import run_checked

HOOK_NAMES = ("pre_fetch", "post_extract", "pre_build", "post_build")


@dataclass
class Recipe:
    name: str
    version: str
    source_url: Optional[str] = None
    git_url: Optional[str] = None
    git_dir: Optional[str] = None
    git_ref: Optional[str] = None
    patch_sources: List[str] = field(default_factory=list)
    build_steps: Optional[List[str]] = None
    install_prefix: Optional[str] = None
    patch_level: Optional[int] = None
    pre_fetch: Optional[Callable[[], None]] = None
    post_extract: Optional[Callable[[str], None]] = None
    pre_build: Optional[Callable[[str], None]] = None
    post_build: Optional[Callable[[str], None]] = None

    def effective_prefix(self, context):
        return self.install_prefix or context.install_prefix

    def effective_patch_level(self, context):
        return context.patch_level if self.patch_level is None else self.patch_level

    @property
    def label(self):
        return f"{self.name}-{self.version}"


class ShellHook:
    """A hook declared in a recipe file as a shell command."""

    def __init__(self, name, command):
        self.name = name
        self.command = command

    def __call__(self, source_root=None, env=None):
        run_env = dict(env if env is not None else os.environ)
        if source_root:
            run_env["SRCDIR"] = source_root
        cwd = source_root or run_env.get("WORK")
        run_checked(
            ["bash", "-euo", "pipefail", "-c", self.command],
            env=run_env,
            cwd=cwd,
            description=f"{self.name} hook: {self.command}",
        )

    def __repr__(self):
        return f"ShellHook({self.name!r}, {self.command!r})"


def _is_blank(value):
    return value is None or not str(value).strip()


def validate_recipe(recipe):
    """Raise ``RecipeValidationError`` unless ``recipe`` can be executed."""
    if _is_blank(recipe.name):
        raise RecipeValidationError("Recipe: 'name' is required")
    if _is_blank(recipe.version):
        raise RecipeValidationError(f"Recipe {recipe.name}: 'version' is required")

    has_url = not _is_blank(recipe.source_url)
    has_git = not _is_blank(recipe.git_url)
    if not has_url and not has_git:
        raise RecipeValidationError(f"Recipe {recipe.name}: set 'source_url' or a git url")
    if has_url and has_git:
        raise RecipeValidationError(f"Recipe {recipe.name}: 'source_url' and git url are mutually exclusive")

    if recipe.patch_level is not None and int(recipe.patch_level) < 0:
        raise RecipeValidationError(f"Recipe {recipe.name}: 'patch_level' must be >= 0")
    for hook_name in HOOK_NAMES:
        hook = getattr(recipe, hook_name)
        if hook is not None and not callable(hook):
            raise RecipeValidationError(f"Recipe {recipe.name}: hook '{hook_name}' is not callable")
    return recipe


def _expand(value, variables):
    if value is None:
        return None
    return string.Template(str(value)).safe_substitute(variables)


def recipe_from_dict(data, base_dir="."):
    """Build a ``Recipe`` from parsed recipe data.

    ``$NAME`` and ``$VERSION`` are expanded in the source url, git url and
    patch entries. Relative local patch paths are taken relative to
    ``base_dir``.
    """
    name = str(data.get("name", "") or "")
    version = str(data.get("version", "") or "")
    variables = {"NAME": name, "VERSION": version}

    git = data.get("git") or {}
    if isinstance(git, str):
        git = {"url": git}

    patches = []
    for entry in data.get("patches", []) or []:
        entry = _expand(entry, variables)
        if "://" not in entry and not os.path.isabs(entry):
            entry = os.path.normpath(os.path.join(base_dir, entry))
        patches.append(entry)

    build_steps = data.get("build_steps")
    if build_steps is not None:
        build_steps = [str(step) for step in build_steps]

    hooks = data.get("hooks") or {}
    unknown = sorted(set(hooks) - set(HOOK_NAMES))
    if unknown:
        raise RecipeValidationError(f"Recipe {name}: unknown hook(s): {', '.join(unknown)}")

    patch_level = data.get("patch_level")
    return Recipe(
        name=name,
        version=version,
        source_url=_expand(data.get("source_url"), variables),
        git_url=_expand(git.get("url"), variables),
        git_dir=git.get("dir"),
        git_ref=_expand(git.get("ref"), variables),
        patch_sources=patches,
        build_steps=build_steps,
        install_prefix=data.get("install_prefix"),
        patch_level=int(patch_level) if patch_level is not None else None,
        **{hook_name: ShellHook(hook_name, command) for hook_name, command in hooks.items()},
    )


def load_recipe(path):
    """Load a TOML recipe file."""
    logger.info(f"Loading recipe {path}")
    if not os.path.isfile(path):
        raise RecipeValidationError(f"Recipe not found: {path}")
    try:
        with open(path, "r") as f:
            data = toml.load(f)
    except toml.TomlDecodeError as e:
        raise RecipeValidationError(f"Error decoding recipe {path}: {e}") from e
    return recipe_from_dict(data, base_dir=os.path.dirname(os.path.abspath(path)))
