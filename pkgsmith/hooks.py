from .cli_logger import logger
from .errors import HookError, PkgsmithError
from .recipe import HOOK_NAMES, ShellHook


class HookRunner:
    """Invokes the optional per-stage callbacks of one recipe."""

    def __init__(self, recipe, environment=None):
        self.recipe = recipe
        self.environment = environment

    def run(self, hook_name, *args):
        if hook_name not in HOOK_NAMES:
            raise ValueError(f"Unknown hook: {hook_name}")
        callback = getattr(self.recipe, hook_name, None)
        if callback is None:
            return

        logger.info(f"  - Running {hook_name} hook for {self.recipe.label}")
        try:
            if isinstance(callback, ShellHook):
                callback(*args, env=self.environment)
            else:
                callback(*args)
        except HookError:
            raise
        except PkgsmithError as e:
            raise HookError(f"{hook_name} hook failed: {e}") from e
        except Exception as e:
            logger.exception(type(e), e, e.__traceback__)
            raise HookError(f"{hook_name} hook raised {type(e).__name__}: {e}") from e
