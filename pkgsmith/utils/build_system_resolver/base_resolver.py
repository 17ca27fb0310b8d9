import os
from abc import ABC, abstractmethod

from ...cli_logger import logger
from ..command_executor import require_command, run_checked


class BuildStrategy(ABC):
    """Common interface of every way a source root can be built and staged."""

    name = "build"

    @abstractmethod
    def run(self, source_root, context):
        """Build ``source_root`` and install it into ``context.staging_root``."""


class ThreePhaseBuild(BuildStrategy):
    """
    configure -> build -> stage-install, as done by autodetected build
    systems. ``install_prefix`` shapes the installed layout while the
    staging root is where the files land.
    """

    marker = None
    tool = None

    def __init__(self, install_prefix, env=None):
        self.install_prefix = install_prefix
        self.env = env

    @classmethod
    def detect(cls, source_root):
        return os.path.isfile(os.path.join(source_root, cls.marker))

    @abstractmethod
    def get_build_commands(self, source_root, context):
        """Returns a dict with 'configure_command', 'build_command' and 'install_command'."""

    def install_env(self, context):
        return self.env

    def run(self, source_root, context):
        if self.tool:
            require_command(self.tool)
        logger.info(f"  - Building {source_root} with {self.name} (prefix {self.install_prefix}, {context.parallelism} job(s))")
        commands = self.get_build_commands(source_root, context)
        run_checked(commands["configure_command"], env=self.env, cwd=source_root, description=f"{self.name} configure")
        run_checked(commands["build_command"], env=self.env, cwd=source_root, description=f"{self.name} build")
        run_checked(commands["install_command"], env=self.install_env(context), cwd=source_root,
                    description=f"{self.name} install")
