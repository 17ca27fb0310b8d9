import os
import stat

from ...cli_logger import logger
from ..command_executor import require_command, run_checked
from .base_resolver import BuildStrategy, ThreePhaseBuild


class ExplicitSteps(BuildStrategy):
    """Runs the recipe's own shell commands in order, stopping at the first failure."""

    name = "explicit steps"

    def __init__(self, steps, env=None):
        self.steps = list(steps)
        self.env = env

    def run(self, source_root, context):
        bash = require_command("bash")
        total = len(self.steps)
        for index, step in enumerate(self.steps, start=1):
            run_checked(
                [bash, "-euo", "pipefail", "-c", step],
                env=self.env,
                cwd=source_root,
                description=f"[{index}/{total}] {step}",
            )


class Autotools(ThreePhaseBuild):
    name = "autotools"
    marker = "configure"
    tool = "make"

    def get_build_commands(self, source_root, context):
        configure = os.path.join(source_root, "configure")
        mode = os.stat(configure).st_mode
        if not mode & stat.S_IXUSR:
            logger.info("  - Making configure executable")
            os.chmod(configure, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return {
            "configure_command": ["./configure", f"--prefix={self.install_prefix}"],
            "build_command": ["make", f"-j{context.parallelism}"],
            "install_command": ["make", f"DESTDIR={context.staging_root}", "install"],
        }


class CMake(ThreePhaseBuild):
    name = "cmake"
    marker = "CMakeLists.txt"
    tool = "cmake"

    def get_build_commands(self, source_root, context):
        return {
            "configure_command": ["cmake", "-S", ".", "-B", "build", f"-DCMAKE_INSTALL_PREFIX={self.install_prefix}"],
            "build_command": ["cmake", "--build", "build", "-j", str(context.parallelism)],
            "install_command": ["cmake", "--install", "build"],
        }

    def install_env(self, context):
        # cmake --install honours DESTDIR only through the environment
        env = dict(self.env if self.env is not None else os.environ)
        env["DESTDIR"] = context.staging_root
        return env


class Meson(ThreePhaseBuild):
    name = "meson"
    marker = "meson.build"
    tool = "meson"

    def get_build_commands(self, source_root, context):
        return {
            "configure_command": ["meson", "setup", "build", "--prefix", self.install_prefix],
            "build_command": ["meson", "compile", "-C", "build", "-j", str(context.parallelism)],
            "install_command": ["meson", "install", "-C", "build", "--destdir", context.staging_root],
        }
