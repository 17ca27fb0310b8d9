import os
import shutil
from dataclasses import dataclass
from .cli_logger import logger


@dataclass(frozen=True)
class BuildContext:
    """Directories and knobs shared by every stage of one recipe run.

    ``staging_root`` is the DESTDIR the build installs into; ``install_prefix``
    and ``patch_level`` are the defaults for recipes that leave them unset.
    """

    work_dir: str
    staging_root: str
    output_dir: str
    parallelism: int = 1
    install_prefix: str = "/usr"
    patch_level: int = 1

    def __post_init__(self):
        if int(self.parallelism) < 1:
            raise ValueError(f"parallelism must be >= 1, got {self.parallelism}")
        if int(self.patch_level) < 0:
            raise ValueError(f"patch level must be >= 0, got {self.patch_level}")

    @classmethod
    def from_settings(cls, settings):
        return cls(
            work_dir=os.path.abspath(os.path.expanduser(str(settings["work_dir"]))),
            staging_root=os.path.abspath(os.path.expanduser(str(settings["staging_root"]))),
            output_dir=os.path.abspath(os.path.expanduser(str(settings["output_dir"]))),
            parallelism=int(settings["jobs"]),
            install_prefix=str(settings["prefix"]),
            patch_level=int(settings["patch_level"]),
        )

    def prepare(self):
        for path in (self.work_dir, self.staging_root, self.output_dir):
            os.makedirs(path, exist_ok=True)

    def reset_staging_root(self):
        logger.info(f"Resetting staging root {self.staging_root}")
        if os.path.isdir(self.staging_root):
            shutil.rmtree(self.staging_root)
        os.makedirs(self.staging_root, exist_ok=True)

    def environment(self, recipe=None):
        """Process environment handed to build steps and shell hooks."""
        env = os.environ.copy()
        env["WORK"] = self.work_dir
        env["DESTDIR"] = self.staging_root
        env["OUT"] = self.output_dir
        env["JOBS"] = str(self.parallelism)
        env["PREFIX"] = self.install_prefix
        if recipe is not None:
            env["NAME"] = recipe.name
            env["VERSION"] = recipe.version
            env["PREFIX"] = recipe.effective_prefix(self)
        return env
