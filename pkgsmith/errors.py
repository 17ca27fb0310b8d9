class PkgsmithError(Exception):
    """Base class for every fatal pkgsmith error."""


class RecipeValidationError(PkgsmithError):
    pass


class FetchError(PkgsmithError):
    pass


class ArchiveError(PkgsmithError):
    pass


class UnsupportedArchiveError(ArchiveError):
    pass


class UnsafeArchiveError(ArchiveError):
    pass


class ToolNotInstalledError(PkgsmithError):
    def __init__(self, tool):
        super().__init__(f"{tool} is not installed")
        self.tool = tool


class PatchError(PkgsmithError):
    pass


class HookError(PkgsmithError):
    pass


class BuildSystemNotDetectedError(PkgsmithError):
    pass


class CommandError(PkgsmithError):
    """A subprocess exited with a non-zero status."""

    def __init__(self, command, returncode, stdout="", stderr=""):
        if isinstance(command, (list, tuple)):
            command = " ".join(command)
        super().__init__(f"Command failed (Exit Code: {returncode}): {command}")
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class MissingPackageError(PkgsmithError):
    pass
