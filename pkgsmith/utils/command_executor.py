import shutil
import subprocess
from ..cli_logger import logger
from ..errors import CommandError, ToolNotInstalledError


def run_shell_command(command, env=None, cwd=None, input_data=None):
    """
    Executes a command and captures its output.

    Args:
        command (list): The command to execute as a list of strings.
        env (dict, optional): A dictionary of environment variables.
        cwd (str, optional): The working directory for the command.
        input_data (str, optional): Data to be passed to the command's stdin.

    Returns:
        A tuple (stdout, stderr, return_code). A missing executable is
        reported as return code 127 instead of raising.
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            input=input_data,
            check=False,
            cwd=cwd
        )
        return result.stdout, result.stderr, result.returncode
    except FileNotFoundError as e:
        logger.error(f"Command not found: {e.filename}")
        return "", str(e), 127


def run_checked(command, env=None, cwd=None, description=None):
    """Run ``command`` and raise ``CommandError`` on a non-zero exit.

    The exit status is logged for every command; captured output is logged
    only when the command fails.
    """
    label = description or " ".join(command)
    logger.info(f"  - Running {label}")
    stdout, stderr, returncode = run_shell_command(command, env=env, cwd=cwd)
    if returncode != 0:
        logger.error(f"{label} failed (Exit Code: {returncode}):")
        if stdout:
            logger.error(f"Stdout:\n{stdout}")
        if stderr:
            logger.error(f"Stderr:\n{stderr}")
        raise CommandError(command, returncode, stdout, stderr)
    logger.step_info(f"exit status 0: {label}", indent=4)
    return stdout


def command_exists(name):
    return shutil.which(name) is not None


def require_command(name):
    """Return the resolved path of ``name`` or raise ``ToolNotInstalledError``."""
    path = shutil.which(name)
    if path is None:
        raise ToolNotInstalledError(name)
    return path
