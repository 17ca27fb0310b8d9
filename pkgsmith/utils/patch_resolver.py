import os
from .. import downloader
from ..cli_logger import logger
from ..errors import FetchError, PatchError, ToolNotInstalledError
from .command_executor import require_command, run_shell_command


def is_url(source):
    return "://" in source


def apply_patches(source_root: str, patch_sources: list, context, patch_level: int = None) -> None:
    """
    Applies patches to a source root, strictly in list order.

    Args:
        source_root: The directory the patches are applied against.
        patch_sources: Local patch paths or URLs. URLs are downloaded into
            the work dir first.
        context: The BuildContext of the current run.
        patch_level: Leading path components to strip (``patch -p``);
            defaults to the context's patch level.

    Raises:
        PatchError: on the first patch that cannot be fetched, found or
            applied. Patches applied before it stay applied.
    """
    if not patch_sources:
        return
    if patch_level is None:
        patch_level = context.patch_level

    try:
        patch_cmd = require_command("patch")
    except ToolNotInstalledError as e:
        raise PatchError(str(e)) from e

    logger.info(f"  - Applying {len(patch_sources)} patch(es) to {source_root}...")
    for source in patch_sources:
        patch_path = source
        if is_url(source):
            try:
                patch_path = downloader.fetch_file(source, context)
            except FetchError as e:
                raise PatchError(f"Could not fetch patch {source}: {e}") from e
        elif not os.path.isfile(patch_path):
            raise PatchError(f"Patch file not found: {source}")

        patch_name = os.path.basename(patch_path)
        logger.info(f"    - Applying patch: {patch_name}")
        stdout, stderr, returncode = run_shell_command(
            [patch_cmd, f"-p{patch_level}", "-i", os.path.abspath(patch_path)],
            cwd=source_root
        )
        if returncode != 0:
            logger.error(f"    - Failed to apply patch {patch_name}: (Exit Code: {returncode})")
            if stdout:
                logger.error(f"      Patch Stdout:\n{stdout}")
            if stderr:
                logger.error(f"      Patch Stderr:\n{stderr}")
            raise PatchError(f"Patch {patch_name} failed to apply (Exit Code: {returncode})")
        logger.success(f"    - Successfully applied patch: {patch_name}")
