import glob
import os

from .cli_logger import logger
from .errors import MissingPackageError, UnsupportedArchiveError
from .packager import META_NAME, package_codec, parse_metadata
from .utils.command_executor import command_exists, require_command
from .utils.file_manager import _safe_extract_tar, open_tar_archive


def install_package(package_path, root_dir="/"):
    """
    Unpacks a package produced by the packager into ``root_dir``.

    Entries are extracted in archive order and paths escaping the root are
    rejected. The embedded ``.META`` record is not written to the root; it is
    parsed and returned instead.
    """
    if not os.path.isfile(package_path):
        raise MissingPackageError(f"Package not found: {package_path}")

    codec = package_codec(package_path)
    if codec is None:
        raise UnsupportedArchiveError(f"Unknown package format: {os.path.basename(package_path)}")
    if codec == "zstd":
        require_command("zstd")

    os.makedirs(root_dir, exist_ok=True)
    logger.info(f"Installing {os.path.basename(package_path)} into {root_dir}...")
    with open_tar_archive(package_path, codec) as tar:
        reserved = _safe_extract_tar(tar, root_dir, reserved=(META_NAME,))

    metadata = parse_metadata(reserved[META_NAME]) if META_NAME in reserved else {}
    if metadata:
        logger.success(f"Installed {metadata.get('name')}-{metadata.get('version')} into {root_dir}")
    else:
        logger.warning(f"{os.path.basename(package_path)} carries no {META_NAME} record.")
        logger.success(f"Installed {package_path} into {root_dir}")
    return metadata


def latest_package(output_dir, name=None, version=None):
    """Return the most recently written package in ``output_dir``.

    With ``version`` the match is exact on ``{name}-{version}-``, so recipes
    whose names extend ``name`` (``gcc`` vs ``gcc-libs``) are not picked up.
    """
    if name and version:
        pattern = f"{name}-{version}-*.tar.*"
    elif name:
        pattern = f"{name}-*.tar.*"
    else:
        pattern = "*.tar.*"
    candidates = [
        path for path in glob.glob(os.path.join(output_dir, pattern))
        if os.path.isfile(path) and package_codec(path) is not None
    ]
    if not candidates:
        label = f"{name}-{version}" if version else name
        what = f"for {label} " if name else ""
        raise MissingPackageError(f"No package {what}found in {output_dir}")
    return max(candidates, key=os.path.getmtime)


REQUIRED_TOOLS = ("bash", "git", "patch")
# tool -> what is lost without it
OPTIONAL_TOOLS = {
    "zstd": "packages fall back to gzip and .tar.zst archives cannot be read",
    "make": "autotools projects cannot be built",
    "cmake": "CMake projects cannot be built",
    "meson": "Meson projects cannot be built",
}


def check_environment():
    """Check the host tools pkgsmith shells out to. Returns False if a required one is missing."""
    logger.info("Checking pkgsmith environment...")
    all_ok = True
    for tool in REQUIRED_TOOLS:
        if command_exists(tool):
            logger.step_info(f"{tool}: found", indent=1)
        else:
            logger.error(f"Required tool '{tool}' is not installed.")
            all_ok = False
    for tool, impact in OPTIONAL_TOOLS.items():
        if command_exists(tool):
            logger.step_info(f"{tool}: found", indent=1)
        else:
            logger.warning(f"Optional tool '{tool}' is not installed; {impact}.")
    return all_ok
