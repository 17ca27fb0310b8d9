import contextlib
import os
from urllib.parse import urlsplit

import requests

from .cli_logger import logger
from .errors import CommandError, FetchError
from .utils.command_executor import require_command, run_checked

CHUNK_SIZE = 1024 * 256


def filename_from_url(url):
    """Last path segment of ``url`` with query string and fragment dropped."""
    path = urlsplit(url).path
    filename = os.path.basename(path.rstrip("/"))
    if not filename:
        raise FetchError(f"Cannot derive a file name from URL: {url}")
    return filename


def fetch_file(url, context, dest_path=None, timeout=60):
    """
    Downloads ``url`` to ``dest_path`` (default: the work dir, named after
    the URL's last path segment) and returns the path.

    An existing file at the target is overwritten. Any HTTP or network error
    is fatal.
    """
    if dest_path is None:
        dest_path = os.path.join(context.work_dir, filename_from_url(url))
    os.makedirs(os.path.dirname(os.path.abspath(dest_path)), exist_ok=True)
    temp_path = dest_path + ".part"
    filename = os.path.basename(dest_path)

    logger.info(f"  - Downloading {url}")
    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            total_size = int(r.headers.get("content-length", 0) or 0)
            with open(temp_path, "wb") as f:
                chunks = logger.progress(
                    r.iter_content(chunk_size=CHUNK_SIZE),
                    description=f"Downloading {filename}",
                    total=total_size,
                )
                for chunk in chunks:
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)
        os.replace(temp_path, dest_path)
    except (requests.exceptions.RequestException, OSError) as e:
        with contextlib.suppress(OSError):
            os.remove(temp_path)
        logger.error(f"Error downloading {url}: {e}")
        raise FetchError(f"Failed to download {url}: {e}") from e

    logger.success(f"Downloaded {filename}")
    return dest_path


def _repository_dir_name(url):
    name = os.path.basename(url.rstrip("/"))
    if name.endswith(".git"):
        name = name[:-len(".git")]
    return name


def fetch_repository(url, context, dest_dir=None, ref=None):
    """
    Clones ``url`` recursively into ``dest_dir``, or updates it when a
    checkout already exists there, then checks out ``ref`` if given.
    """
    git = require_command("git")
    if not dest_dir:
        dest_dir = os.path.join(context.work_dir, _repository_dir_name(url))
    elif not os.path.isabs(dest_dir):
        dest_dir = os.path.join(context.work_dir, dest_dir)

    try:
        if os.path.isdir(os.path.join(dest_dir, ".git")):
            logger.info(f"  - Updating repository in {dest_dir}")
            run_checked([git, "-C", dest_dir, "fetch", "--all", "--tags"], description="git fetch")
        else:
            logger.info(f"  - Cloning {url} into {dest_dir}")
            os.makedirs(os.path.dirname(dest_dir), exist_ok=True)
            run_checked([git, "clone", "--recursive", url, dest_dir], description="git clone")
        if ref:
            run_checked([git, "-C", dest_dir, "checkout", ref], description=f"git checkout {ref}")
    except CommandError as e:
        raise FetchError(f"Failed to fetch repository {url}: {e}") from e

    return dest_dir
