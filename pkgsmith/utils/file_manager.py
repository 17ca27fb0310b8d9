import bz2
import contextlib
import gzip
import lzma
import os
import shutil
import subprocess
import tarfile
import tempfile
import time
import zipfile
from ..cli_logger import logger
from ..errors import ArchiveError, UnsafeArchiveError, UnsupportedArchiveError
from .command_executor import require_command

# Longest suffixes first so that ".tar.gz" wins over ".gz".
ARCHIVE_FORMATS = (
    ((".tar.gz", ".tgz"), "tar", "gz"),
    ((".tar.xz", ".txz"), "tar", "xz"),
    ((".tar.bz2", ".tbz2", ".tbz"), "tar", "bz2"),
    ((".tar.zst", ".tzst"), "tar", "zstd"),
    ((".zip",), "zip", None),
    ((".gz",), "single", "gz"),
    ((".xz",), "single", "xz"),
    ((".bz2",), "single", "bz2"),
)

_SINGLE_FILE_OPENERS = {
    "gz": gzip.open,
    "xz": lzma.open,
    "bz2": bz2.open,
}

CHUNK_SIZE = 1024 * 64

_MAGIC_NUMBERS = (
    (b"\x1f\x8b", "application/gzip"),
    (b"\xfd7zXZ\x00", "application/x-xz"),
    (b"BZh", "application/x-bzip2"),
    (b"\x28\xb5\x2f\xfd", "application/zstd"),
    (b"PK\x03\x04", "application/zip"),
    (b"PK\x05\x06", "application/zip"),
)


# -------------------- Format detection --------------------

def detect_format(archive_path):
    """Return ``(kind, codec, suffix)`` from the file name, or ``(None, None, None)``."""
    lowered = os.path.basename(archive_path).lower()
    for suffixes, kind, codec in ARCHIVE_FORMATS:
        for suffix in suffixes:
            if lowered.endswith(suffix):
                return kind, codec, suffix
    return None, None, None


def sniff_content_type(path):
    """Guess a MIME type from the leading bytes of ``path``."""
    with open(path, "rb") as f:
        header = f.read(512)
    if not header:
        return "inode/x-empty"
    for magic, mime in _MAGIC_NUMBERS:
        if header.startswith(magic):
            return mime
    if header[257:262] == b"ustar":
        return "application/x-tar"
    try:
        header.decode("utf-8")
        return "text/plain"
    except UnicodeDecodeError:
        return "application/octet-stream"


# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if os.path.commonpath([base, final]) != base:
        raise UnsafeArchiveError(f"Unsafe path detected: {final}")
    return final


def _ensure_real_parent(real_base, path):
    """Refuse to write through a symlinked directory that leaves ``real_base``."""
    parent = os.path.realpath(os.path.dirname(path))
    if os.path.commonpath([real_base, parent]) != real_base:
        raise UnsafeArchiveError(f"Unsafe path detected: {path} resolves outside {real_base}")


def _remove_existing(path):
    if os.path.islink(path) or os.path.isfile(path):
        os.remove(path)


def _safe_extract_zip(zip_ref, dest_dir, log_each=False):
    """Safely extract a zip file, preventing zip slip attacks."""
    real_base = os.path.realpath(dest_dir)
    for member in zip_ref.infolist():
        target_path = _safe_join(dest_dir, member.filename)
        if member.is_dir():
            if log_each:
                logger.step_info(f"creating: {member.filename}", indent=3)
            os.makedirs(target_path, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(target_path), exist_ok=True)
        _ensure_real_parent(real_base, target_path)
        if log_each:
            logger.step_info(f"extracting: {member.filename}", indent=2)
        _remove_existing(target_path)
        with zip_ref.open(member, "r") as src, open(target_path, "wb") as out:
            shutil.copyfileobj(src, out)
        mode = (member.external_attr >> 16) & 0o7777
        if mode:
            os.chmod(target_path, mode)


def _safe_extract_tar(tar_ref, dest_dir, reserved=(), log_each=False):
    """
    Safely extract a tar archive, preventing path traversal attacks.

    Members are read sequentially so ``tar_ref`` may be a stream opened with
    mode ``r|``. Members named in ``reserved`` are not written to disk; their
    contents are returned as ``{name: bytes}``.
    """
    real_base = os.path.realpath(dest_dir)
    captured = {}
    directory_modes = []

    for member in tar_ref:
        name = os.path.normpath(member.name)
        if name in (".", ""):
            continue
        if name in reserved:
            src = tar_ref.extractfile(member)
            captured[name] = src.read() if src is not None else b""
            continue

        member_path = _safe_join(dest_dir, name)
        if member.isdir():
            if log_each:
                logger.step_info(f"creating: {name}", indent=3)
            if not os.path.isdir(member_path):
                os.makedirs(member_path)
                directory_modes.append((member_path, member.mode))
            continue

        os.makedirs(os.path.dirname(member_path), exist_ok=True)
        _ensure_real_parent(real_base, member_path)
        if log_each:
            logger.step_info(f"extracting: {name}", indent=2)

        if member.issym():
            _remove_existing(member_path)
            os.symlink(member.linkname, member_path)
        elif member.islnk():
            link_target = _safe_join(dest_dir, os.path.normpath(member.linkname))
            _remove_existing(member_path)
            os.link(link_target, member_path, follow_symlinks=False)
        elif member.isfile():
            _remove_existing(member_path)
            with tar_ref.extractfile(member) as src, open(member_path, "wb") as out:
                shutil.copyfileobj(src, out)
            if member.mode:
                os.chmod(member_path, member.mode & 0o7777)
            os.utime(member_path, (member.mtime, member.mtime))
        else:
            logger.debug(f"Skipping special file {name}")

    # Applied last so read-only directories do not block their own contents.
    for path, mode in reversed(directory_modes):
        if mode:
            os.chmod(path, mode & 0o7777)
    return captured


@contextlib.contextmanager
def open_tar_archive(archive_path, codec):
    """Open ``archive_path`` as a tar archive compressed with ``codec``.

    ``codec`` is one of ``gz``, ``xz``, ``bz2``, ``zstd`` or ``None``. zstd is
    decoded by piping through the ``zstd`` binary, so the yielded archive is a
    forward-only stream.
    """
    if codec != "zstd":
        with tarfile.open(archive_path, f"r:{codec or ''}") as tar:
            yield tar
        return

    zstd = require_command("zstd")
    process = subprocess.Popen(
        [zstd, "-d", "-c", "-q", archive_path],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    try:
        with tarfile.open(fileobj=process.stdout, mode="r|") as tar:
            yield tar
        # drain trailing padding so zstd does not exit on a broken pipe
        while process.stdout.read(CHUNK_SIZE):
            pass
    finally:
        process.stdout.close()
        stderr = process.stderr.read().decode(errors="replace")
        process.stderr.close()
        returncode = process.wait()
    if returncode != 0:
        raise ArchiveError(f"zstd failed to decompress {archive_path} (Exit Code: {returncode}): {stderr.strip()}")


def _decompress_single(archive_path, codec, suffix, dest_dir):
    filename = os.path.basename(archive_path)[:-len(suffix)] or "data"
    target = _safe_join(dest_dir, filename)
    with _SINGLE_FILE_OPENERS[codec](archive_path, "rb") as src, open(target, "wb") as out:
        shutil.copyfileobj(src, out)


def normalize_source_root(dest_dir):
    """Return the single top-level directory of ``dest_dir``, or ``dest_dir`` itself."""
    entries = os.listdir(dest_dir)
    if len(entries) == 1:
        only = os.path.join(dest_dir, entries[0])
        if os.path.isdir(only) and not os.path.islink(only):
            return only
    return dest_dir


def extract(archive_path, context, dest_dir=None):
    """
    Extracts ``archive_path`` and returns the source root.

    The format is taken from the file suffix; for an unknown suffix only an
    uncompressed tar stream is accepted. The destination defaults to a fresh
    ``src-<timestamp>-*`` directory in the work dir, unique per call.
    """
    if not os.path.isfile(archive_path):
        raise ArchiveError(f"Archive not found: {archive_path}")

    filename = os.path.basename(archive_path)
    kind, codec, suffix = detect_format(archive_path)
    if kind is None:
        mime = sniff_content_type(archive_path)
        if mime != "application/x-tar":
            raise UnsupportedArchiveError(f"Unsupported format: {filename} ({mime})")
        kind, codec = "tar", None
    elif codec == "zstd":
        require_command("zstd")

    if dest_dir is None:
        os.makedirs(context.work_dir, exist_ok=True)
        dest_dir = tempfile.mkdtemp(prefix=f"src-{int(time.time())}-", dir=context.work_dir)
    else:
        os.makedirs(dest_dir, exist_ok=True)
    logger.step_info(f"Archive:  {filename}")
    try:
        if kind == "tar":
            with open_tar_archive(archive_path, codec) as tar:
                _safe_extract_tar(tar, dest_dir)
        elif kind == "zip":
            with zipfile.ZipFile(archive_path, "r") as zip_ref:
                _safe_extract_zip(zip_ref, dest_dir)
        else:
            _decompress_single(archive_path, codec, suffix, dest_dir)
    except (tarfile.TarError, zipfile.BadZipFile, lzma.LZMAError, EOFError, OSError) as e:
        logger.error(f"Error during extraction of {filename}: {e}")
        raise ArchiveError(f"Failed to extract {filename}: {e}") from e

    source_root = normalize_source_root(dest_dir)
    logger.success(f"Extracted {filename} to {source_root}")
    return source_root
