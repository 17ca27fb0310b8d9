import datetime
import gzip
import io
import os
import platform
import shutil
import tarfile
import time
from dataclasses import dataclass

from .cli_logger import logger
from .errors import ArchiveError, UnsupportedArchiveError
from .utils.command_executor import command_exists, run_checked
from .utils.file_manager import open_tar_archive

META_NAME = ".META"

# package suffix -> codec understood by open_tar_archive
PACKAGE_CODECS = {
    ".tar.zst": "zstd",
    ".tar.gz": "gz",
    ".tgz": "gz",
}


@dataclass(frozen=True)
class Package:
    name: str
    version: str
    architecture: str
    built_at: str
    archive_path: str
    compression_codec: str

    @property
    def filename(self):
        return os.path.basename(self.archive_path)


def host_architecture():
    return platform.machine() or "unknown"


def utc_timestamp():
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def package_codec(package_path):
    """Codec for a package file name, or ``None`` if the suffix is unknown."""
    lowered = package_path.lower()
    for suffix, codec in PACKAGE_CODECS.items():
        if lowered.endswith(suffix):
            return codec
    return None


def format_metadata(name, version, built_at):
    return f"name={name}\nversion={version}\nbuilt_at={built_at}\n".encode()


def parse_metadata(data):
    metadata = {}
    for line in data.decode(errors="replace").splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            metadata[key.strip()] = value.strip()
    return metadata


def _root_owned(tarinfo):
    tarinfo.uid = tarinfo.gid = 0
    tarinfo.uname = tarinfo.gname = "root"
    return tarinfo


def _write_tar(staging_root, tar_path, metadata):
    with tarfile.open(tar_path, "w") as tar:
        for entry in sorted(os.listdir(staging_root)):
            if entry == META_NAME:
                logger.warning(f"Ignoring {META_NAME} found in the staging root; it is reserved for package metadata.")
                continue
            tar.add(os.path.join(staging_root, entry), arcname=entry, filter=_root_owned)

        info = _root_owned(tarfile.TarInfo(META_NAME))
        info.size = len(metadata)
        info.mode = 0o644
        info.mtime = int(time.time())
        tar.addfile(info, io.BytesIO(metadata))


def _compress(tar_path):
    """Compress ``tar_path`` in place; returns ``(archive_path, codec)``."""
    if command_exists("zstd"):
        archive_path = tar_path + ".zst"
        run_checked(["zstd", "-19", "-q", "-f", "--rm", tar_path, "-o", archive_path], description="zstd -19")
        return archive_path, "zstd"

    logger.warning("zstd not found, falling back to gzip.")
    archive_path = tar_path + ".gz"
    with open(tar_path, "rb") as src, gzip.open(archive_path, "wb", compresslevel=9) as out:
        shutil.copyfileobj(src, out)
    os.remove(tar_path)
    return archive_path, "gzip"


def package_staging_root(staging_root, name, version, output_dir, architecture=None):
    """
    Archives the whole staging root into
    ``{output_dir}/{name}-{version}-{arch}.tar.{zst|gz}``.

    The build metadata (name, version, UTC build time) is embedded in the
    archive as a ``.META`` member; no sidecar file is written.
    """
    if not os.path.isdir(staging_root):
        raise ArchiveError(f"Staging root not found: {staging_root}")
    architecture = architecture or host_architecture()
    os.makedirs(output_dir, exist_ok=True)

    pkgbase = f"{name}-{version}-{architecture}"
    tar_path = os.path.join(output_dir, f"{pkgbase}.tar")
    built_at = utc_timestamp()

    logger.info(f"  - Packaging {staging_root} as {pkgbase}...")
    _write_tar(staging_root, tar_path, format_metadata(name, version, built_at))
    archive_path, codec = _compress(tar_path)

    logger.success(f"Package created: {archive_path}")
    return Package(
        name=name,
        version=version,
        architecture=architecture,
        built_at=built_at,
        archive_path=archive_path,
        compression_codec=codec,
    )


def read_package_metadata(package_path):
    """Return the embedded ``.META`` record of a package as a dict."""
    codec = package_codec(package_path)
    if codec is None:
        raise UnsupportedArchiveError(f"Unknown package format: {package_path}")
    with open_tar_archive(package_path, codec) as tar:
        for member in tar:
            if os.path.normpath(member.name) == META_NAME:
                return parse_metadata(tar.extractfile(member).read())
    return {}
