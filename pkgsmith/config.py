import os
import toml
from .cli_logger import logger

CONFIG_FILE = "pkgsmith.toml"

DEFAULTS = {
    "work_dir": "/tmp/work",
    "staging_root": "/tmp/dest",
    "output_dir": "/tmp/out",
    "jobs": os.cpu_count() or 2,
    "prefix": "/usr",
    "patch_level": 1,
}


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    if not os.path.exists(config_path):
        return {}
    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, "r") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        logger.error(f"Error decoding TOML file at {config_path}: {e}")
        logger.info("Please check the file's format for syntax errors.")
    except IOError as e:
        logger.error(f"Error reading configuration file at {config_path}: {e}")
        logger.info("Please check file permissions.")
    return {}


def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")


def resolve_settings(conf=None, overrides=None):
    """Merge defaults, the ``[build]`` table of ``conf`` and ``overrides``.

    ``None`` values in ``overrides`` (options the user did not pass) are
    ignored so that the file and the defaults still apply.
    """
    settings = dict(DEFAULTS)
    build_table = (conf or {}).get("build", {})
    for key in DEFAULTS:
        if build_table.get(key) is not None:
            settings[key] = build_table[key]
    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value
    return settings
