from .command_executor import command_exists, require_command, run_checked, run_shell_command
from .file_manager import _safe_join, _safe_extract_tar, _safe_extract_zip, detect_format, extract, normalize_source_root, open_tar_archive, sniff_content_type
