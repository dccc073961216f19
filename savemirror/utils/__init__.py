"""Utilities (logging, local file helpers)"""
from .logging import log, vlog, warn, error, set_verbose
from .file_utils import timestamp, ensure_dir, empty_dir, copy_tree

__all__ = [
    "log", "vlog", "warn", "error", "set_verbose",
    "timestamp", "ensure_dir", "empty_dir", "copy_tree",
]
