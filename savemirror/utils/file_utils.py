"""
Local file utilities (timestamps, directory emptying and copying)
"""
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..errors import FilesystemError

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')


def timestamp(now: Optional[datetime] = None) -> str:
    """Return a YYYYMMDD_HHMMSS stamp for backup directory names."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def safe_dirname(name: str) -> str:
    """Replace characters that cannot appear in a directory name."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip().rstrip(".")
    return cleaned or "_"


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError("mkdir", str(path), exc) from exc
    return path


def empty_dir(path: Path) -> Path:
    """
    Make *path* an existing, empty directory.
    Creates it if missing; removes every child otherwise.
    """
    ensure_dir(path)
    try:
        children = list(path.iterdir())
    except OSError as exc:
        raise FilesystemError("list", str(path), exc) from exc
    for child in children:
        try:
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        except OSError as exc:
            raise FilesystemError("delete", str(child), exc) from exc
    return path


def copy_tree(src: Path, dst: Path) -> Path:
    """Copy the contents of *src* into *dst* (created if needed)."""
    if not src.is_dir():
        raise FilesystemError("copy", str(src), FileNotFoundError(f"not a directory: {src}"))
    try:
        shutil.copytree(src, dst, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise FilesystemError("copy", str(src), exc) from exc
    return dst
