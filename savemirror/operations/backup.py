"""
Timestamped safety snapshots taken before every mutating sync

Layout:  <backup_root>/<game>_<YYYYMMDD_HHMMSS>/{local,remote}/…
A snapshot root is never reused; snapshots are never rotated here.
"""
from datetime import datetime
from pathlib import Path

from .probe import exists
from .remote_tree import download_dir
from ..errors import FilesystemError
from ..models import BackupSnapshot, Game
from ..utils.file_utils import copy_tree, ensure_dir, safe_dirname, timestamp
from ..utils.logging import log


def _allocate_root(backup_root: Path, game: Game, now: datetime) -> Path:
    stem = f"{safe_dirname(game.name)}_{timestamp(now)}"
    ensure_dir(backup_root)
    root = backup_root / stem
    n = 0
    while True:
        try:
            root.mkdir()
            return root
        except FileExistsError:
            n += 1
            root = backup_root / f"{stem}_{n}"
        except OSError as exc:
            raise FilesystemError("mkdir", str(root), exc) from exc


def check_local(game: Game):
    """Raise FilesystemError unless the game's local save directory exists."""
    if not game.local_path.is_dir():
        raise FilesystemError("backup", str(game.local_path),
                              FileNotFoundError("local save directory does not exist"))


def snapshot(game: Game, backup_root: Path, session=None) -> BackupSnapshot:
    """
    Copy the local tree into ``local/`` and, when *session* is given, the
    remote tree into ``remote/``. A missing remote directory yields an empty
    ``remote/`` plus a note instead of an error.
    """
    check_local(game)
    now = datetime.now()
    root = _allocate_root(Path(backup_root), game, now)
    local_dir = copy_tree(game.local_path, root / "local")
    log(f"[backup] local backup done: {local_dir}")

    if session is None:
        return BackupSnapshot(root, local_dir, None, now)

    remote_dir = ensure_dir(root / "remote")
    notes = []
    probe = exists(session, game.remote_full_path)
    if probe.found:
        n = download_dir(session, probe.resolved_path, remote_dir)
        log(f"[backup] remote backup done: {remote_dir} ({n} file(s))")
    else:
        notes.append(f"remote directory {game.remote_full_path} did not exist; remote backup is empty")
        log(f"[backup] {notes[-1]}")
        if probe.last_error:
            notes.append(f"remote stat error: {probe.last_error}")
            log(f"[backup] {notes[-1]}")
    return BackupSnapshot(root, local_dir, remote_dir, now, tuple(notes))


def snapshot_local(game: Game, backup_root: Path) -> BackupSnapshot:
    """Local-only snapshot for the "backup only, do not sync" mode."""
    snap = snapshot(game, backup_root)
    log(f"[backup] local saves backed up (backup-only mode): {snap.local_dir}")
    return snap
