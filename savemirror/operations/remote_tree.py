"""
Recursive remote directory operations over an SFTP session

The session is anything exposing the ``sftp_*`` methods of SSHManager:
sftp_stat, sftp_listdir_attr, sftp_mkdir, sftp_remove, sftp_rmdir,
sftp_putfo and sftp_getfo. Local files are opened here, so a local I/O
failure is reported as FilesystemError rather than RemoteOperationError.

Error policy:
  * mkdir_all / remove_recursive are best effort. Failures on individual
    entries are logged and skipped ("already exists", "already gone").
  * upload_dir / download_dir move payload data; any failure raises
    RemoteOperationError (or FilesystemError for the local side).
"""
import stat
from pathlib import Path

from .paths import candidates, join, normalize, primary
from .probe import exists
from ..errors import SFTP_ERRORS, FilesystemError, RemoteOperationError
from ..utils.file_utils import ensure_dir
from ..utils.logging import vlog, warn


def mkdir_all(session, remote_dir: str):
    """Create *remote_dir* and every missing parent. Never raises."""
    target = normalize(remote_dir)
    cur = "/" if target.startswith("/") else ""
    for seg in (s for s in target.split("/") if s):
        cur = join(cur, seg) if cur else seg
        try:
            session.sftp_mkdir(cur)
            vlog(f"  [MKDIR] {cur}")
        except SFTP_ERRORS:
            # usually "already exists"
            pass


def _list(session, remote_dir: str) -> list:
    try:
        return session.sftp_listdir_attr(remote_dir)
    except SFTP_ERRORS as exc:
        raise RemoteOperationError("list", remote_dir, exc) from exc


def remove_recursive(session, remote_dir: str) -> int:
    """
    Delete everything below *remote_dir*, leaving the directory itself.

    Best effort: entries that cannot be removed are skipped and counted; the
    return value is the number of failures (0 means the directory is empty).
    Only a failure to list *remote_dir* itself raises RemoteOperationError.
    """
    base = normalize(remote_dir)
    failures = 0
    for attr in _list(session, base):
        rp = join(base, attr.filename)
        if stat.S_ISDIR(attr.st_mode or 0):
            try:
                failures += remove_recursive(session, rp)
            except RemoteOperationError as exc:
                vlog(f"  [RM-SKIP] {exc}")
                failures += 1
            try:
                session.sftp_rmdir(rp)
                vlog(f"  [RMDIR] {rp}")
            except SFTP_ERRORS as exc:
                vlog(f"  [RM-SKIP] {rp}: {exc}")
                failures += 1
        else:
            try:
                session.sftp_remove(rp)
                vlog(f"  [RM] {rp}")
            except SFTP_ERRORS as exc:
                vlog(f"  [RM-SKIP] {rp}: {exc}")
                failures += 1
    if failures:
        warn(f"{failures} remote entr{'y' if failures == 1 else 'ies'} under {base} could not be removed")
    return failures


def ensure_empty(session, remote_dir: str) -> str:
    """
    Return a spelling of *remote_dir* that denotes an existing, empty
    directory: the first existing candidate after emptying it, or the
    primary candidate freshly created.
    """
    for candidate in candidates(remote_dir):
        try:
            session.sftp_stat(candidate)
        except SFTP_ERRORS:
            continue
        remove_recursive(session, candidate)
        return candidate

    target = primary(remote_dir)
    mkdir_all(session, target)
    try:
        session.sftp_stat(target)
    except SFTP_ERRORS as exc:
        raise RemoteOperationError("mkdir", target, exc) from exc
    return target


def _resolve_target(session, remote_dir: str) -> str:
    probe = exists(session, remote_dir)
    return probe.resolved_path if probe.found else primary(remote_dir)


def upload_dir(session, local_dir: Path, remote_dir: str) -> int:
    """
    Upload the contents of *local_dir* into *remote_dir*.
    Returns the number of files uploaded.
    """
    target = _resolve_target(session, remote_dir)
    return _upload(session, Path(local_dir), target)


def _upload(session, local_dir: Path, target: str) -> int:
    mkdir_all(session, target)
    try:
        entries = sorted(local_dir.iterdir())
    except OSError as exc:
        raise FilesystemError("list", str(local_dir), exc) from exc

    count = 0
    for lp in entries:
        rp = join(target, lp.name)
        if lp.is_dir():
            count += _upload(session, lp, rp)
            continue
        try:
            fl = lp.open("rb")
        except OSError as exc:
            raise FilesystemError("read", str(lp), exc) from exc
        with fl:
            try:
                session.sftp_putfo(fl, rp)
            except SFTP_ERRORS as exc:
                raise RemoteOperationError("upload", rp, exc) from exc
        vlog(f"  [PUT ✓] {rp}")
        count += 1
    return count


def _links_to_dir(session, remote_path: str) -> bool:
    try:
        return stat.S_ISDIR(session.sftp_stat(remote_path).st_mode or 0)
    except SFTP_ERRORS:
        return False


def download_dir(session, remote_dir: str, local_dir: Path) -> int:
    """
    Download the contents of *remote_dir* into *local_dir* (created if
    needed). Returns the number of files downloaded.

    Symlinks to directories are skipped, so a link cycle cannot recurse.
    """
    local_dir = Path(local_dir)
    ensure_dir(local_dir)
    base = normalize(remote_dir)
    count = 0
    for attr in _list(session, base):
        rp = join(base, attr.filename)
        lp = local_dir / attr.filename
        mode = attr.st_mode or 0
        if stat.S_ISDIR(mode):
            count += download_dir(session, rp, lp)
            continue
        if stat.S_ISLNK(mode) and _links_to_dir(session, rp):
            warn(f"skipping symlinked directory {rp}")
            continue
        try:
            fl = lp.open("wb")
        except OSError as exc:
            raise FilesystemError("write", str(lp), exc) from exc
        with fl:
            try:
                session.sftp_getfo(rp, fl)
            except SFTP_ERRORS as exc:
                raise RemoteOperationError("download", rp, exc) from exc
        vlog(f"  [GET ✓] {rp}")
        count += 1
    return count
