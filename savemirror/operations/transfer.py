"""
Transfer strategies: replace one side's tree with the other's

Both strategies honour the same contract: the destination ends up holding
the source tree's contents (or, after a failure, a partially-new tree),
never a merge of old and new content.

  NativeTransport    one paramiko SFTP session per direction
  ExternalTransport  pscp/scp child process, SFTP only for clearing
"""
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, NamedTuple, Optional, Sequence

from .paths import basename, normalize
from .probe import exists
from .remote_tree import download_dir, ensure_empty, upload_dir
from ..core.ssh_manager import CONNECT_TIMEOUT, SSHManager
from ..errors import ExternalToolError
from ..models import Game, RemoteConfig, TransferPreference
from ..utils.file_utils import copy_tree, empty_dir, ensure_dir, safe_dirname
from ..utils.logging import log, warn

SessionFactory = Callable[[RemoteConfig], SSHManager]

MASK = "******"


class TransferResult(NamedTuple):
    remote_path: str
    files: Optional[int] = None
    note: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════════
#  NATIVE (SFTP)
# ══════════════════════════════════════════════════════════════════════════════

class NativeTransport:
    name = "sftp"

    def __init__(self, remote: RemoteConfig, session_factory: SessionFactory = SSHManager):
        self.remote = remote
        self.session_factory = session_factory

    def push(self, game: Game) -> TransferResult:
        with self.session_factory(self.remote) as session:
            log(f"[push] SFTP target directory: {game.remote_full_path}")
            target = ensure_empty(session, game.remote_full_path)
            n = upload_dir(session, game.local_path, target)
        log(f"[push] uploaded {n} file(s) → {target}")
        return TransferResult(target, n)

    def pull(self, game: Game) -> TransferResult:
        with self.session_factory(self.remote) as session:
            log(f"[pull] SFTP source directory: {game.remote_full_path}")
            probe = exists(session, game.remote_full_path)
            if not probe.found:
                note = f"remote directory {game.remote_full_path} does not exist; local directory emptied"
                log(f"[pull] {note}")
                if probe.last_error:
                    log(f"[pull] remote stat error: {probe.last_error}")
                empty_dir(game.local_path)
                return TransferResult(probe.resolved_path, 0, note)
            empty_dir(game.local_path)
            n = download_dir(session, probe.resolved_path, game.local_path)
        log(f"[pull] downloaded {n} file(s) ← {probe.resolved_path}")
        return TransferResult(probe.resolved_path, n)


# ══════════════════════════════════════════════════════════════════════════════
#  EXTERNAL (pscp / scp)
# ══════════════════════════════════════════════════════════════════════════════

class ScpTools(NamedTuple):
    scp_path: Optional[str] = None
    pscp_path: Optional[str] = None

    def available(self) -> bool:
        return bool(self.scp_path or self.pscp_path)


def detect_scp_tools(which: Callable[[str], Optional[str]] = shutil.which) -> ScpTools:
    """Locate scp and PuTTY's pscp on PATH."""
    return ScpTools(scp_path=which("scp"), pscp_path=which("pscp"))


def run_command(argv: Sequence[str], secrets: Sequence[str] = ()) -> int:
    """
    Run *argv* with inherited stdio and return its exit status (always 0).
    A non-zero status raises ExternalToolError carrying the code. Values in
    *secrets* are masked in the logged and reported command line.
    """
    hidden = {s for s in secrets if s}
    shown = [MASK if a in hidden else a for a in argv]
    log(f"[exec] {' '.join(shown)}")
    try:
        proc = subprocess.run(list(argv), check=False)
    except OSError as exc:
        raise ExternalToolError(f"cannot start {argv[0]}", shown, cause=exc) from exc
    if proc.returncode != 0:
        raise ExternalToolError(f"{Path(argv[0]).name} failed", shown, exit_code=proc.returncode)
    return proc.returncode


class ExternalTransport:
    """
    Shells out to pscp (preferred, takes ``-pw``) or scp (key auth only).
    scp cannot be given a password, so without key-based login it will stall
    at a prompt or fail; this is reported as a warning, not worked around.
    """
    name = "scp"

    def __init__(self, remote: RemoteConfig, tools: ScpTools,
                 session_factory: SessionFactory = SSHManager,
                 runner: Callable[..., int] = run_command):
        self.remote = remote
        self.tools = tools
        self.session_factory = session_factory
        self.runner = runner

    def _base_args(self) -> tuple[list[str], list[str]]:
        """(argv prefix, secrets) for the best available tool."""
        r = self.remote
        if self.tools.pscp_path:
            return [self.tools.pscp_path, "-pw", r.password or "", "-P", str(r.port), "-r"], [r.password or ""]
        if self.tools.scp_path:
            warn("only scp found: it cannot take a password. Configure key-based login "
                 "or install pscp; the copy may stall at a password prompt …")
            return [self.tools.scp_path, "-P", str(r.port),
                    "-o", f"ConnectTimeout={CONNECT_TIMEOUT}", "-r"], []
        raise ExternalToolError("neither scp nor pscp was found on PATH")

    def push(self, game: Game) -> TransferResult:
        args, secrets = self._base_args()
        # scp has no "replace" mode: clear the destination over SFTP first
        with self.session_factory(self.remote) as session:
            log(f"[push] clearing remote directory over SFTP: {game.remote_full_path}")
            target = ensure_empty(session, game.remote_full_path)

        dest = self.remote.destination
        if self.tools.pscp_path:
            # pscp expands the wildcard itself
            argv = args + [os.path.join(str(game.local_path), "*"), f'{dest}:"{target}/"']
        else:
            argv = args + [f"{game.local_path.as_posix()}/.", f'{dest}:"{target}"']
        self.runner(argv, secrets)
        log(f"[push] copied {game.local_path} → {target}")
        return TransferResult(target)

    def pull(self, game: Game) -> TransferResult:
        args, secrets = self._base_args()
        remote_dir = normalize(game.remote_full_path)
        ensure_dir(game.local_path)

        staging = Path(tempfile.mkdtemp(prefix="savemirror_download_"))
        try:
            self.runner(args + [f'{self.remote.destination}:"{remote_dir}"', str(staging)], secrets)
            payload = locate_payload(staging, remote_dir, fallback=game.name)
            empty_dir(game.local_path)
            copy_tree(payload, game.local_path)
        finally:
            shutil.rmtree(staging, ignore_errors=True)
        log(f"[pull] copied {remote_dir} → {game.local_path}")
        return TransferResult(remote_dir)


def locate_payload(staging: Path, remote_dir: str, fallback: str = "") -> Path:
    """
    Find the downloaded tree inside *staging*.

    Recursive scp usually nests the source directory's basename under the
    destination; some builds copy the contents directly. This is a best-effort
    guess, not a contract of any scp version.
    """
    folder = basename(remote_dir) or safe_dirname(fallback)
    nested = staging / folder
    if folder and nested.is_dir():
        return nested
    return staging


# ══════════════════════════════════════════════════════════════════════════════
#  SELECTION
# ══════════════════════════════════════════════════════════════════════════════

def select_transport(preference: TransferPreference, remote: RemoteConfig,
                     tools: ScpTools, session_factory: SessionFactory = SSHManager):
    """scp only when explicitly preferred and a binary was found; else SFTP."""
    if preference is TransferPreference.SCP:
        if tools.available():
            return ExternalTransport(remote, tools, session_factory)
        warn("scp transfer preferred but neither scp nor pscp is on PATH; using SFTP")
    return NativeTransport(remote, session_factory)
