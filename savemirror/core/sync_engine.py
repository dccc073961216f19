"""
Sync orchestrator - sequences connection test, backup and transfer

  START → RESOLVE_REMOTE_PATH → TEST_CONNECTION → BACKUP
        → SELECT_TRANSPORT → TRANSFER → DONE

FAILED is absorbing. No push or pull runs without a preceding dual-sided
snapshot, and nothing is retried: the snapshot is the safety net.
"""
import shutil
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .ssh_manager import SSHManager
from ..config import AppConfig
from ..errors import ConfigurationError
from ..models import BackupSnapshot, Direction, Game, parse_direction
from ..operations.backup import check_local, snapshot, snapshot_local
from ..operations.paths import candidates, primary
from ..operations.probe import exists
from ..operations.transfer import TransferResult, detect_scp_tools, select_transport
from ..utils.file_utils import ensure_dir
from ..utils.logging import error, is_verbose, log, set_verbose, vlog


class SyncState(str, Enum):
    START = "start"
    RESOLVE_REMOTE_PATH = "resolve-remote-path"
    TEST_CONNECTION = "test-connection"
    BACKUP = "backup"
    SELECT_TRANSPORT = "select-transport"
    TRANSFER = "transfer"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SyncReport:
    game: Game
    direction: Direction
    config: AppConfig
    state: SyncState = SyncState.START
    snapshot: Optional[BackupSnapshot] = None
    transport: Optional[str] = None
    remote_path: Optional[str] = None
    transfer: Optional[TransferResult] = None


class SyncEngine:
    """Runs one direction for one game to completion."""

    def __init__(self, config: AppConfig,
                 session_factory: Callable = SSHManager,
                 which: Callable[[str], Optional[str]] = shutil.which):
        self.config = config
        self.session_factory = session_factory
        self.which = which
        self.state = SyncState.START

    def _enter(self, state: SyncState, report: SyncReport):
        self.state = state
        report.state = state
        vlog(f"[state] {state.value}")

    def run(self, game: Game, direction) -> SyncReport:
        direction = parse_direction(direction)
        report = SyncReport(game=game, direction=direction, config=self.config)
        self._enter(SyncState.START, report)

        r = self.config.remote
        print(f"\n{'=' * 64}")
        print(f"  {game.name}  ({direction.label})")
        print(f"  local : {game.local_path}")
        if direction is not Direction.BACKUP_LOCAL:
            print(f"  remote: {r.user}@{r.host}:{r.port}:{game.remote_full_path}")
        print(f"{'=' * 64}\n")

        try:
            if direction is Direction.BACKUP_LOCAL:
                self._enter(SyncState.BACKUP, report)
                report.snapshot = snapshot_local(game, self.config.get_backup_dir())
            else:
                self._enter(SyncState.RESOLVE_REMOTE_PATH, report)
                report.remote_path = self._resolve(game, direction)

                self._enter(SyncState.TEST_CONNECTION, report)
                self._test_connection(game)

                self._enter(SyncState.BACKUP, report)
                log("[backup] backing up local and remote …")
                with self.session_factory(r) as session:
                    report.snapshot = snapshot(game, self.config.get_backup_dir(), session)

                self._enter(SyncState.SELECT_TRANSPORT, report)
                tools = detect_scp_tools(self.which)
                transport = select_transport(self.config.transfer_preference, r,
                                             tools, self.session_factory)
                report.transport = transport.name
                log(f"[transfer] using {transport.name}")

                self._enter(SyncState.TRANSFER, report)
                if direction is Direction.PUSH:
                    report.transfer = transport.push(game)
                else:
                    report.transfer = transport.pull(game)
                report.remote_path = report.transfer.remote_path
                log(f"[sync] Sync complete ({direction.label}) ✓")
            self._enter(SyncState.DONE, report)
        except Exception as exc:
            stage = self.state
            self._enter(SyncState.FAILED, report)
            error(f"Sync failed during {stage.value}: {exc}")
            if is_verbose():
                traceback.print_exc()
            raise
        return report

    def _resolve(self, game: Game, direction: Direction) -> str:
        if not game.remote_full_path.strip():
            raise ConfigurationError(
                f"game {game.name!r} has no remote_full_path; set it before syncing",
                field="remote_full_path",
            )
        if not self.config.remote.is_complete():
            raise ConfigurationError("remote host and user must be configured", field="remote")
        if direction is Direction.PUSH:
            # pushing a missing tree would empty the remote side
            check_local(game)
        else:
            ensure_dir(game.local_path)
        return primary(game.remote_full_path)

    def _test_connection(self, game: Game):
        r = self.config.remote
        log(f"[test] testing SFTP connection: {r.user}@{r.host}:{r.port}")
        with self.session_factory(r) as session:
            log("[test] SFTP connection OK")
            log(f"[test] remote directory candidates: {' | '.join(candidates(game.remote_full_path))}")
            probe = exists(session, game.remote_full_path)
            if probe.found:
                log(f"[test] remote directory exists: {probe.resolved_path}")
            else:
                log("[test] remote directory does not exist yet; it will be created when syncing")
                if probe.last_error:
                    log(f"[test] remote stat error: {probe.last_error}")


def run_sync(config: AppConfig, game: Game, direction,
             session_factory: Callable = SSHManager,
             which: Callable[[str], Optional[str]] = shutil.which,
             verbose: bool = False) -> SyncReport:
    """Run one sync and return its report (which carries *config* back)."""
    set_verbose(verbose)
    return SyncEngine(config, session_factory, which).run(game, direction)
