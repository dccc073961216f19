"""
Data model: games, remote credentials, directions and backup snapshots
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

DEFAULT_SSH_PORT = 22


class Direction(str, Enum):
    PUSH = "push"
    PULL = "pull"
    BACKUP_LOCAL = "backupLocal"

    @property
    def label(self) -> str:
        return _DIRECTION_LABELS[self]


_DIRECTION_LABELS = {
    Direction.PUSH: "local → remote",
    Direction.PULL: "remote → local",
    Direction.BACKUP_LOCAL: "local backup only",
}

_DIRECTION_SYNONYMS = {
    "push": Direction.PUSH,
    "upload": Direction.PUSH,
    "l2r": Direction.PUSH,
    "local2remote": Direction.PUSH,
    "pull": Direction.PULL,
    "download": Direction.PULL,
    "r2l": Direction.PULL,
    "remote2local": Direction.PULL,
    "backup": Direction.BACKUP_LOCAL,
    "backuplocal": Direction.BACKUP_LOCAL,
    "localbackup": Direction.BACKUP_LOCAL,
    "backup-only": Direction.BACKUP_LOCAL,
    "backup_local": Direction.BACKUP_LOCAL,
}


def parse_direction(token) -> Direction:
    """
    Map a direction token (or one of its synonyms) to a Direction.
    Raises ConfigurationError naming the accepted tokens for anything else.
    """
    if isinstance(token, Direction):
        return token
    key = str(token or "").strip().lower()
    if key in _DIRECTION_SYNONYMS:
        return _DIRECTION_SYNONYMS[key]
    accepted = ", ".join(sorted(_DIRECTION_SYNONYMS))
    raise ConfigurationError(
        f"unrecognised direction {token!r}; accepted values: {accepted}",
        field="direction",
    )


class TransferPreference(str, Enum):
    AUTO = "auto"
    SCP = "scp"


_PREFERENCE_SYNONYMS = {
    "auto": TransferPreference.AUTO,
    "scp": TransferPreference.SCP,
    "external": TransferPreference.SCP,
    "force-external": TransferPreference.SCP,
}


def parse_preference(value) -> TransferPreference:
    if isinstance(value, TransferPreference):
        return value
    if value is None or value == "":
        return TransferPreference.AUTO
    key = str(value).strip().lower()
    if key in _PREFERENCE_SYNONYMS:
        return _PREFERENCE_SYNONYMS[key]
    raise ConfigurationError(
        f"unrecognised transfer preference {value!r}; use 'auto' or 'scp'",
        field="transfer_preference",
    )


@dataclass
class RemoteConfig:
    host: str = ""
    port: int = DEFAULT_SSH_PORT
    user: str = ""
    password: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        self.port = int(self.port) if self.port else DEFAULT_SSH_PORT

    def is_complete(self) -> bool:
        return bool(self.host and self.user)

    @property
    def destination(self) -> str:
        """user@host prefix used by scp/pscp."""
        return f"{self.user}@{self.host}"


@dataclass
class Game:
    name: str
    local_path: Path
    remote_full_path: str = ""

    def __post_init__(self):
        self.name = self.name.strip()
        self.local_path = Path(self.local_path).expanduser()
        self.remote_full_path = clean_remote_path(self.remote_full_path)

    @property
    def key(self) -> str:
        return self.name.casefold()


def clean_remote_path(raw: Optional[str]) -> str:
    """Trim a user-supplied remote path and turn backslashes into slashes."""
    return (raw or "").strip().replace("\\", "/")


@dataclass(frozen=True)
class BackupSnapshot:
    root_dir: Path
    local_dir: Path
    remote_dir: Optional[Path]
    timestamp: datetime
    notes: tuple = ()
