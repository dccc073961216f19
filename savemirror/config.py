"""
Configuration for savemirror: games, remote credentials, transfer preference

The configuration is an explicit AppConfig value, loaded from and saved to a
YAML file. Nothing here is process-wide state.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError, FilesystemError
from .models import (DEFAULT_SSH_PORT, Game, RemoteConfig, TransferPreference,
                     parse_preference)

CONFIG_ENV = "SAVEMIRROR_CONFIG"
CONFIG_FILENAME = "config.yaml"


# ══════════════════════════════════════════════════════════════════════════════
#  LOCATIONS  ── $SAVEMIRROR_CONFIG or $XDG_CONFIG_HOME/savemirror/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for savemirror."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "savemirror"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "savemirror"
    return Path.home() / ".config" / "savemirror"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV, "")
    if override:
        return Path(override).expanduser()
    return get_global_config_dir() / CONFIG_FILENAME


# ══════════════════════════════════════════════════════════════════════════════
#  APP CONFIG
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class AppConfig:
    games: list = field(default_factory=list)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    transfer_preference: TransferPreference = TransferPreference.AUTO
    backup_dir: Optional[Path] = None
    path: Optional[Path] = None

    def find_game(self, name: str) -> Optional[Game]:
        """Look up a game by name, ignoring case."""
        key = (name or "").strip().casefold()
        return next((g for g in self.games if g.key == key), None)

    def add_game(self, game: Game) -> Game:
        if not game.name:
            raise ConfigurationError("game name is required", field="name")
        if self.find_game(game.name) is not None:
            raise ConfigurationError(f"a game named {game.name!r} already exists", field="name")
        self.games.append(game)
        return game

    def get_backup_dir(self) -> Path:
        if self.backup_dir:
            return Path(self.backup_dir).expanduser()
        base = self.path.parent if self.path else get_global_config_dir()
        return base / "backups"


def _game_from_dict(entry: dict) -> Game:
    if not isinstance(entry, dict) or not entry.get("name") or not entry.get("local_path"):
        raise ConfigurationError(f"invalid game entry: {entry!r}", field="games")
    return Game(
        name=str(entry["name"]),
        local_path=Path(str(entry["local_path"])),
        remote_full_path=str(entry.get("remote_full_path") or ""),
    )


def from_dict(data: dict, path: Optional[Path] = None) -> AppConfig:
    """Build an AppConfig from parsed YAML data."""
    r = data.get("remote") or {}
    try:
        port = int(r.get("port") or DEFAULT_SSH_PORT)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"remote port must be a number, got {r.get('port')!r}",
                                 field="port") from exc
    remote = RemoteConfig(
        host=str(r.get("host") or r.get("server") or ""),
        port=port,
        user=str(r.get("user") or r.get("username") or ""),
        password=str(r["password"]) if r.get("password") else None,
    )
    cfg = AppConfig(
        remote=remote,
        transfer_preference=parse_preference(data.get("transfer_preference")),
        backup_dir=Path(data["backup_dir"]).expanduser() if data.get("backup_dir") else None,
        path=path,
    )
    for entry in data.get("games") or []:
        cfg.add_game(_game_from_dict(entry))
    return cfg


def to_dict(cfg: AppConfig) -> dict:
    data: dict = {
        "remote": {
            "host": cfg.remote.host,
            "port": cfg.remote.port,
            "user": cfg.remote.user,
            "password": cfg.remote.password or "",
        },
        "transfer_preference": cfg.transfer_preference.value,
        "games": [
            {
                "name": g.name,
                # forward slashes avoid YAML backslash escape issues
                "local_path": g.local_path.as_posix(),
                "remote_full_path": g.remote_full_path,
            }
            for g in cfg.games
        ],
    }
    if cfg.backup_dir:
        data["backup_dir"] = Path(cfg.backup_dir).as_posix()
    return data


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load the YAML config. A missing file yields an empty default config."""
    path = Path(path) if path else get_config_path()
    if not path.is_file():
        return AppConfig(path=path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"cannot parse {path}: {exc}") from exc
    except OSError as exc:
        raise FilesystemError("read", str(path), exc) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a YAML mapping")
    return from_dict(data, path)


def save_config(cfg: AppConfig, path: Optional[Path] = None) -> Path:
    """Write *cfg* as YAML and return the path written."""
    path = Path(path) if path else (cfg.path or get_config_path())
    header = (
        "# savemirror configuration\n"
        "#\n"
        "# remote: SSH credentials of the other machine.\n"
        "# transfer_preference: auto (SFTP) or scp (pscp/scp when installed).\n"
        "# games: name, local_path and remote_full_path of each mirrored directory.\n"
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(header)
            yaml.safe_dump(to_dict(cfg), f, sort_keys=False, allow_unicode=True)
    except OSError as exc:
        raise FilesystemError("write", str(path), exc) from exc
    cfg.path = path
    return path
