#!/usr/bin/env python3
"""
savemirror  —  Mirror a save-game directory between two machines over SSH
==========================================================================

Subcommands:
  init      Create the config file with the remote machine's SSH settings.
  add       Register a game (local directory + remote directory).
  list      Show the configured games.
  sync      Push, pull or back up one game. Every push/pull is preceded by
            a timestamped backup of both sides.

Run 'savemirror <subcommand> --help' for more details.
"""
import argparse
import getpass
import sys
from pathlib import Path

from .errors import SaveMirrorError


def _interactive() -> bool:
    return sys.stdin.isatty()


def _ask(prompt: str, default: str = "") -> str:
    hint = f" [{default}]" if default else ""
    val = input(f"{prompt}{hint}: ").strip()
    return val or default


def _load(args):
    from . import config as _cfg
    return _cfg.load_config(args.config)


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create the savemirror config file."""
    from . import config as _cfg
    from .models import parse_preference

    target = Path(args.config) if args.config else _cfg.get_config_path()
    if target.exists() and not args.force:
        print(f"error: {target} already exists", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    cfg = _cfg.load_config(target) if target.exists() else _cfg.AppConfig(path=target)
    r = cfg.remote

    server = args.server or r.host
    if not args.server and _interactive():
        server = _ask("Remote SSH host (IP or name)", server)
    port = args.port or r.port
    if not args.port and _interactive():
        val = _ask("SSH port", str(port))
        try:
            port = int(val)
        except ValueError:
            print("error: port must be a number.", file=sys.stderr)
            sys.exit(1)
    user = args.user or r.user
    if not args.user and _interactive():
        user = _ask("SSH user", user)
    password = args.password if args.password is not None else r.password
    if args.password is None and _interactive():
        password = getpass.getpass("SSH password (empty for key-based login): ") or password

    if not server or not user:
        print("error: --server and --user are required.", file=sys.stderr)
        sys.exit(1)

    r.host, r.port, r.user, r.password = server, int(port), user, password or None
    if args.transfer:
        cfg.transfer_preference = parse_preference(args.transfer)
    if args.backup_dir:
        cfg.backup_dir = Path(args.backup_dir).expanduser().resolve()

    path = _cfg.save_config(cfg, target)
    print(f"Created {path}")


# ── add ──────────────────────────────────────────────────────────────────────

def cmd_add(args):
    """Register a game."""
    from . import config as _cfg
    from .models import Game
    from .utils.file_utils import ensure_dir

    cfg = _load(args)
    remote = args.remote or ""
    if not remote and _interactive():
        remote = _ask(f"Remote save directory for {args.name}")
    game = Game(name=args.name, local_path=Path(args.local).expanduser().resolve(),
                remote_full_path=remote)
    cfg.add_game(game)
    ensure_dir(game.local_path)
    _cfg.save_config(cfg)
    print(f"Added game: {game.name} -> {game.local_path}")


# ── list ─────────────────────────────────────────────────────────────────────

def cmd_list(args):
    """Print configured games."""
    cfg = _load(args)
    if not cfg.games:
        print("No games configured. Run 'savemirror add NAME LOCAL_PATH REMOTE_PATH'.")
        return
    for g in cfg.games:
        remote = g.remote_full_path or "(remote path not set)"
        print(f"{g.name}\n  local : {g.local_path}\n  remote: {remote}")


# ── sync ─────────────────────────────────────────────────────────────────────

_DIRECTION_MENU = [
    ("push", "local → remote (local overwrites remote)"),
    ("pull", "remote → local (remote overwrites local)"),
    ("backup", "back up local saves only"),
]


def _choose_direction() -> str:
    for i, (_, label) in enumerate(_DIRECTION_MENU, 1):
        print(f"  {i}) {label}")
    choice = _ask("Choose an operation", "1")
    if choice.isdigit() and 1 <= int(choice) <= len(_DIRECTION_MENU):
        return _DIRECTION_MENU[int(choice) - 1][0]
    return choice


def _complete_remote(cfg) -> bool:
    """Prompt for missing remote settings. Returns True if anything changed."""
    r = cfg.remote
    if r.is_complete() or not _interactive():
        return False
    if not r.host:
        r.host = _ask("Remote SSH host (IP or name)")
    if not r.user:
        r.user = _ask("SSH user")
    if not r.password:
        r.password = getpass.getpass("SSH password: ") or None
    return True


def cmd_sync(args):
    """Run one sync for the selected game."""
    from . import config as _cfg
    from .core.sync_engine import run_sync
    from .errors import ConfigurationError
    from .models import Direction, clean_remote_path, parse_direction

    cfg = _load(args)
    game = cfg.find_game(args.game)
    if game is None:
        raise ConfigurationError(
            f"no game named {args.game!r}; add it with 'savemirror add'", field="game")
    print(f"Selected game: {game.name}")

    token = args.direction
    if token is None:
        if not _interactive():
            raise ConfigurationError("--direction is required", field="direction")
        token = _choose_direction()
    direction = parse_direction(token)

    if direction is not Direction.BACKUP_LOCAL:
        dirty = _complete_remote(cfg)
        if not game.remote_full_path and _interactive():
            game.remote_full_path = clean_remote_path(_ask(f"Remote save directory for {game.name}"))
            dirty = True
        if dirty:
            _cfg.save_config(cfg)

    run_sync(cfg, game, direction, verbose=args.verbose)


# ── main ──────────────────────────────────────────────────────────────────────

def main():
    """CLI entry point for savemirror"""
    parser = argparse.ArgumentParser(
        prog="savemirror",
        description="Mirror a save-game directory between two machines over SSH",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", metavar="PATH",
                        help="Config file (default: $SAVEMIRROR_CONFIG or "
                             "~/.config/savemirror/config.yaml)")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create the config file",
        description="Create the savemirror config file with SSH settings.",
    )
    init_p.add_argument("--server", metavar="HOST", help="Remote SSH host")
    init_p.add_argument("--port", type=int, metavar="N", help="SSH port (default: 22)")
    init_p.add_argument("--user", metavar="NAME", help="SSH username")
    init_p.add_argument("--password", metavar="SECRET",
                        help="SSH password (prompted for when omitted on a terminal)")
    init_p.add_argument("--transfer", choices=["auto", "scp"],
                        help="auto = SFTP; scp = use pscp/scp when installed")
    init_p.add_argument("--backup-dir", metavar="PATH",
                        help="Where snapshots are written (default: next to the config)")
    init_p.add_argument("--force", action="store_true", help="Overwrite an existing config")

    # ── add ───────────────────────────────────────────────────────────────────
    add_p = subparsers.add_parser("add", help="Register a game")
    add_p.add_argument("name", help="Game name (case-insensitive, unique)")
    add_p.add_argument("local", metavar="LOCAL_PATH", help="Local save directory")
    add_p.add_argument("remote", metavar="REMOTE_PATH", nargs="?",
                       help="Full path of the save directory on the remote machine")

    # ── list ──────────────────────────────────────────────────────────────────
    subparsers.add_parser("list", help="List configured games")

    # ── sync ──────────────────────────────────────────────────────────────────
    sync_p = subparsers.add_parser(
        "sync",
        help="Push, pull or back up one game",
        description="Back up both sides, then replace one side with the other.",
    )
    sync_p.add_argument("-g", "--game", required=True, metavar="NAME", help="Game name")
    sync_p.add_argument("-d", "--direction", metavar="DIR",
                        help="push (upload, l2r, local2remote), pull (download, r2l, "
                             "remote2local) or backup (localbackup, backup-only)")
    sync_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show every file transferred")

    args = parser.parse_args()

    commands = {"init": cmd_init, "add": cmd_add, "list": cmd_list, "sync": cmd_sync}
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)
    try:
        commands[args.command](args)
    except SaveMirrorError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
