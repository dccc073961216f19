"""
Integration tests for the savemirror CLI and the YAML config layer.

Tests:
  - config loading/saving: round trip, defaults, case-insensitive lookup
  - savemirror init: creates a valid YAML config, refuses overwrite without --force
  - savemirror add / list
  - savemirror sync: direction validation, backup-only mode, exit codes
"""
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

import yaml

# ── Helpers ───────────────────────────────────────────────────────────────────

REPO_ROOT = Path(__file__).parent.parent


def run_savemirror(*args, config=None, cwd=None, input_text=""):
    """Run the savemirror CLI and return (returncode, stdout, stderr)."""
    cmd = [sys.executable, "-m", "savemirror"]
    if config is not None:
        cmd += ["--config", str(config)]
    result = subprocess.run(
        [*cmd, *args],
        cwd=str(cwd or REPO_ROOT),
        capture_output=True,
        text=True,
        input=input_text,
        env={**os.environ, "PYTHONPATH": str(REPO_ROOT), "PYTHONIOENCODING": "utf-8"},
    )
    return result.returncode, result.stdout, result.stderr


# ── Tests: config loading ─────────────────────────────────────────────────────

class TestConfigFile(unittest.TestCase):
    """Tests for load_config / save_config."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.path = self.root / "config.yaml"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_gives_defaults(self):
        from savemirror.config import load_config
        from savemirror.models import TransferPreference
        cfg = load_config(self.path)
        self.assertEqual(cfg.games, [])
        self.assertEqual(cfg.remote.port, 22)
        self.assertIs(cfg.transfer_preference, TransferPreference.AUTO)
        self.assertEqual(cfg.get_backup_dir(), self.root / "backups")

    def test_round_trip(self):
        from savemirror.config import AppConfig, load_config, save_config
        from savemirror.models import Game, RemoteConfig, TransferPreference
        cfg = AppConfig(remote=RemoteConfig(host="pc", port=2200, user="me", password="pw"),
                        transfer_preference=TransferPreference.SCP)
        cfg.add_game(Game("Celeste", self.root / "celeste", "C:\\Saves\\Celeste"))
        save_config(cfg, self.path)

        loaded = load_config(self.path)
        self.assertEqual(loaded.remote.host, "pc")
        self.assertEqual(loaded.remote.port, 2200)
        self.assertEqual(loaded.remote.password, "pw")
        self.assertIs(loaded.transfer_preference, TransferPreference.SCP)
        game = loaded.find_game("celeste")
        self.assertIsNotNone(game)
        self.assertEqual(game.remote_full_path, "C:/Saves/Celeste")
        self.assertEqual(game.local_path, self.root / "celeste")

    def test_port_zero_means_default(self):
        from savemirror.config import load_config
        self.path.write_text("remote:\n  host: pc\n  port: 0\n  user: me\n", encoding="utf-8")
        self.assertEqual(load_config(self.path).remote.port, 22)

    def test_duplicate_game_rejected(self):
        from savemirror.config import AppConfig
        from savemirror.errors import ConfigurationError
        from savemirror.models import Game
        cfg = AppConfig()
        cfg.add_game(Game("Celeste", self.root))
        with self.assertRaises(ConfigurationError):
            cfg.add_game(Game("CELESTE", self.root))

    def test_malformed_yaml(self):
        from savemirror.config import load_config
        from savemirror.errors import ConfigurationError
        self.path.write_text("games: [unclosed\n", encoding="utf-8")
        with self.assertRaises(ConfigurationError):
            load_config(self.path)

    def test_env_override(self):
        from savemirror import config as cfg
        old = os.environ.get(cfg.CONFIG_ENV)
        os.environ[cfg.CONFIG_ENV] = str(self.path)
        try:
            self.assertEqual(cfg.get_config_path(), self.path)
        finally:
            if old is None:
                os.environ.pop(cfg.CONFIG_ENV, None)
            else:
                os.environ[cfg.CONFIG_ENV] = old


# ── Tests: savemirror init ────────────────────────────────────────────────────

class TestInitCommand(unittest.TestCase):
    """Tests for the 'savemirror init' subcommand."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.config = self.root / "config.yaml"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_init_creates_valid_yaml(self):
        rc, out, err = run_savemirror(
            "init", "--server", "myhost.com", "--port", "2222",
            "--user", "me", "--password", "pw", "--transfer", "scp",
            config=self.config,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        data = yaml.safe_load(self.config.read_text(encoding="utf-8"))
        self.assertEqual(data["remote"]["host"], "myhost.com")
        self.assertEqual(data["remote"]["port"], 2222)
        self.assertEqual(data["transfer_preference"], "scp")
        self.assertEqual(data["games"], [])

    def test_init_refuses_overwrite(self):
        self.config.write_text("games: []\n", encoding="utf-8")
        rc, out, err = run_savemirror("init", "--server", "h", "--user", "u", config=self.config)
        self.assertNotEqual(rc, 0)
        self.assertIn("already exists", err)

    def test_init_force_overwrites(self):
        self.config.write_text("games: []\n", encoding="utf-8")
        rc, out, err = run_savemirror("init", "--server", "newhost.com", "--user", "u",
                                      "--force", config=self.config)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("newhost.com", self.config.read_text(encoding="utf-8"))

    def test_init_requires_server_and_user(self):
        rc, out, err = run_savemirror("init", "--server", "h", config=self.config)
        self.assertNotEqual(rc, 0)
        self.assertFalse(self.config.exists())


# ── Tests: add / list / sync ──────────────────────────────────────────────────

class TestGameCommands(unittest.TestCase):
    """Tests for 'add', 'list' and the network-free paths of 'sync'."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.config = self.root / "config.yaml"
        self.local = self.root / "saves" / "celeste"
        rc, _, err = run_savemirror("init", "--server", "pc.local", "--user", "me",
                                    "--password", "pw",
                                    "--backup-dir", str(self.root / "backups"),
                                    config=self.config)
        self.assertEqual(rc, 0, msg=err)
        rc, _, err = run_savemirror("add", "Celeste", str(self.local), "C:\\Saves\\Celeste",
                                    config=self.config)
        self.assertEqual(rc, 0, msg=err)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_add_creates_local_dir_and_persists(self):
        self.assertTrue(self.local.is_dir())
        data = yaml.safe_load(self.config.read_text(encoding="utf-8"))
        self.assertEqual(data["games"][0]["name"], "Celeste")
        self.assertEqual(data["games"][0]["remote_full_path"], "C:/Saves/Celeste")

    def test_add_duplicate_fails(self):
        rc, out, err = run_savemirror("add", "celeste", str(self.local), config=self.config)
        self.assertNotEqual(rc, 0)
        self.assertIn("already exists", err)

    def test_list_shows_games(self):
        rc, out, err = run_savemirror("list", config=self.config)
        self.assertEqual(rc, 0, msg=err)
        self.assertIn("Celeste", out)
        self.assertIn("C:/Saves/Celeste", out)

    def test_sync_unknown_direction(self):
        rc, out, err = run_savemirror("sync", "--game", "Celeste", "--direction", "sideways",
                                      config=self.config)
        self.assertEqual(rc, 1)
        self.assertIn("sideways", err)
        self.assertIn("remote2local", err)

    def test_sync_unknown_game(self):
        rc, out, err = run_savemirror("sync", "--game", "Nope", "--direction", "push",
                                      config=self.config)
        self.assertEqual(rc, 1)
        self.assertIn("Nope", err)

    def test_sync_without_direction_non_interactive(self):
        rc, out, err = run_savemirror("sync", "--game", "Celeste", config=self.config)
        self.assertEqual(rc, 1)
        self.assertIn("--direction", err)

    def test_backup_only_mode(self):
        (self.local / "0.celeste").write_text("save", encoding="utf-8")
        rc, out, err = run_savemirror("sync", "--game", "CELESTE", "--direction", "localbackup",
                                      config=self.config)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        roots = list((self.root / "backups").iterdir())
        self.assertEqual(len(roots), 1)
        self.assertTrue(roots[0].name.startswith("Celeste_"))
        self.assertEqual((roots[0] / "local" / "0.celeste").read_text(encoding="utf-8"), "save")
        self.assertFalse((roots[0] / "remote").exists())


if __name__ == "__main__":
    unittest.main()
