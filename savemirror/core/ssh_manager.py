"""
SSH/SFTP session manager
"""
import socket
from typing import Optional

import paramiko

from ..errors import ConnectivityError
from ..models import RemoteConfig
from ..utils.logging import log, vlog

CONNECT_TIMEOUT = 30
KEEPALIVE_INTERVAL = 30


class SSHManager:
    """
    Wraps paramiko SSHClient + SFTPClient for one logical operation.

    Use as a context manager: the session is opened on enter and always
    closed on exit, including when the body raises.
    """

    def __init__(self, remote: RemoteConfig, timeout: int = CONNECT_TIMEOUT):
        self.remote = remote
        self.timeout = timeout
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def __enter__(self) -> "SSHManager":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    # ── connection ─────────────────────────────────────────────────────────

    def connect(self):
        if self._sftp is not None:
            return

        r = self.remote
        log(f"[SSH] connecting to {r.user}@{r.host}:{r.port} …")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=r.host, port=r.port, username=r.user,
                        timeout=self.timeout, banner_timeout=self.timeout,
                        auth_timeout=self.timeout)
        if r.password:
            kw["password"] = r.password
            kw["look_for_keys"] = False
            kw["allow_agent"] = False

        try:
            client.connect(**kw)
            client.get_transport().set_keepalive(KEEPALIVE_INTERVAL)
            sftp = client.open_sftp()
        except (paramiko.SSHException, socket.timeout, OSError, EOFError) as exc:
            client.close()
            raise ConnectivityError(r.host, r.port, exc) from exc

        self._ssh = client
        self._sftp = sftp
        log("[SSH] connected ✓")

    def _close_quietly(self):
        try:
            if self._sftp:
                self._sftp.close()
        except (OSError, EOFError, paramiko.SSHException):
            pass
        try:
            if self._ssh:
                self._ssh.close()
        except (OSError, EOFError, paramiko.SSHException):
            pass
        self._ssh = None
        self._sftp = None

    def disconnect(self):
        if self._ssh is None:
            return
        self._close_quietly()
        vlog("[SSH] disconnected.")

    @property
    def sftp(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise ConnectivityError(self.remote.host, self.remote.port,
                                    RuntimeError("session is not open"))
        return self._sftp

    # ── sftp ops ────────────────────────────────────────────────────────────

    def sftp_stat(self, remote: str) -> paramiko.SFTPAttributes:
        return self.sftp.stat(remote)

    def sftp_listdir_attr(self, remote: str) -> list[paramiko.SFTPAttributes]:
        return self.sftp.listdir_attr(remote)

    def sftp_mkdir(self, remote: str):
        self.sftp.mkdir(remote)

    def sftp_remove(self, remote: str):
        self.sftp.remove(remote)

    def sftp_rmdir(self, remote: str):
        self.sftp.rmdir(remote)

    def sftp_putfo(self, fl, remote: str):
        self.sftp.putfo(fl, remote)

    def sftp_getfo(self, remote: str, fl):
        self.sftp.getfo(remote, fl)
