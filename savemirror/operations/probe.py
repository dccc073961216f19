"""
Remote existence probing across path candidates
"""
from typing import NamedTuple, Optional

from .paths import candidates
from ..errors import SFTP_ERRORS
from ..utils.logging import vlog


class ProbeResult(NamedTuple):
    found: bool
    resolved_path: str
    last_error: Optional[BaseException] = None


def exists(session, remote_path: str) -> ProbeResult:
    """
    Stat each candidate spelling of *remote_path* in order and return the
    first that resolves. When none does, the last stat error is returned
    (not raised) so callers can log it.
    """
    last_error: Optional[BaseException] = None
    for candidate in candidates(remote_path):
        try:
            session.sftp_stat(candidate)
        except SFTP_ERRORS as exc:
            vlog(f"  [probe] {candidate}: {exc}")
            last_error = exc
            continue
        return ProbeResult(True, candidate)
    return ProbeResult(False, remote_path, last_error)
