"""
Error taxonomy for savemirror

Every failure the engine reports is one of the classes below, each carrying
structured fields so callers can branch on kind instead of parsing messages.
"""
from typing import Optional, Sequence

import paramiko


class SaveMirrorError(Exception):
    """Base class for every error raised by savemirror."""


class ConfigurationError(SaveMirrorError):
    """Missing or invalid configuration (blank remote path, bad direction, …).

    Not recoverable without operator input.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConnectivityError(SaveMirrorError):
    """Authentication failure, unreachable host or connection timeout."""

    def __init__(self, host: str, port: int, cause: Optional[BaseException] = None):
        self.host = host
        self.port = port
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"cannot connect to {host}:{port}{detail}")


class RemoteOperationError(SaveMirrorError):
    """A single SFTP operation (list, upload, download, …) failed."""

    def __init__(self, operation: str, path: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"remote {operation} failed for {path}{detail}")


class ExternalToolError(SaveMirrorError):
    """scp/pscp missing, failed to start, or exited with a non-zero status."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None,
                 exit_code: Optional[int] = None, cause: Optional[BaseException] = None):
        self.command = list(command) if command else []
        self.exit_code = exit_code
        self.cause = cause
        if exit_code is not None:
            message = f"{message} (exit code {exit_code})"
        super().__init__(message)


class FilesystemError(SaveMirrorError):
    """Local I/O failure. Always fatal."""

    def __init__(self, operation: str, path: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"local {operation} failed for {path}{detail}")


# Exceptions an SFTP call can raise for a single failed operation
SFTP_ERRORS = (OSError, EOFError, paramiko.SSHException)
