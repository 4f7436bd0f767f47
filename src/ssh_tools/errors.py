"""Error taxonomy shared by the front-ends.

Each error carries the process exit status the CLI returns for it, so that
connectivity problems and credential/remote problems never collapse into the
same status.
"""

from __future__ import annotations


class SshToolsError(Exception):
    """Base class for all fatal ssh-tools errors."""

    exit_status = 1
    category = "error"


class UsageError(SshToolsError):
    """Bad or missing arguments. Always raised before any network I/O."""

    exit_status = 1
    category = "usage"


class PayloadToolError(SshToolsError):
    """The differencing tool could not run or exited abnormally."""

    exit_status = 2
    category = "diff"

    def __init__(self, message: str, exit_status: int | None = None) -> None:
        super().__init__(message)
        if exit_status is not None:
            self.exit_status = exit_status


class ConnectivityError(SshToolsError):
    """The transport could not reach the host."""

    exit_status = 3
    category = "connection"


class RemoteFileNotFoundError(SshToolsError):
    """The host answered but the requested remote file does not exist."""

    exit_status = 4
    category = "remote file"


class AuthOrRemoteError(SshToolsError):
    """The host answered but authentication or the remote command failed."""

    exit_status = 5
    category = "authentication"


class TransportNotFoundError(SshToolsError):
    """The ssh client binary is not installed or not on PATH."""

    exit_status = 127
    category = "transport"
