"""Run a single remote command through the ssh client and classify the result."""

from __future__ import annotations

import enum
import logging
import re
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from ssh_tools.errors import TransportNotFoundError
from ssh_tools.target import TargetAddress

logger = logging.getLogger(__name__)

# OpenSSH exits with 255 when it could not connect (and for a few other
# transport-level failures, see _HOST_ANSWERED_RE).
SSH_CONNECT_FAILURE = 255

# stderr fragments showing the server did answer before ssh gave up
_HOST_ANSWERED_RE = re.compile(
    r"Permission denied"
    r"|Too many authentication failures"
    r"|Authentication failed"
    r"|Host key verification failed"
    r"|REMOTE HOST IDENTIFICATION HAS CHANGED"
    r"|no matching (host key type|key exchange method|cipher|MAC) found",
    re.IGNORECASE,
)


class ProbeOutcome(enum.Enum):
    """What one round-trip to the host produced."""

    SUCCESS = "success"  # remote command ran
    AUTH_DENIED = "auth_denied"  # host answered, access or command refused
    UNREACHABLE = "unreachable"  # no connection at all
    UNKNOWN = "unknown"  # could not be classified

    @property
    def is_reply(self) -> bool:
        """True when the host answered, whether or not access was granted."""
        return self in (ProbeOutcome.SUCCESS, ProbeOutcome.AUTH_DENIED)


@dataclass
class TransportResult:
    """Captured result of one ssh invocation."""

    outcome: ProbeOutcome
    returncode: int
    stdout: bytes = b""
    stderr: str = ""

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def error_text(self) -> str:
        """Last non-empty stderr line, for error messages."""
        lines = [line for line in self.stderr.splitlines() if line.strip()]
        return lines[-1].strip() if lines else ""


def classify(returncode: int, stderr: str = "") -> ProbeOutcome:
    """Map an ssh exit status (and stderr) onto a ``ProbeOutcome``.

    Zero is success. 255 means ssh never got a working connection, unless
    stderr shows the server rejected us, in which case the host is up.
    Any other non-zero status is the remote command failing or being refused.
    """
    if returncode == 0:
        return ProbeOutcome.SUCCESS
    if returncode == SSH_CONNECT_FAILURE:
        if _HOST_ANSWERED_RE.search(stderr):
            return ProbeOutcome.AUTH_DENIED
        return ProbeOutcome.UNREACHABLE
    if returncode > 0:
        return ProbeOutcome.AUTH_DENIED
    # Negative: ssh itself was killed by a signal
    return ProbeOutcome.UNKNOWN


def build_ssh_command(
    target: TargetAddress,
    transport_options: Sequence[str],
    remote_command: str,
    ssh_bin: str = "ssh",
    connect_timeout: float | None = None,
    batch_mode: bool = True,
) -> list[str]:
    """Build the argv for one ssh call."""
    cmd = [ssh_bin]
    if batch_mode:
        cmd += ["-o", "BatchMode=yes"]
    if connect_timeout is not None and connect_timeout > 0:
        # ConnectTimeout only takes whole seconds
        cmd += ["-o", f"ConnectTimeout={max(1, round(connect_timeout))}"]
    cmd += list(transport_options)
    cmd += ["--", target.destination, remote_command]
    return cmd


def invoke(
    target: TargetAddress,
    transport_options: Sequence[str],
    remote_command: str,
    *,
    ssh_bin: str = "ssh",
    connect_timeout: float | None = None,
    batch_mode: bool = True,
    detach: bool = False,
) -> TransportResult:
    """Run *remote_command* on *target* and return the classified result.

    Blocks until ssh exits; timeouts are ssh's own (``ConnectTimeout``).
    With *detach* ssh runs in its own session, so a Ctrl-C meant for us does
    not kill the attempt in flight.

    Raises ``TransportNotFoundError`` if the ssh binary cannot be started.
    """
    cmd = build_ssh_command(
        target,
        transport_options,
        remote_command,
        ssh_bin=ssh_bin,
        connect_timeout=connect_timeout,
        batch_mode=batch_mode,
    )
    logger.debug("Running: %s", shlex.join(cmd))

    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            start_new_session=detach,
        )
    except FileNotFoundError as e:
        raise TransportNotFoundError(f"ssh client not found: {ssh_bin}") from e

    stderr = proc.stderr.decode("utf-8", errors="replace") if proc.stderr else ""
    outcome = classify(proc.returncode, stderr)
    logger.debug("ssh exited %d -> %s", proc.returncode, outcome.value)
    return TransportResult(
        outcome=outcome,
        returncode=proc.returncode,
        stdout=proc.stdout or b"",
        stderr=stderr,
    )
