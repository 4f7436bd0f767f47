"""Compare a local file with a file on a remote host."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
from collections.abc import Callable, Sequence
from typing import BinaryIO

from ssh_tools.errors import (
    AuthOrRemoteError,
    ConnectivityError,
    PayloadToolError,
    RemoteFileNotFoundError,
    UsageError,
)
from ssh_tools.options import OptionSet
from ssh_tools.settings import AppSettings
from ssh_tools.target import TargetAddress, parse_target
from ssh_tools.transport import SSH_CONNECT_FAILURE, ProbeOutcome, TransportResult, invoke

logger = logging.getLogger(__name__)

Invoker = Callable[[TargetAddress, Sequence[str], str], TransportResult]

# `test -e` exits 1 for a missing file; anything else is the remote side failing
_TEST_FALSE = 1


def resolve_local_path(path: str) -> str:
    """Return the absolute path of an existing local file.

    Raises ``UsageError`` if it does not exist or is a directory.
    """
    if not path:
        raise UsageError("no local file given")
    resolved = os.path.abspath(os.path.expanduser(path))
    if not os.path.exists(resolved):
        raise UsageError(f"local file not found: {path}")
    if os.path.isdir(resolved):
        raise UsageError(f"local path is a directory: {path}")
    return resolved


def resolve_remote_target(token: str, local_path: str) -> TargetAddress:
    """Parse *token*; the remote path defaults to the local absolute path."""
    return parse_target(token).require_host().with_default_path(local_path)


def quote_remote_path(path: str) -> str:
    """Quote *path* for the remote shell, leaving a leading ``~`` expandable."""
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


def preflight(target: TargetAddress, transport_options: Sequence[str], invoker: Invoker) -> None:
    """Check the remote file exists before transferring it.

    Raises ``ConnectivityError``, ``AuthOrRemoteError`` or
    ``RemoteFileNotFoundError`` so that each failure gets its own message
    and exit status.
    """
    path = target.path or ""
    result = invoker(target, transport_options, f"test -e {quote_remote_path(path)}")
    if result.outcome is ProbeOutcome.SUCCESS:
        return
    if result.outcome is ProbeOutcome.AUTH_DENIED:
        if result.returncode == SSH_CONNECT_FAILURE:
            raise AuthOrRemoteError(
                f"{target.destination} refused access: {result.error_text or 'permission denied'}"
            )
        if result.returncode == _TEST_FALSE:
            raise RemoteFileNotFoundError(f"remote file not found: {target.destination}:{path}")
        raise AuthOrRemoteError(
            f"remote check failed on {target.destination} (status {result.returncode}): "
            f"{result.error_text or 'remote error'}"
        )
    raise ConnectivityError(
        f"could not connect to {target.host}: {result.error_text or 'no response'}"
    )


def fetch_remote(
    target: TargetAddress, transport_options: Sequence[str], invoker: Invoker
) -> bytes:
    """Return the remote file's content."""
    path = target.path or ""
    result = invoker(target, transport_options, f"cat -- {quote_remote_path(path)}")
    if result.outcome is ProbeOutcome.SUCCESS:
        return result.stdout
    if result.outcome is ProbeOutcome.AUTH_DENIED:
        raise AuthOrRemoteError(
            f"cannot read {target.destination}:{path}: {result.error_text or 'remote error'}"
        )
    raise ConnectivityError(
        f"lost connection to {target.host}: {result.error_text or 'no response'}"
    )


def run_diff_tool(
    local_path: str,
    remote_content: bytes,
    payload_options: Sequence[str],
    diff_bin: str = "diff",
) -> tuple[int, bytes]:
    """Run ``diff [options] local -`` with the remote content on stdin.

    Returns ``(status, output)``. Statuses 0 and 1 are normal; anything else
    raises ``PayloadToolError`` carrying diff's own status.
    """
    cmd = [diff_bin, *payload_options, local_path, "-"]
    logger.debug("Running: %s", shlex.join(cmd))
    try:
        proc = subprocess.run(cmd, input=remote_content, stdout=subprocess.PIPE)
    except FileNotFoundError as e:
        raise PayloadToolError(f"diff tool not found: {diff_bin}") from e

    if proc.returncode not in (0, 1):
        status = proc.returncode if proc.returncode > 1 else 2
        raise PayloadToolError(f"{diff_bin} exited with status {proc.returncode}", status)
    return proc.returncode, proc.stdout


def colorize(output: bytes, colordiff_bin: str | None) -> bytes:
    """Pipe diff output through colordiff when it is installed."""
    if not output or not colordiff_bin:
        return output
    exe = shutil.which(colordiff_bin)
    if exe is None:
        return output
    proc = subprocess.run([exe], input=output, stdout=subprocess.PIPE)
    if proc.returncode not in (0, 1):
        logger.warning("%s exited with status %d, showing plain diff", exe, proc.returncode)
        return output
    return proc.stdout


def compare(
    local: str,
    remote: str,
    options: OptionSet,
    settings: AppSettings | None = None,
    use_color: bool = False,
    out: BinaryIO | None = None,
    invoker: Invoker | None = None,
) -> int:
    """Diff *local* against the remote target token *remote*.

    Returns diff's exit status: 0 identical, 1 differences found. Usage,
    connectivity, remote and diff-tool failures are raised as
    ``SshToolsError`` subclasses before or instead of a diff.
    """
    settings = settings or AppSettings()
    if invoker is None:

        def invoker(target: TargetAddress, opts: Sequence[str], command: str) -> TransportResult:
            return invoke(
                target,
                opts,
                command,
                ssh_bin=settings.transport.ssh_bin,
                connect_timeout=settings.transport.connect_timeout,
                batch_mode=settings.transport.batch_mode,
            )

    local_path = resolve_local_path(local)
    target = resolve_remote_target(remote, local_path)
    logger.debug("Comparing %s with %s", local_path, target)

    preflight(target, options.transport_options, invoker)
    content = fetch_remote(target, options.transport_options, invoker)

    status, output = run_diff_tool(
        local_path, content, options.payload_options, diff_bin=settings.diff.diff_bin
    )
    if use_color:
        output = colorize(output, settings.diff.colordiff_bin)

    stream = out if out is not None else sys.stdout.buffer
    stream.write(output)
    stream.flush()
    return status
