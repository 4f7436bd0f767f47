"""Terminal output: per-attempt lines, run summaries, error messages.

Formatting is plain text; styling is applied by the Rich console, which drops
it when the stream is not a terminal, ``NO_COLOR`` is set, or color is
turned off in the settings.
"""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from ssh_tools.errors import SshToolsError
from ssh_tools.probe import ProbeAttempt, ProbeSummary, Severity
from ssh_tools.transport import ProbeOutcome

SEVERITY_STYLES = {
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "bold red",
}

OUTCOME_STYLES = {
    ProbeOutcome.SUCCESS: "",
    ProbeOutcome.AUTH_DENIED: "yellow",
    ProbeOutcome.UNREACHABLE: "red",
    ProbeOutcome.UNKNOWN: "red",
}


def make_console(color: str = "auto", stderr: bool = False) -> Console:
    """Build a console for *color* mode ``auto``, ``always`` or ``never``."""
    if color == "always":
        return Console(stderr=stderr, force_terminal=True, highlight=False)
    if color == "never":
        return Console(stderr=stderr, color_system=None, highlight=False)
    return Console(stderr=stderr, highlight=False)


def format_attempt(host: str, attempt: ProbeAttempt, timestamps: bool = False) -> str:
    """One ping-style line for a finished round-trip."""
    seq = attempt.sequence
    ms = f"{attempt.elapsed_ms:.1f}"
    if attempt.outcome is ProbeOutcome.SUCCESS:
        line = f"Reply from {host}: ssh_seq={seq} time={ms} ms"
    elif attempt.outcome is ProbeOutcome.AUTH_DENIED:
        line = f"Pong from {host}: ssh_seq={seq} time={ms} ms (access denied)"
    else:
        line = f"Request timeout for ssh_seq {seq}"
    if timestamps:
        line = f"[{attempt.timestamp:.6f}] {line}"
    return line


def format_summary(summary: ProbeSummary) -> list[str]:
    """The statistics block printed once at the end of a run."""
    lines = [
        f"--- {summary.host} ssh ping statistics ---",
        f"{summary.transmitted} requests transmitted, "
        f"{summary.received} requests received, "
        f"{summary.loss_percent}% request loss",
    ]
    if summary.rtt_min_ms is not None:
        lines.append(
            f"round-trip min/avg/max = {summary.rtt_min_ms:.1f}/"
            f"{summary.rtt_avg_ms:.1f}/{summary.rtt_max_ms:.1f} ms"
        )
    return lines


def format_error(exc: SshToolsError) -> str:
    return f"Error ({exc.category}): {exc}"


class PingReporter:
    """Prints ssh-ping output for one host."""

    def __init__(self, host: str, console: Console, timestamps: bool = False) -> None:
        self.host = host
        self.console = console
        self.timestamps = timestamps

    def header(self, destination: str, transport_options: tuple[str, ...]) -> None:
        opts = " ".join(transport_options) or "(none)"
        self.console.print(
            Text(f"SSH-PING {destination}: transport options {opts}"), soft_wrap=True
        )

    def attempt(self, attempt: ProbeAttempt) -> None:
        line = format_attempt(self.host, attempt, timestamps=self.timestamps)
        self.console.print(Text(line, style=OUTCOME_STYLES[attempt.outcome]), soft_wrap=True)

    def summary(self, summary: ProbeSummary) -> None:
        header, counts, *rest = format_summary(summary)
        self.console.print()
        self.console.print(Text(header, style="bold"), soft_wrap=True)
        self.console.print(Text(counts, style=SEVERITY_STYLES[summary.severity]), soft_wrap=True)
        for line in rest:
            self.console.print(Text(line), soft_wrap=True)


def print_error(console: Console, exc: SshToolsError) -> None:
    console.print(Text(format_error(exc), style="red"), soft_wrap=True)
