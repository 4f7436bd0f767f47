"""Liveness probing — repeated ssh round-trips with ping-style statistics."""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ssh_tools.errors import UsageError
from ssh_tools.target import TargetAddress
from ssh_tools.transport import ProbeOutcome, TransportResult

logger = logging.getLogger(__name__)

# Echoed back by the remote shell; a zero exit without it is not a real reply.
PROBE_MARKER = "ssh-ping"
PROBE_COMMAND = f"echo {PROBE_MARKER}"

Invoker = Callable[[str], TransportResult]


class ProbeState(enum.Enum):
    IDLE = "idle"
    PROBING = "probing"
    DRAINING = "draining"  # cancelled
    EXHAUSTED = "exhausted"  # count reached
    REPORTED = "reported"


class Severity(enum.Enum):
    """How bad a run's packet loss was."""

    SUCCESS = "success"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def from_loss(cls, loss_percent: int) -> Severity:
        if loss_percent <= 0:
            return cls.SUCCESS
        if loss_percent >= 100:
            return cls.CRITICAL
        return cls.WARNING


@dataclass
class ProbeConfig:
    """Loop settings. ``count=0`` probes until cancelled."""

    count: int = 0
    interval: float = 1.0
    timeout: float = 5.0
    quiet: bool = False
    timestamps: bool = False

    def validate(self) -> None:
        """Raise ``UsageError`` for negative values."""
        for name in ("count", "interval", "timeout"):
            value = getattr(self, name)
            if value < 0:
                raise UsageError(f"{name} must be non-negative (got {value})")


@dataclass
class ProbeAttempt:
    """One finished round-trip."""

    sequence: int
    outcome: ProbeOutcome
    elapsed_ms: float
    timestamp: float  # wall clock, seconds since the epoch
    detail: str = ""  # last stderr line, if any


@dataclass
class ProbeSession:
    """Running counters. ``transmitted == received + lost`` after every record()."""

    sequence: int = 1
    transmitted: int = 0
    received: int = 0
    lost: int = 0
    rtts_ms: list[float] = field(default_factory=list)

    def record(self, outcome: ProbeOutcome, elapsed_ms: float) -> int:
        """Count one attempt and return the sequence number it used."""
        seq = self.sequence
        self.sequence += 1
        self.transmitted += 1
        if outcome.is_reply:
            self.received += 1
            self.rtts_ms.append(elapsed_ms)
        else:
            self.lost += 1
        return seq

    @property
    def loss_percent(self) -> int:
        if self.transmitted == 0:
            return 0
        return 100 * self.lost // self.transmitted


@dataclass
class ProbeSummary:
    """Final statistics of a run."""

    host: str
    transmitted: int
    received: int
    lost: int
    loss_percent: int
    severity: Severity
    rtt_min_ms: float | None = None
    rtt_avg_ms: float | None = None
    rtt_max_ms: float | None = None

    @classmethod
    def from_session(cls, host: str, session: ProbeSession) -> ProbeSummary:
        rtts = session.rtts_ms
        loss = session.loss_percent
        return cls(
            host=host,
            transmitted=session.transmitted,
            received=session.received,
            lost=session.lost,
            loss_percent=loss,
            severity=Severity.from_loss(loss),
            rtt_min_ms=min(rtts) if rtts else None,
            rtt_avg_ms=sum(rtts) / len(rtts) if rtts else None,
            rtt_max_ms=max(rtts) if rtts else None,
        )


class ProbeEngine:
    """Drive the probe loop for one target.

    *invoker* runs one remote command and returns a ``TransportResult``
    (normally ``transport.invoke`` bound to the target and its options).
    *cancel* is checked before every attempt and interrupts the interval
    sleep; an attempt already in flight is allowed to finish and is counted.
    """

    def __init__(
        self,
        target: TargetAddress,
        config: ProbeConfig,
        invoker: Invoker,
        cancel: threading.Event | None = None,
        on_attempt: Callable[[ProbeAttempt], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.target = target
        self.config = config
        self.session = ProbeSession()
        self.state = ProbeState.IDLE
        self._invoker = invoker
        self._cancel = cancel if cancel is not None else threading.Event()
        self._on_attempt = on_attempt
        self._clock = clock
        self._wall_clock = wall_clock

    def cancel(self) -> None:
        self._cancel.set()

    def probe_once(self) -> ProbeAttempt:
        """Send one round-trip and record it in the session."""
        timestamp = self._wall_clock()
        start = self._clock()
        result = self._invoker(PROBE_COMMAND)
        elapsed_ms = (self._clock() - start) * 1000.0

        outcome = result.outcome
        if outcome is ProbeOutcome.SUCCESS and PROBE_MARKER not in result.text:
            outcome = ProbeOutcome.UNKNOWN

        seq = self.session.record(outcome, elapsed_ms)
        logger.debug("ssh_seq=%d %s in %.1f ms", seq, outcome.value, elapsed_ms)
        return ProbeAttempt(
            sequence=seq,
            outcome=outcome,
            elapsed_ms=elapsed_ms,
            timestamp=timestamp,
            detail=result.error_text,
        )

    def run(self) -> ProbeSummary | None:
        """Probe until the count is reached or cancellation, then summarize.

        Returns None when nothing was transmitted. Can only be called once.
        """
        if self.state is not ProbeState.IDLE:
            raise RuntimeError(f"Probe already run (state: {self.state.value})")
        self.config.validate()

        self.state = ProbeState.PROBING
        while not self._cancel.is_set():
            attempt = self.probe_once()
            if self._on_attempt is not None and not self.config.quiet:
                self._on_attempt(attempt)

            if self.config.count and self.session.transmitted >= self.config.count:
                self.state = ProbeState.EXHAUSTED
                break
            if self._cancel.wait(self.config.interval):
                break

        if self.state is ProbeState.PROBING:
            self.state = ProbeState.DRAINING
        return self._report()

    def _report(self) -> ProbeSummary | None:
        self.state = ProbeState.REPORTED
        if self.session.transmitted == 0:
            return None
        return ProbeSummary.from_session(self.target.host, self.session)
