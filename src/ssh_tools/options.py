"""Split one argument vector between the ssh transport and the payload tool.

``ssh`` and ``diff`` share single-letter flags (``-p`` is a port for ssh but
``--show-c-function`` for diff), so classification goes through an explicit
table of transport flags with their arity instead of ad hoc comparisons.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class TransportFlag:
    """A flag the transport understands, with the number of values it takes."""

    flag: str
    arity: int = 0  # 0 or 1 trailing value
    value_pattern: re.Pattern[str] | None = None  # value must match, else not ours

    def accepts(self, value: str | None) -> bool:
        if self.arity == 0:
            return True
        if value is None:
            return False
        return self.value_pattern is None or bool(self.value_pattern.fullmatch(value))


TRANSPORT_FLAGS: dict[str, TransportFlag] = {
    "-4": TransportFlag("-4"),  # IPv4 only
    "-6": TransportFlag("-6"),  # IPv6 only
    "-p": TransportFlag("-p", arity=1, value_pattern=_NUMERIC_RE),  # port
}


@dataclass(frozen=True)
class OptionSet:
    """Transport options and payload options, each in original input order."""

    transport_options: tuple[str, ...] = ()
    payload_options: tuple[str, ...] = ()


def partition_options(
    args: Sequence[str],
    flags: dict[str, TransportFlag] | None = None,
) -> OptionSet:
    """Route each token of *args* to the transport or the payload tool.

    Tokens are scanned once, left to right, with one token of lookahead. A
    flag that takes a value only claims the next token when the value fits
    the flag's pattern; otherwise the flag falls through to the payload so
    that adjacent tokens are never split between the two consumers.
    """
    table = TRANSPORT_FLAGS if flags is None else flags
    transport: list[str] = []
    payload: list[str] = []

    i = 0
    while i < len(args):
        token = args[i]
        flag = table.get(token)
        if flag is not None:
            if flag.arity == 0:
                transport.append(token)
                i += 1
                continue
            value = args[i + 1] if i + 1 < len(args) else None
            if flag.accepts(value):
                transport.extend((token, value))  # type: ignore[arg-type]
                i += 2
                continue
            logger.debug("Treating %r as a payload flag (next token %r)", token, value)
        payload.append(token)
        i += 1

    return OptionSet(transport_options=tuple(transport), payload_options=tuple(payload))


def build_transport_options(
    address_family: str | None = None,
    port: int | None = None,
    config_file: str | None = None,
    extra: Iterable[str] = (),
) -> tuple[str, ...]:
    """Assemble ssh options from parsed ``ssh-ping`` flags.

    *address_family* is ``"4"``, ``"6"`` or None. Each item of *extra* is a
    raw ``-o`` value such as ``StrictHostKeyChecking=no``.
    """
    opts: list[str] = []
    if address_family in ("4", "6"):
        opts.append(f"-{address_family}")
    if port is not None:
        opts.extend(("-p", str(port)))
    if config_file:
        opts.extend(("-F", config_file))
    for option in extra:
        opts.extend(("-o", option))
    return tuple(opts)
