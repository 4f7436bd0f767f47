"""Command-line interfaces: ssh-ping and ssh-diff."""

from __future__ import annotations

import argparse
import functools
import logging
import os
import signal
import sys
import threading

from ssh_tools import __version__
from ssh_tools.diff import compare
from ssh_tools.errors import SshToolsError, UsageError
from ssh_tools.options import build_transport_options, partition_options
from ssh_tools.probe import ProbeConfig, ProbeEngine
from ssh_tools.render import PingReporter, make_console, print_error
from ssh_tools.settings import AppSettings, load_settings
from ssh_tools.target import parse_target
from ssh_tools.transport import invoke

DIFF_USAGE = "usage: ssh-diff [diff-options] [-4|-6] [-p PORT] local-file [user@]host[:remote-file]"

DIFF_HELP = f"""{DIFF_USAGE}

Compare a local file with a file on a remote host.

The remote path defaults to the absolute path of the local file. -4, -6 and
-p PORT (numeric) are passed to ssh; every other option goes to diff.

exit status:
  0  files are identical
  1  files differ
  2  diff failed
  3  could not connect to the host
  4  remote file not found
  5  authentication or remote command failed
"""


class _UsageParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {value}")
    return n


def _non_negative_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if f < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {value}")
    return f


def _port(value: str) -> int:
    if not value.isdigit() or not 0 < int(value) < 65536:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    return int(value)


def build_ping_parser() -> argparse.ArgumentParser:
    parser = _UsageParser(
        prog="ssh-ping",
        description="Check if a host is reachable using ssh.",
        add_help=False,
    )
    parser.add_argument("host", nargs="?", metavar="[user@]host")
    parser.add_argument(
        "-c",
        "--count",
        type=_non_negative_int,
        metavar="N",
        help="Stop after N requests (default: 0, until interrupted)",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=_non_negative_float,
        metavar="SECONDS",
        help="Wait SECONDS between requests (default: 1)",
    )
    parser.add_argument(
        "-W",
        "--timeout",
        type=_non_negative_float,
        metavar="SECONDS",
        help="Connect timeout per request (default: 5)",
    )
    parser.add_argument("-l", "--login", metavar="USER", help="Log in as USER")
    family = parser.add_mutually_exclusive_group()
    family.add_argument(
        "-4",
        action="store_const",
        const="4",
        dest="address_family",
        help="Use IPv4 only",
    )
    family.add_argument(
        "-6",
        action="store_const",
        const="6",
        dest="address_family",
        help="Use IPv6 only",
    )
    parser.add_argument("-p", "--port", type=_port, metavar="PORT", help="Port to connect to")
    parser.add_argument("-F", "--config", metavar="FILE", help="Alternative ssh config file")
    parser.add_argument(
        "-o",
        dest="ssh_options",
        action="append",
        default=[],
        metavar="OPTION",
        help="Extra ssh option, e.g. -o StrictHostKeyChecking=no (repeatable)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show transport options before probing (-vv: debug log)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print the summary",
    )
    parser.add_argument(
        "-D",
        "--timestamps",
        action="store_true",
        help="Prefix each reply with a unix timestamp",
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help and exit")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity >= 2 else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s", stream=sys.stderr)


def _use_color(settings: AppSettings) -> bool:
    if settings.color == "always":
        return True
    if settings.color == "never" or os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def interrupt_handler(cancel: threading.Event):
    """Return a SIGINT handler that sets *cancel* without taking its lock.

    The handler runs on the main thread between bytecodes, possibly while
    ``cancel.wait()`` holds the event's internal lock, so ``set()`` is
    handed to a short-lived thread.
    """

    def _handler(sig: int, frame: object) -> None:
        threading.Thread(target=cancel.set, daemon=True).start()

    return _handler


def ping_main(argv: list[str] | None = None) -> int:
    settings = load_settings()
    out = make_console(settings.color)
    err = make_console(settings.color, stderr=True)
    parser = build_ping_parser()

    try:
        args = parser.parse_args(argv)
        if args.help:
            parser.print_help(sys.stderr)
            return 1
        if not args.host:
            raise UsageError("no host given")

        target = parse_target(args.host, with_path=False).with_username(args.login).require_host()
        config = ProbeConfig(
            count=settings.probe.count if args.count is None else args.count,
            interval=settings.probe.interval if args.interval is None else args.interval,
            timeout=settings.transport.connect_timeout if args.timeout is None else args.timeout,
            quiet=args.quiet,
            timestamps=args.timestamps,
        )
        config.validate()
    except UsageError as e:
        print_error(err, e)
        parser.print_usage(sys.stderr)
        return 1

    _configure_logging(args.verbose)
    transport_options = build_transport_options(
        address_family=args.address_family,
        port=args.port,
        config_file=args.config,
        extra=args.ssh_options,
    )
    invoker = functools.partial(
        invoke,
        target,
        transport_options,
        ssh_bin=settings.transport.ssh_bin,
        connect_timeout=config.timeout,
        batch_mode=settings.transport.batch_mode,
        detach=True,
    )

    reporter = PingReporter(target.host, out, timestamps=config.timestamps)
    if args.verbose:
        reporter.header(target.destination, transport_options)

    # Ctrl+C stops the loop; the summary is still printed
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, interrupt_handler(cancel))
    try:
        engine = ProbeEngine(
            target,
            config,
            invoker,
            cancel=cancel,
            on_attempt=reporter.attempt,
        )
        summary = engine.run()
    except SshToolsError as e:
        print_error(err, e)
        return e.exit_status
    finally:
        signal.signal(signal.SIGINT, previous)

    if summary is None:
        return 1
    reporter.summary(summary)
    return 0 if summary.received else 1


def diff_main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = list(argv)

    settings = load_settings()
    err = make_console(settings.color, stderr=True)

    if args in (["-h"], ["--help"]) or "--help" in args[:-2]:
        print(DIFF_HELP, file=sys.stderr)
        return 1
    if len(args) < 2 or args[-2].startswith("-") or args[-1].startswith("-"):
        print_error(err, UsageError("a local file and a remote target are required"))
        print(DIFF_USAGE, file=sys.stderr)
        return 1

    *option_args, local, remote = args
    options = partition_options(option_args)
    _configure_logging(0)

    try:
        return compare(
            local,
            remote,
            options,
            settings=settings,
            use_color=_use_color(settings),
        )
    except SshToolsError as e:
        print_error(err, e)
        if isinstance(e, UsageError):
            print(DIFF_USAGE, file=sys.stderr)
        return e.exit_status
    except KeyboardInterrupt:
        return 130


def ping_entry() -> None:
    sys.exit(ping_main())


def diff_entry() -> None:
    sys.exit(diff_main())
