"""Command line entry point: render the configured components into a status line."""

from __future__ import annotations

import contextlib
import select
import signal
import socket
import sys
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .basic import datetime
from .power import battery_perc
from .system import cpu_perc, disk_perc, ram_perc
from .util import die, warn
from .x11 import Display

PROG = "statusbar"
VERSION = "1.1"

# Interval between updates, in milliseconds.
INTERVAL = 1000
# Text shown when a component cannot produce a value.
UNKNOWN_STR = "n/a"
# Maximum length of the status line in bytes, including the terminator.
MAXLEN = 2048


@dataclass(frozen=True)
class Arg:
    """One status component: a function, a printf-style format and its argument."""

    func: Callable[[Optional[str]], Optional[str]]
    fmt: str
    argument: Optional[str] = None


ARGS = (
    Arg(battery_perc, "\033[33;4mBat: %s%%\033[0m | ", "BAT0"),
    Arg(disk_perc, "\033[34;4mDisk: %s%%\033[0m | ", "/"),
    Arg(ram_perc, "\033[31;4mRAM: %s%%\033[0m | ", None),
    Arg(cpu_perc, "\033[32;4mCPU: %s%%\033[0m | ", None),
    Arg(datetime, "\033[35;4m%s\033[0m", "%l:%M %p"),
)


def render_status(args=ARGS, unknown=UNKNOWN_STR, maxlen=MAXLEN) -> str:
    """Join the formatted results of all components into one status line.

    A component that yields None shows ``unknown``. The line is limited to
    ``maxlen - 1`` bytes; a piece that does not fit is cut and ends the line.
    """
    status = b""
    for arg in args:
        result = arg.func(arg.argument)
        if result is None:
            result = unknown
        try:
            piece = (arg.fmt % result).encode("utf-8")
        except (TypeError, ValueError):
            warn("vsnprintf:")
            break
        room = maxlen - len(status)
        if len(piece) >= room:
            status += piece[:max(room - 1, 0)]
            warn("vsnprintf: Output truncated")
            break
        status += piece
    return status.decode("utf-8", errors="ignore")


def _usage() -> None:
    die(f"usage: {PROG} [-v] [-s] [-1]")


def parse_args(argv) -> tuple[bool, bool]:
    """Parse the command line into (write to stdout, run only once).

    ``-v`` reports the version and exits; unknown flags or operands exit
    with a usage message.
    """
    to_stdout = False
    once = False
    rest = list(argv)
    while rest and rest[0].startswith("-") and len(rest[0]) > 1:
        word = rest.pop(0)
        if word == "--":
            break
        for flag in word[1:]:
            if flag == "v":
                die(f"{PROG}-{VERSION}")
            elif flag == "1":
                once = True
                to_stdout = True
            elif flag == "s":
                to_stdout = True
            else:
                _usage()
    if rest:
        _usage()
    return to_stdout, once


class _Signals:
    """Handles INT/TERM (stop) and USR1 (refresh now) around an interruptible sleep."""

    def __init__(self) -> None:
        self.done = False
        self._reader: socket.socket | None = None
        self._writer: socket.socket | None = None
        self._saved: dict = {}
        self._old_fd = -1

    def __enter__(self) -> "_Signals":
        if threading.current_thread() is not threading.main_thread():
            return self
        self._reader, self._writer = socket.socketpair()
        self._reader.setblocking(False)
        self._writer.setblocking(False)
        self._old_fd = signal.set_wakeup_fd(self._writer.fileno())
        for signo in (signal.SIGINT, signal.SIGTERM, signal.SIGUSR1):
            self._saved[signo] = signal.signal(signo, self._handle)
        return self

    def _handle(self, signo, frame) -> None:
        if signo != signal.SIGUSR1:
            self.done = True

    def sleep(self, seconds: float) -> None:
        if self._reader is None:
            time.sleep(seconds)
            return
        select.select([self._reader], [], [], seconds)
        with contextlib.suppress(BlockingIOError, InterruptedError):
            while self._reader.recv(64):
                pass

    def __exit__(self, *exc) -> None:
        if self._reader is None:
            return
        for signo, handler in self._saved.items():
            signal.signal(signo, handler)
        signal.set_wakeup_fd(self._old_fd)
        self._reader.close()
        self._writer.close()
        self._reader = self._writer = None


def main(argv=None) -> int:
    """Run the status loop; returns the exit status."""
    to_stdout, once = parse_args(sys.argv[1:] if argv is None else argv)

    with _Signals() as signals:
        display = None
        if not to_stdout:
            try:
                display = Display()
            except OSError:
                die("XOpenDisplay: Failed to open display")
        try:
            while True:
                start = time.monotonic()
                status = render_status(ARGS)
                if display is None:
                    try:
                        print(status, flush=True)
                    except OSError:
                        die("puts:")
                else:
                    try:
                        display.store_name(status)
                    except OSError:
                        die("XStoreName: Allocation failed")

                if once or signals.done:
                    break
                wait = INTERVAL / 1000 - (time.monotonic() - start)
                if wait >= 0:
                    signals.sleep(wait)
                if signals.done:
                    break
        finally:
            if display is not None:
                with contextlib.suppress(OSError):
                    display.store_name(None)
                display.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())