"""Simple status components: files, commands, clock, host and user data."""

from __future__ import annotations

import os
import pwd
import socket
import subprocess
import sys
import time

from .util import read_int, warn

_BUFSIZE = 1024
_ENTROPY_AVAIL = "/proc/sys/kernel/random/entropy_avail"


def _first_line(text: str) -> str | None:
    newline = text.rfind("\n")
    if newline >= 0:
        text = text[:newline]
    return text or None


def cat(path) -> str | None:
    """Return the first line of a file, or None if it is empty or unreadable."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline(_BUFSIZE - 2)
    except OSError:
        warn(f"fopen '{path}':")
        return None
    return _first_line(line)


def datetime(fmt: str) -> str | None:
    """Format the current local time with a strftime format."""
    result = time.strftime(fmt, time.localtime())
    if not result or len(result.encode()) >= _BUFSIZE:
        warn("strftime: Result string exceeds buffer size")
        return None
    return result


def hostname(unused=None) -> str | None:
    """Return the host name."""
    try:
        return socket.gethostname()
    except OSError:
        warn("gethostname:")
        return None


def kernel_release(unused=None) -> str:
    """Return the kernel release, as ``uname -r`` prints it."""
    return os.uname().release


def load_avg(unused=None) -> str | None:
    """Return the 1, 5 and 15 minute load averages."""
    try:
        one, five, fifteen = os.getloadavg()
    except OSError:
        warn("getloadavg: Failed to obtain load average")
        return None
    return f"{one:.2f} {five:.2f} {fifteen:.2f}"


def num_files(path) -> str | None:
    """Return the number of entries in a directory."""
    try:
        with os.scandir(path) as entries:
            count = sum(1 for _ in entries)
    except OSError:
        warn(f"opendir '{path}':")
        return None
    return str(count)


def run_command(cmd: str) -> str | None:
    """Run a shell command and return the first line of its output."""
    try:
        proc = subprocess.Popen(cmd, shell=True, stdout=subprocess.PIPE)
    except OSError:
        warn(f"popen '{cmd}':")
        return None
    with proc:
        raw = proc.stdout.readline(_BUFSIZE - 2)
        proc.stdout.close()
        proc.wait()
    return _first_line(raw.decode("utf-8", errors="replace"))


def format_uptime(seconds: int) -> str:
    """Format a number of seconds as hours and minutes."""
    hours, rest = divmod(int(seconds), 3600)
    return f"{hours}h {rest // 60}m"


def _uptime_clock() -> int:
    for name in ("CLOCK_BOOTTIME", "CLOCK_UPTIME", "CLOCK_MONOTONIC"):
        clock = getattr(time, name, None)
        if clock is not None:
            return clock
    raise OSError("no suitable clock")


def uptime(unused=None) -> str | None:
    """Return the system uptime as hours and minutes."""
    try:
        clock = _uptime_clock()
        seconds = time.clock_gettime(clock)
    except OSError:
        warn("clock_gettime:")
        return None
    return format_uptime(int(seconds))


def gid(unused=None) -> str:
    """Return the real group id of the current process."""
    return str(os.getgid())


def uid(unused=None) -> str:
    """Return the effective user id of the current process."""
    return str(os.geteuid())


def username(unused=None) -> str | None:
    """Return the name of the effective user."""
    euid = os.geteuid()
    try:
        return pwd.getpwuid(euid).pw_name
    except KeyError:
        warn(f"getpwuid '{euid}': no such user")
        return None


def entropy(unused=None) -> str | None:
    """Return the available kernel entropy; BSD systems report infinity."""
    if sys.platform.startswith(("openbsd", "freebsd")):
        return "\u221e"
    value = read_int(_ENTROPY_AVAIL)
    return None if value is None else str(value)