"""CPU, memory, swap and disk components."""

from __future__ import annotations

import os

from .util import fmt_human, read_int, warn

PROC_STAT = "/proc/stat"
MEMINFO = "/proc/meminfo"
CPU_FREQ = "/sys/devices/system/cpu/cpu0/cpufreq/scaling_cur_freq"

_CPU_FIELDS = 7  # user nice system idle iowait irq softirq


class CpuUsage:
    """Turns successive /proc/stat samples into a usage percentage."""

    def __init__(self) -> None:
        self.previous: tuple[float, ...] = (0.0,) * _CPU_FIELDS

    def update(self, fields) -> int | None:
        """Record a sample and return the busy share since the last one."""
        current = tuple(float(value) for value in fields)
        if len(current) != _CPU_FIELDS:
            raise ValueError(f"expected {_CPU_FIELDS} cpu fields, got {len(current)}")
        previous, self.previous = self.previous, current
        if previous[0] == 0:
            return None
        total = sum(current) - sum(previous)
        if total == 0:
            return None
        idle = (current[3] - previous[3]) + (current[4] - previous[4])
        return int(100 * (total - idle) / total)

    def sample(self, stat_path=None) -> int | None:
        """Read the aggregate cpu line of a stat file and update with it."""
        path = PROC_STAT if stat_path is None else stat_path
        try:
            with open(path, encoding="utf-8", errors="replace") as handle:
                line = handle.readline()
        except OSError:
            warn(f"fopen '{path}':")
            return None
        try:
            fields = [float(value) for value in line.split()[1:1 + _CPU_FIELDS]]
        except ValueError:
            return None
        if len(fields) != _CPU_FIELDS:
            return None
        return self.update(fields)


_cpu = CpuUsage()


def cpu_freq(unused=None) -> str | None:
    """Return the current frequency of the first cpu."""
    freq = read_int(CPU_FREQ)
    if freq is None:
        return None
    return fmt_human(freq * 1000, 1000)


def cpu_perc(unused=None) -> str | None:
    """Return cpu usage in percent since the previous call."""
    result = _cpu.sample(PROC_STAT)
    return None if result is None else str(result)


def read_meminfo(path=None) -> dict[str, int]:
    """Parse a meminfo file into a mapping of field name to kB value."""
    values: dict[str, int] = {}
    with open(MEMINFO if path is None else path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            key, sep, rest = line.partition(":")
            if not sep or key in values:
                continue
            words = rest.split()
            if words and words[0].isdigit():
                values[key] = int(words[0])
    return values


def _meminfo(*keys: str) -> tuple[int, ...] | None:
    try:
        values = read_meminfo(MEMINFO)
    except OSError:
        warn(f"fopen '{MEMINFO}':")
        return None
    try:
        return tuple(values[key] for key in keys)
    except KeyError:
        return None


_RAM_KEYS = ("MemTotal", "MemFree", "Buffers", "Cached", "Shmem", "SReclaimable")


def _ram_used() -> tuple[int, int] | None:
    fields = _meminfo(*_RAM_KEYS)
    if fields is None:
        return None
    total, free, buffers, cached, shmem, sreclaimable = fields
    return total, total - free - buffers - cached - sreclaimable + shmem


def ram_free(unused=None) -> str | None:
    """Return free memory."""
    fields = _meminfo("MemFree")
    return None if fields is None else fmt_human(fields[0] * 1024, 1024)


def ram_perc(unused=None) -> str | None:
    """Return memory usage in percent."""
    usage = _ram_used()
    if usage is None:
        return None
    total, used = usage
    if total == 0:
        return None
    return str(100 * used // total)


def ram_total(unused=None) -> str | None:
    """Return total memory."""
    fields = _meminfo("MemTotal")
    return None if fields is None else fmt_human(fields[0] * 1024, 1024)


def ram_used(unused=None) -> str | None:
    """Return used memory."""
    usage = _ram_used()
    return None if usage is None else fmt_human(usage[1] * 1024, 1024)


def _swap_used() -> tuple[int, int] | None:
    fields = _meminfo("SwapTotal", "SwapFree", "SwapCached")
    if fields is None:
        return None
    total, free, cached = fields
    return total, total - free - cached


def swap_free(unused=None) -> str | None:
    """Return free swap."""
    fields = _meminfo("SwapFree")
    return None if fields is None else fmt_human(fields[0] * 1024, 1024)


def swap_perc(unused=None) -> str | None:
    """Return swap usage in percent."""
    usage = _swap_used()
    if usage is None:
        return None
    total, used = usage
    if total == 0:
        return None
    return str(100 * used // total)


def swap_total(unused=None) -> str | None:
    """Return total swap."""
    fields = _meminfo("SwapTotal")
    return None if fields is None else fmt_human(fields[0] * 1024, 1024)


def swap_used(unused=None) -> str | None:
    """Return used swap."""
    usage = _swap_used()
    return None if usage is None else fmt_human(usage[1] * 1024, 1024)


def _statvfs(path):
    try:
        return os.statvfs(path)
    except OSError:
        warn(f"statvfs '{path}':")
        return None


def disk_free(path) -> str | None:
    """Return space available to unprivileged users on a filesystem."""
    fs = _statvfs(path)
    return None if fs is None else fmt_human(fs.f_frsize * fs.f_bavail, 1024)


def disk_perc(path) -> str | None:
    """Return filesystem usage in percent."""
    fs = _statvfs(path)
    if fs is None or fs.f_blocks == 0:
        return None
    return str(int(100 * (1 - fs.f_bavail / fs.f_blocks)))


def disk_total(path) -> str | None:
    """Return the total size of a filesystem."""
    fs = _statvfs(path)
    return None if fs is None else fmt_human(fs.f_frsize * fs.f_blocks, 1024)


def disk_used(path) -> str | None:
    """Return the used space of a filesystem."""
    fs = _statvfs(path)
    if fs is None:
        return None
    return fmt_human(fs.f_frsize * (fs.f_blocks - fs.f_bfree), 1024)