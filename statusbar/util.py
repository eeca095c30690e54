"""Shared helpers: diagnostics, human-readable sizes and small file readers."""

from __future__ import annotations

import re
import sys
from typing import Iterable

_PREFIXES = {
    1000: ("", "k", "M", "G", "T", "P", "E", "Z", "Y"),
    1024: ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi"),
}

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def warn(message: str) -> None:
    """Write a diagnostic to stderr.

    A message ending in ':' is followed by the description of the error
    currently being handled, if there is one.
    """
    if message.endswith(":"):
        exc = sys.exc_info()[1]
        if isinstance(exc, OSError) and exc.strerror:
            detail = exc.strerror
        elif exc is not None:
            detail = str(exc)
        else:
            detail = ""
        line = f"{message} {detail}" if detail else message
    else:
        line = message
    print(line, file=sys.stderr)


def die(message: str) -> None:
    """Report a fatal error and exit with status 1."""
    warn(message)
    raise SystemExit(1)


def fmt_human(num: int | float, base: int) -> str:
    """Scale a number by 1000 or 1024 and attach the matching unit prefix."""
    try:
        prefixes = _PREFIXES[base]
    except KeyError:
        raise ValueError(f"fmt_human: invalid base {base!r}") from None
    scaled = float(num)
    index = 0
    while index < len(prefixes) - 1 and scaled >= base:
        scaled /= base
        index += 1
    return f"{scaled:.1f} {prefixes[index]}"


def read_line(path) -> str | None:
    """Return the first line of a file without its newline, or None."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except OSError:
        warn(f"fopen '{path}':")
        return None
    return line.rstrip("\n")


def read_int(path) -> int | None:
    """Return the integer at the start of a file, or None."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            text = handle.read()
    except OSError:
        warn(f"fopen '{path}':")
        return None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def find_key(lines: Iterable[str], key: str) -> int | None:
    """Return the integer following ``key`` on the first line starting with it."""
    for line in lines:
        if line.startswith(key):
            match = _LEADING_INT.match(line[len(key):])
            return int(match.group(1)) if match else None
    return None