"""Network components: interface addresses, link state and throughput."""

from __future__ import annotations

import fcntl
import ipaddress
import socket
import struct
from dataclasses import dataclass
from pathlib import Path

from .util import fmt_human, read_int

SYS_NET = "/sys/class/net"
IF_INET6 = "/proc/net/if_inet6"

# Interval between updates in milliseconds, used to turn byte deltas into rates.
INTERVAL = 1000

_SIOCGIFADDR = 0x8915
_IFF_UP = 0x1
_IPV6_LINK_SCOPE = 0x20
_U64 = 1 << 64


@dataclass
class ByteRate:
    """Turns successive byte counters into bytes per second."""

    count: int = 0

    def update(self, count: int, interval: int) -> int | None:
        """Record a counter and return the rate since the previous one."""
        previous, self.count = self.count, count
        if previous == 0:
            return None
        return ((count - previous) % _U64) * 1000 // interval


_rx = ByteRate()
_tx = ByteRate()


def ipv4(interface: str) -> str | None:
    """Return the IPv4 address of an interface."""
    request = struct.pack("256s", interface.encode()[:15])
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            result = fcntl.ioctl(sock.fileno(), _SIOCGIFADDR, request)
    except OSError:
        return None
    return socket.inet_ntoa(result[20:24])


def ipv6(interface: str) -> str | None:
    """Return the first IPv6 address of an interface."""
    try:
        with open(IF_INET6, encoding="ascii", errors="replace") as handle:
            lines = handle.readlines()
    except OSError:
        return None
    for line in lines:
        fields = line.split()
        if len(fields) < 6 or fields[5] != interface:
            continue
        try:
            address = ipaddress.IPv6Address(bytes.fromhex(fields[0]))
            scope = int(fields[3], 16)
        except ValueError:
            return None
        text = address.compressed
        if scope == _IPV6_LINK_SCOPE:
            text = f"{text}%{interface}"
        return text
    return None


def up(interface: str) -> str | None:
    """Return 'up' or 'down' for an interface, or None if it does not exist."""
    try:
        text = (Path(SYS_NET) / interface / "flags").read_text(encoding="ascii")
        flags = int(text.strip(), 16)
    except (OSError, ValueError):
        return None
    return "up" if flags & _IFF_UP else "down"


def _netspeed(interface: str, counter: str, rate: ByteRate) -> str | None:
    count = read_int(Path(SYS_NET) / interface / "statistics" / counter)
    if count is None:
        return None
    speed = rate.update(count, INTERVAL)
    return None if speed is None else fmt_human(speed, 1024)


def netspeed_rx(interface: str) -> str | None:
    """Return the receive rate of an interface per second."""
    return _netspeed(interface, "rx_bytes", _rx)


def netspeed_tx(interface: str) -> str | None:
    """Return the transmit rate of an interface per second."""
    return _netspeed(interface, "tx_bytes", _tx)