"""Wireless components: ESSID and signal strength over nl80211 netlink."""

from __future__ import annotations

import socket
import struct

from .util import warn

NETLINK_GENERIC = 16

_NLMSG_HDR = struct.Struct("=IHHII")  # len, type, flags, seq, pid
_GENL_HDR = struct.Struct("=BBH")  # cmd, version, reserved
_NLA_HDR = struct.Struct("=HH")  # len, type

NLMSG_HDRLEN = _NLMSG_HDR.size
GENL_HDRLEN = _GENL_HDR.size
NLA_HDRLEN = _NLA_HDR.size

NLMSG_ERROR = 2
NLMSG_DONE = 3
NLM_F_REQUEST = 0x1
NLM_F_DUMP = 0x300

GENL_ID_CTRL = 0x10
CTRL_CMD_GETFAMILY = 3
CTRL_ATTR_FAMILY_ID = 1
CTRL_ATTR_FAMILY_NAME = 2

NL80211_CMD_GET_STATION = 17
NL80211_CMD_GET_INTERFACE = 5
NL80211_ATTR_IFINDEX = 3
NL80211_ATTR_STA_INFO = 21
NL80211_ATTR_SSID = 52
NL80211_STA_INFO_SIGNAL_AVG = 13

_FAMILY_NAME = b"nl80211\0"
_RECV_SIZE = 4096


def _align(length: int) -> int:
    return (length + 3) & ~3


def rssi_to_percent(rssi: int) -> int:
    """Map a signal level in dBm onto 0..100 percent."""
    if rssi >= -50:
        return 100
    if rssi <= -100:
        return 0
    return 2 * (rssi + 100)


def find_attribute(data: bytes, attr: int) -> bytes | None:
    """Return the payload of the first netlink attribute of type ``attr``."""
    pos = 0
    while pos + NLA_HDRLEN <= len(data):
        length, kind = _NLA_HDR.unpack_from(data, pos)
        if length < NLA_HDRLEN:
            return None
        if kind == attr:
            return data[pos + NLA_HDRLEN:pos + length]
        pos += _align(length)
    return None


def _build_request(msg_type: int, flags: int, seq: int, cmd: int,
                   attr_type: int, payload: bytes) -> bytes:
    attribute = _NLA_HDR.pack(NLA_HDRLEN + len(payload), attr_type) + payload
    attribute += bytes(_align(len(attribute)) - len(attribute))
    body = _GENL_HDR.pack(cmd, 1, 0) + attribute
    return _NLMSG_HDR.pack(NLMSG_HDRLEN + len(body), msg_type, flags, seq, 0) + body


def _messages(data: bytes):
    """Yield (type, declared length, raw message) for each netlink message."""
    pos = 0
    while len(data) - pos >= NLMSG_HDRLEN:
        length, msg_type, _flags, _seq, _pid = _NLMSG_HDR.unpack_from(data, pos)
        if length < NLMSG_HDRLEN:
            return
        end = min(pos + length, len(data))
        yield msg_type, length, data[pos:end]
        pos = end


def _station_signal(message: bytes, length: int) -> int | None:
    """Return the average signal in dBm of a station message, if present."""
    if length <= NLMSG_HDRLEN + GENL_HDRLEN:
        return None
    info = find_attribute(message[NLMSG_HDRLEN + GENL_HDRLEN:], NL80211_ATTR_STA_INFO)
    if info is None:
        return None
    signal = find_attribute(info, NL80211_STA_INFO_SIGNAL_AVG)
    if signal is None or len(signal) != 1:
        return None
    return struct.unpack("b", signal)[0]


class _Nl80211:
    """A lazily opened generic netlink socket talking to nl80211."""

    def __init__(self) -> None:
        self._sock: socket.socket | None = None
        self._seq = 1
        self._family = 0

    def next_seq(self) -> int:
        seq = self._seq
        self._seq = (self._seq + 1) & 0xFFFFFFFF
        return seq

    def send(self, request: bytes) -> bool:
        try:
            sent = self._sock.send(request)
        except OSError:
            warn("send 'AF_NETLINK':")
            return False
        if sent != len(request):
            warn("send 'AF_NETLINK':")
            return False
        return True

    def recv(self) -> bytes | None:
        try:
            return self._sock.recv(_RECV_SIZE)
        except OSError:
            warn("recv 'AF_NETLINK':")
            return None

    def family(self) -> int:
        if self._family:
            return self._family
        request = _build_request(GENL_ID_CTRL, NLM_F_REQUEST, self.next_seq(),
                                 CTRL_CMD_GETFAMILY, CTRL_ATTR_FAMILY_NAME,
                                 _FAMILY_NAME)
        if self._sock is None:
            try:
                self._sock = socket.socket(socket.AF_NETLINK, socket.SOCK_RAW,
                                           NETLINK_GENERIC)
            except (OSError, AttributeError):
                warn("socket 'AF_NETLINK':")
                return 0
        if not self.send(request):
            return 0
        reply = self.recv()
        if reply is None or len(reply) <= NLMSG_HDRLEN + GENL_HDRLEN:
            return 0
        if _NLMSG_HDR.unpack_from(reply)[1] == NLMSG_ERROR:
            return 0
        ident = find_attribute(reply[NLMSG_HDRLEN + GENL_HDRLEN:], CTRL_ATTR_FAMILY_ID)
        if ident is not None and len(ident) == 2:
            self._family = struct.unpack("=H", ident)[0]
        return self._family


_link = _Nl80211()


def _ifindex(interface: str) -> int | None:
    try:
        return socket.if_nametoindex(interface)
    except OSError:
        warn(f"interface {interface} not found")
        return None


def wifi_essid(interface: str) -> str | None:
    """Return the ESSID the interface is connected to."""
    family = _link.family()
    index = _ifindex(interface)
    if not family:
        warn("nl80211 family not found")
        return None
    if index is None:
        return None

    request = _build_request(family, NLM_F_REQUEST, _link.next_seq(),
                             NL80211_CMD_GET_INTERFACE, NL80211_ATTR_IFINDEX,
                             struct.pack("=I", index))
    if not _link.send(request):
        return None
    reply = _link.recv()
    if reply is None or len(reply) <= NLMSG_HDRLEN + GENL_HDRLEN:
        return None
    ssid = find_attribute(reply[NLMSG_HDRLEN + GENL_HDRLEN:], NL80211_ATTR_SSID)
    if ssid is None:
        return None
    return ssid.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def wifi_perc(interface: str) -> str | None:
    """Return the signal strength of the connected station in percent."""
    index = _ifindex(interface)
    if index is None:
        return None
    family = _link.family()
    if not family:
        warn("nl80211 family not found")
        return None

    request = _build_request(family, NLM_F_REQUEST | NLM_F_DUMP, _link.next_seq(),
                             NL80211_CMD_GET_STATION, NL80211_ATTR_IFINDEX,
                             struct.pack("=I", index))
    if not _link.send(request):
        return None

    strength: str | None = None
    while True:
        reply = _link.recv()
        if reply is None or len(reply) < NLMSG_HDRLEN:
            return None
        for msg_type, length, message in _messages(reply):
            if strength is None:
                signal = _station_signal(message, length)
                if signal is not None:
                    strength = str(rssi_to_percent(signal))
            if msg_type == NLMSG_DONE:
                return strength
            if msg_type == NLMSG_ERROR:
                return None