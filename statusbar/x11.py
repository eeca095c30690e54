"""A minimal X11 client: set the root window name and read keyboard LEDs."""

from __future__ import annotations

import os
import socket
import struct
from itertools import zip_longest
from pathlib import Path

from .util import warn

X11_UNIX_DIR = "/tmp/.X11-unix"
X_TCP_PORT = 6000

_ATOM_STRING = 31
_ATOM_WM_NAME = 39
_OP_CHANGE_PROPERTY = 18
_OP_GET_KEYBOARD_CONTROL = 103
_FAMILY_LOCAL = 256
_FAMILY_WILD = 65535
_GENERIC_EVENT = 35


def _pad(length: int) -> int:
    return -length % 4


def _parse_display_name(name: str) -> tuple[str, str, int]:
    host, sep, rest = name.rpartition(":")
    number, _, screen = rest.partition(".")
    if not sep or not number.isdigit() or (screen and not screen.isdigit()):
        raise ConnectionError(f"XOpenDisplay: invalid display name {name!r}")
    return host, number, int(screen) if screen else 0


def _xauth_cookie(number: str, local: bool) -> tuple[bytes, bytes]:
    path = os.environ.get("XAUTHORITY") or str(Path.home() / ".Xauthority")
    try:
        data = Path(path).read_bytes()
    except OSError:
        return b"", b""
    hostname = socket.gethostname().encode()
    pos = 0
    while pos + 2 <= len(data):
        (family,) = struct.unpack_from(">H", data, pos)
        pos += 2
        fields = []
        for _ in range(4):
            if pos + 2 > len(data):
                return b"", b""
            (size,) = struct.unpack_from(">H", data, pos)
            pos += 2
            fields.append(data[pos:pos + size])
            pos += size
        address, entry_number, auth_name, auth_data = fields
        if entry_number not in (b"", number.encode()):
            continue
        if family == _FAMILY_WILD:
            return auth_name, auth_data
        if local and family == _FAMILY_LOCAL and address == hostname:
            return auth_name, auth_data
        if not local and family != _FAMILY_LOCAL:
            return auth_name, auth_data
    return b"", b""


class Display:
    """A connection to an X server, bound to the root window of one screen."""

    def __init__(self, name=None) -> None:
        name = name or os.environ.get("DISPLAY")
        if not name:
            raise ConnectionError("XOpenDisplay: Failed to open display")
        host, number, screen = _parse_display_name(name)
        local = host in ("", "unix")
        self._seq = 0
        self._sock: socket.socket | None = None
        try:
            if local:
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                self._sock = sock
                sock.connect(os.path.join(X11_UNIX_DIR, f"X{number}"))
            else:
                self._sock = socket.create_connection((host, X_TCP_PORT + int(number)))
            self._setup(number, screen, local)
        except (OSError, struct.error, IndexError) as exc:
            self.close()
            if isinstance(exc, ConnectionError):
                raise
            raise ConnectionError("XOpenDisplay: Failed to open display") from exc

    def _recv_exact(self, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._sock.recv(size - len(chunks))
            if not chunk:
                raise ConnectionError("X server closed the connection")
            chunks += chunk
        return bytes(chunks)

    def _send(self, request: bytes) -> None:
        if self._sock is None:
            raise OSError("display is closed")
        self._sock.sendall(request)
        self._seq = (self._seq + 1) & 0xFFFF

    def _setup(self, number: str, screen: int, local: bool) -> None:
        auth_name, auth_data = _xauth_cookie(number, local)
        request = (
            struct.pack("<BxHHHHxx", 0x6C, 11, 0, len(auth_name), len(auth_data))
            + auth_name + bytes(_pad(len(auth_name)))
            + auth_data + bytes(_pad(len(auth_data)))
        )
        self._sock.sendall(request)
        status, reason_len, _major, _minor, length = struct.unpack(
            "<BBHHH", self._recv_exact(8))
        body = self._recv_exact(length * 4)
        if status != 1:
            reason = body[:reason_len].decode("latin-1", errors="replace").strip()
            raise ConnectionError(f"XOpenDisplay: connection refused: {reason}")
        vendor_len, self.max_request_length = struct.unpack_from("<HH", body, 16)
        screen_count, format_count = body[20], body[21]
        offset = 32 + vendor_len + _pad(vendor_len) + 8 * format_count
        for index in range(screen_count):
            (root,) = struct.unpack_from("<I", body, offset)
            if index == screen:
                self.root = root
                return
            depth_count = body[offset + 39]
            offset += 40
            for _ in range(depth_count):
                (visual_count,) = struct.unpack_from("<H", body, offset + 2)
                offset += 8 + 24 * visual_count
        raise ConnectionError(f"XOpenDisplay: no screen {screen}")

    def store_name(self, name) -> None:
        """Set the root window's name; None clears it."""
        data = b"" if name is None else name.encode("utf-8")
        padded = data + bytes(_pad(len(data)))
        length = 6 + len(padded) // 4
        if length > self.max_request_length:
            raise OSError("XStoreName: request too long")
        request = struct.pack(
            "<BBHIIIBxxxI", _OP_CHANGE_PROPERTY, 0, length, self.root,
            _ATOM_WM_NAME, _ATOM_STRING, 8, len(data)) + padded
        self._send(request)

    def keyboard_led_mask(self) -> int:
        """Return the keyboard LED mask; bit 0 is caps lock, bit 1 num lock."""
        self._send(struct.pack("<BxH", _OP_GET_KEYBOARD_CONTROL, 1))
        seq = self._seq
        while True:
            packet = self._recv_exact(32)
            kind = packet[0]
            if kind == 0:
                code = packet[1]
                (error_seq,) = struct.unpack_from("<H", packet, 2)
                if error_seq == seq:
                    raise OSError(f"X error {code} in GetKeyboardControl")
            elif kind == 1:
                reply_seq, extra = struct.unpack_from("<HI", packet, 2)
                if extra:
                    self._recv_exact(extra * 4)
                if reply_seq == seq:
                    (mask,) = struct.unpack_from("<I", packet, 8)
                    return mask
            elif kind & 0x7F == _GENERIC_EVENT:
                (extra,) = struct.unpack_from("<I", packet, 4)
                if extra:
                    self._recv_exact(extra * 4)

    def close(self) -> None:
        """Close the connection; calling it again does nothing."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> Display:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def format_indicators(fmt: str, led_mask: int) -> str:
    """Render caps ('c') and num ('n') lock indicators for a format.

    A letter followed by '?' appears, with its case kept, only when the
    indicator is on; otherwise the letter always appears, upper case when on.
    Only the first four characters of the format are used.
    """
    fmt = fmt[:4]
    out = []
    for char, following in zip_longest(fmt, fmt[1:]):
        key = char.lower()
        if key not in ("c", "n"):
            continue
        isset = bool(led_mask & (1 << (key == "n")))
        if following != "?":
            out.append(key.upper() if isset else key)
        elif isset:
            out.append(char)
    return "".join(out)


def keyboard_indicators(fmt: str) -> str | None:
    """Return the caps and num lock indicators of the default display."""
    try:
        with Display() as display:
            mask = display.keyboard_led_mask()
    except OSError:
        warn("XOpenDisplay: Failed to open display")
        return None
    return format_indicators(fmt, mask)