import socket
import struct
import threading

import pytest

from statusbar import x11


def _recv_exact(conn, size):
    data = b""
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            raise EOFError
        data += chunk
    return data


def _setup_reply(root):
    vendor = b"test"
    body = struct.pack(
        "<IIIIHHBBBBBBBB4x", 0, 0x200000, 0x1FFFFF, 0, len(vendor), 65535,
        1, 0, 0, 0, 32, 32, 8, 255) + vendor
    screen = struct.pack(
        "<IIIIIHHHHHHIBBBB", root, 0, 0, 0, 0, 1024, 768, 300, 200, 1, 1,
        0x21, 0, 0, 24, 0)
    additional = body + screen
    return struct.pack("<BBHHH", 1, 0, 11, 0, len(additional) // 4) + additional


class FakeServer(threading.Thread):
    def __init__(self, path, root, led_mask):
        super().__init__(daemon=True)
        self.listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.listener.bind(path)
        self.listener.listen(1)
        self.root = root
        self.led_mask = led_mask
        self.requests = []
        self.byte_order = None

    def run(self):
        conn, _ = self.listener.accept()
        with conn:
            header = _recv_exact(conn, 12)
            order, _major, _minor, name_len, data_len = struct.unpack("<BxHHHHxx", header)
            self.byte_order = order
            _recv_exact(conn, name_len + (-name_len % 4) + data_len + (-data_len % 4))
            conn.sendall(_setup_reply(self.root))
            seq = 0
            while True:
                try:
                    head = _recv_exact(conn, 4)
                except EOFError:
                    break
                opcode, _, length = struct.unpack("<BBH", head)
                body = _recv_exact(conn, length * 4 - 4)
                seq += 1
                self.requests.append((opcode, head + body))
                if opcode == 103:
                    reply = struct.pack("<BBHII", 1, 0, seq, 5, self.led_mask)
                    conn.sendall(reply + bytes(52 - len(reply)))
        self.listener.close()


@pytest.fixture
def server_factory(tmp_path, monkeypatch):
    monkeypatch.setattr(x11, "X11_UNIX_DIR", str(tmp_path))
    monkeypatch.setenv("XAUTHORITY", str(tmp_path / "missing"))

    def make(root, led_mask):
        server = FakeServer(str(tmp_path / "X7"), root, led_mask)
        server.start()
        return server

    return make


def test_format_indicators_toggle_case():
    assert x11.format_indicators("cn", 0) == "cn"
    assert x11.format_indicators("cn", 3) == "cn".upper()


def test_format_indicators_conditional():
    assert x11.format_indicators("c?n?", 0) == ""
    fmt = "C?n?"
    assert x11.format_indicators(fmt, 1) == fmt[0]
    assert x11.format_indicators(fmt, 2) == fmt[2]


def test_format_indicators_ignores_other_characters_and_truncates():
    assert x11.format_indicators("xyz", 3) == ""
    assert x11.format_indicators("cccccc", 0) == "cccc"


def test_format_indicators_question_mark_at_end_of_window():
    # the fifth character is outside the format window, so 'n' toggles case
    assert x11.format_indicators("cccn?", 2) == "cccN"


def test_display_round_trip(server_factory):
    server = server_factory(root=0x123, led_mask=2)
    with x11.Display(":7") as display:
        assert display.root == 0x123
        display.store_name("hello")
        mask = display.keyboard_led_mask()
    server.join(timeout=5)
    assert mask == 2
    assert server.byte_order == 0x6C
    opcode, raw = server.requests[0]
    assert opcode == 18
    window, prop, prop_type, fmt, size = struct.unpack_from("<IIIB3xI", raw, 4)
    assert (window, prop, prop_type, fmt) == (0x123, 39, 31, 8)
    assert raw[24:24 + size] == b"hello"
    assert len(raw) % 4 == 0


def test_store_name_none_clears(server_factory):
    server = server_factory(root=0x55, led_mask=0)
    with x11.Display(":7") as display:
        root = display.root
        display.store_name(None)
    server.join(timeout=5)
    assert root == 0x55
    assert len(server.requests) == 1
    opcode, raw = server.requests[0]
    assert opcode == 18
    window, prop, prop_type, fmt, size = struct.unpack_from("<IIIB3xI", raw, 4)
    assert (window, prop, prop_type, fmt, size) == (0x55, 39, 31, 8, 0)
    assert len(raw) == 24


def test_keyboard_indicators_with_display(server_factory, monkeypatch):
    server = server_factory(root=1, led_mask=2)
    monkeypatch.setenv("DISPLAY", ":7")
    assert x11.keyboard_indicators("n") == "n".upper()
    server.join(timeout=5)


def test_keyboard_indicators_without_display(monkeypatch):
    monkeypatch.delenv("DISPLAY", raising=False)
    assert x11.keyboard_indicators("cn") is None


def test_display_without_name(monkeypatch):
    monkeypatch.delenv("DISPLAY", raising=False)
    with pytest.raises(ConnectionError):
        x11.Display()


def test_display_no_server(tmp_path, monkeypatch):
    monkeypatch.setattr(x11, "X11_UNIX_DIR", str(tmp_path))
    with pytest.raises(ConnectionError):
        x11.Display(":9")


def test_display_invalid_name():
    with pytest.raises(ConnectionError):
        x11.Display("nonsense")