import struct

import pytest

from statusbar import wifi
from statusbar.wifi import find_attribute, rssi_to_percent


def _attr(kind, payload):
    raw = struct.pack("=HH", 4 + len(payload), kind) + payload
    return raw + bytes(-len(raw) % 4)


@pytest.mark.parametrize("rssi", [-50, -40, 0])
def test_strong_signal_is_full(rssi):
    assert rssi_to_percent(rssi) == 100


@pytest.mark.parametrize("rssi", [-100, -120])
def test_weak_signal_is_zero(rssi):
    assert rssi_to_percent(rssi) == 0


def test_signal_is_monotonic_in_range():
    values = [rssi_to_percent(r) for r in range(-100, -49)]
    assert values == sorted(values)
    assert all(0 <= v <= 100 for v in values)


def test_mid_signal():
    assert rssi_to_percent(-75) == 50


def test_find_attribute_returns_payload():
    data = _attr(1, b"abc") + _attr(52, b"myssid")
    assert find_attribute(data, 52) == b"myssid"
    assert find_attribute(data, 1) == b"abc"


def test_find_attribute_missing():
    data = _attr(1, b"abc")
    assert find_attribute(data, 7) is None


def test_find_attribute_stops_on_zero_length():
    data = struct.pack("=HH", 0, 9) + b"\x00" * 8
    assert find_attribute(data, 52) is None


def test_request_length_field_matches_size():
    request = wifi._build_request(wifi.GENL_ID_CTRL, wifi.NLM_F_REQUEST, 1,
                                  wifi.CTRL_CMD_GETFAMILY,
                                  wifi.CTRL_ATTR_FAMILY_NAME, b"nl80211\0")
    assert struct.unpack_from("=I", request)[0] == len(request)
    body = request[wifi.NLMSG_HDRLEN + wifi.GENL_HDRLEN:]
    assert find_attribute(body, wifi.CTRL_ATTR_FAMILY_NAME) == b"nl80211\0"


def test_station_signal_from_nested_attributes():
    inner = _attr(wifi.NL80211_STA_INFO_SIGNAL_AVG, struct.pack("b", -60))
    body = struct.pack("=BBH", 17, 1, 0) + _attr(wifi.NL80211_ATTR_STA_INFO, inner)
    message = struct.pack("=IHHII", 16 + len(body), 28, 2, 1, 0) + body
    messages = list(wifi._messages(message))
    assert len(messages) == 1
    _kind, length, raw = messages[0]
    assert wifi._station_signal(raw, length) == -60


def test_wifi_perc_unknown_interface():
    assert wifi.wifi_perc("nosuchif0") is None


def test_wifi_essid_unknown_interface():
    assert wifi.wifi_essid("nosuchif0") is None