import ipaddress

import pytest

from vswitchctl.codegen import hw_addr_go_string, ipv4_go_string


def test_hw_addr_six_octets():
    addr = bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD])
    assert hw_addr_go_string(addr) == "net.HardwareAddr{0xde, 0xad, 0xbe, 0xef, 0xde, 0xad}"


def test_hw_addr_empty():
    assert hw_addr_go_string(b"") == "net.HardwareAddr{}"


def test_hw_addr_pads_small_octets():
    out = hw_addr_go_string(bytes([0x00, 0x01, 0x0A]))
    assert out == "net.HardwareAddr{0x00, 0x01, 0x0a}"


def test_hw_addr_octet_count_matches():
    addr = bytes(range(7))
    body = hw_addr_go_string(addr)[len("net.HardwareAddr{"):-1]
    assert len(body.split(", ")) == 7


@pytest.mark.parametrize(
    "ip",
    [
        ipaddress.IPv4Address("192.168.1.1"),
        ipaddress.IPv6Address("::ffff:192.168.1.1"),
        bytes([192, 168, 1, 1]),
        bytes(10) + b"\xff\xff" + bytes([192, 168, 1, 1]),
        "192.168.1.1",
    ],
)
def test_ipv4_go_string_forms(ip):
    assert ipv4_go_string(ip) == "net.IPv4(192, 168, 1, 1)"


@pytest.mark.parametrize(
    "ip",
    [
        None,
        bytes([0xFF]),
        ipaddress.IPv6Address("2001:db8::1"),
        "2001:db8::1",
        "foo",
        bytes(16),
    ],
)
def test_ipv4_go_string_invalid(ip):
    assert ipv4_go_string(ip) == 'panic("invalid IPv4 address")'