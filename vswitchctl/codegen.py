"""Render hardware and IPv4 addresses as Go-syntax constructor expressions."""

from __future__ import annotations

import ipaddress
from typing import Optional, Union

IPLike = Union[ipaddress.IPv4Address, ipaddress.IPv6Address, bytes, bytearray, str, None]

_INVALID_IPV4 = 'panic("invalid IPv4 address")'
_V4_MAPPED_PREFIX = bytes(10) + b"\xff\xff"


def _ipv4_octets(ip: IPLike) -> Optional[bytes]:
    """Return the four octets of an IPv4 (or IPv4-mapped IPv6) address, or None."""
    if ip is None:
        return None
    if isinstance(ip, str):
        try:
            ip = ipaddress.ip_address(ip)
        except ValueError:
            return None
    if isinstance(ip, ipaddress.IPv4Address):
        return ip.packed
    if isinstance(ip, ipaddress.IPv6Address):
        mapped = ip.ipv4_mapped
        return mapped.packed if mapped is not None else None
    raw = bytes(ip)
    if len(raw) == 4:
        return raw
    if len(raw) == 16 and raw.startswith(_V4_MAPPED_PREFIX):
        return raw[12:]
    return None


def hw_addr_go_string(addr: Union[bytes, bytearray]) -> str:
    """Return the Go literal for a hardware address, e.g. net.HardwareAddr{0xde, 0xad}."""
    octets = ", ".join(f"0x{b:02x}" for b in bytes(addr))
    return f"net.HardwareAddr{{{octets}}}"


def ipv4_go_string(ip: IPLike) -> str:
    """Return the Go net.IPv4(...) expression for an IPv4 address.

    Addresses that are not IPv4 produce a panic expression instead.
    """
    octets = _ipv4_octets(ip)
    if octets is None:
        return _INVALID_IPV4
    return "net.IPv4({})".format(", ".join(str(b) for b in octets))