"""Parse the actions part of an Open vSwitch flow back into Action objects."""

from __future__ import annotations

import ipaddress
import re
from typing import List, Optional, Tuple

from .actions import (
    Action,
    conjunction,
    connection_tracking,
    drop,
    flood,
    in_port,
    load,
    local,
    mod_data_link_destination,
    mod_data_link_source,
    mod_network_destination,
    mod_network_source,
    mod_transport_destination_port,
    mod_transport_source_port,
    mod_vlan_vid,
    move,
    normal,
    output,
    resubmit,
    resubmit_port,
    set_field,
    strip_vlan,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT16_MAX = 0xFFFF

_SIMPLE_ACTIONS = {
    "drop": drop,
    "flood": flood,
    "in_port": in_port,
    "local": local,
    "normal": normal,
    "strip_vlan": strip_vlan,
}

_CT_RE = re.compile(r"ct\((\S+)\)", re.ASCII)
_RESUBMIT_RE = re.compile(r"resubmit\((\d*),(\d*)\)", re.ASCII)
_RESUBMIT_PORT_RE = re.compile(r"resubmit:(\d+)", re.ASCII)
_LOAD_RE = re.compile(r"load:(\S+)->(\S+)", re.ASCII)
_MOVE_RE = re.compile(r"move:(\S+)->(\S+)", re.ASCII)
_SET_FIELD_RE = re.compile(r"set_field:(\S+)->(\S+)", re.ASCII)
_CONJUNCTION_RE = re.compile(
    r"conjunction\(\s*([+-]?[0-9]+),\s*([+-]?[0-9]+)/\s*([+-]?[0-9]+)\)", re.ASCII
)

_SIGNED_RE = re.compile(r"\s*([+-]?[0-9]+)", re.ASCII)
_UNSIGNED_RE = re.compile(r"\s*([0-9]+)", re.ASCII)

_MAC_SEP_RE = re.compile(
    r"[0-9a-fA-F]{2}(?:(?P<sep>[:-])[0-9a-fA-F]{2})(?:(?P=sep)[0-9a-fA-F]{2})*"
)
_MAC_DOT_RE = re.compile(r"[0-9a-fA-F]{4}(?:\.[0-9a-fA-F]{4})+")
_MAC_OCTET_COUNTS = (6, 8, 20)


class ActionParseError(ValueError):
    """Raised when action text cannot be parsed."""


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def split_actions(text: str) -> List[str]:
    """Split a comma-separated action list, honouring nested parentheses."""
    raw: List[str] = []
    buf: List[str] = []
    depth = 0
    for ch in text:
        if ch == "," and depth == 0:
            raw.append("".join(buf))
            buf = []
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                buf.append(ch)
                raise ActionParseError(f"invalid action: {_quote(''.join(buf))}")
            depth -= 1
        buf.append(ch)

    if depth > 0:
        raise ActionParseError(f"invalid action: {_quote(''.join(buf))}")
    if buf:
        raw.append("".join(buf))
    return raw


def parse_actions(text: str) -> Tuple[List[Action], List[str]]:
    """Parse every action in text; return the actions and their raw strings."""
    raw = split_actions(text)
    return [parse_action(item) for item in raw], raw


def _scan_token(text: str, prefix: str) -> str:
    """Return the whitespace-delimited token that follows prefix."""
    tokens = text[len(prefix):].split()
    if not tokens:
        raise ActionParseError(f"unexpected EOF scanning {_quote(text)}")
    return tokens[0]


def _scan_int(text: str, prefix: str, *, signed: bool, low: int, high: int) -> int:
    pattern = _SIGNED_RE if signed else _UNSIGNED_RE
    m = pattern.match(text, len(prefix))
    if m is None:
        raise ActionParseError(f"expected integer in {_quote(text)}")
    value = int(m.group(1))
    if not low <= value <= high:
        raise ActionParseError(f"value out of range: {m.group(1)}")
    return value


def _parse_mac(text: str) -> bytes:
    """Parse a MAC-48, EUI-64 or 20-octet InfiniBand hardware address."""
    if _MAC_SEP_RE.fullmatch(text):
        octets = bytes.fromhex(text.replace(":", "").replace("-", ""))
    elif _MAC_DOT_RE.fullmatch(text):
        octets = bytes.fromhex(text.replace(".", ""))
    else:
        raise ActionParseError(f"address {text}: invalid MAC address")
    if len(octets) not in _MAC_OCTET_COUNTS:
        raise ActionParseError(f"address {text}: invalid MAC address")
    return octets


def _parse_ipv4(text: str) -> ipaddress.IPv4Address:
    try:
        ip = ipaddress.ip_address(text)
    except ValueError:
        ip = None
    ip4: Optional[ipaddress.IPv4Address]
    if isinstance(ip, ipaddress.IPv6Address):
        ip4 = ip.ipv4_mapped
    else:
        ip4 = ip
    if ip4 is None:
        raise ActionParseError(f"invalid IPv4 address: {text}")
    return ip4


def _to_int(digits: str) -> int:
    value = int(digits)
    if value > _INT64_MAX:
        raise ActionParseError(f"value out of range: {digits}")
    return value


def parse_action(text: str) -> Action:
    """Create an Action from its textual form."""
    simple = _SIMPLE_ACTIONS.get(text.lower())
    if simple is not None:
        return simple()

    m = _CT_RE.search(text)
    if m:
        return connection_tracking(m.group(1))

    for prefix, factory in (
        ("mod_dl_dst:", mod_data_link_destination),
        ("mod_dl_src:", mod_data_link_source),
    ):
        if text.startswith(prefix):
            return factory(_parse_mac(_scan_token(text, prefix)))

    for prefix, factory in (
        ("mod_nw_dst:", mod_network_destination),
        ("mod_nw_src:", mod_network_source),
    ):
        if text.startswith(prefix):
            return factory(_parse_ipv4(_scan_token(text, prefix)))

    for prefix, factory in (
        ("mod_tp_dst:", mod_transport_destination_port),
        ("mod_tp_src:", mod_transport_source_port),
    ):
        if text.startswith(prefix):
            return factory(_scan_int(text, prefix, signed=False, low=0, high=_UINT16_MAX))

    if text.startswith("mod_vlan_vid:"):
        vid = _scan_int(text, "mod_vlan_vid:", signed=True, low=_INT64_MIN, high=_INT64_MAX)
        return mod_vlan_vid(vid)

    if text.startswith("conjunction"):
        m = _CONJUNCTION_RE.match(text)
        if m is None:
            raise ActionParseError(f"input does not match format: {_quote(text)}")
        values = [int(g) for g in m.groups()]
        if any(not _INT64_MIN <= v <= _INT64_MAX for v in values):
            raise ActionParseError(f"value out of range in {_quote(text)}")
        return conjunction(*values)

    if text.startswith("output:"):
        port = _scan_int(text, "output:", signed=True, low=_INT64_MIN, high=_INT64_MAX)
        return output(port)

    m = _RESUBMIT_RE.search(text)
    if m:
        port = _to_int(m.group(1)) if m.group(1) else 0
        table = _to_int(m.group(2)) if m.group(2) else 0
        return resubmit(port, table)

    m = _RESUBMIT_PORT_RE.search(text)
    if m:
        return resubmit_port(_to_int(m.group(1)))

    for pattern, factory in (
        (_LOAD_RE, load),
        (_MOVE_RE, move),
        (_SET_FIELD_RE, set_field),
    ):
        m = pattern.search(text)
        if m:
            return factory(m.group(1), m.group(2))

    raise ActionParseError(f"no action matched for {_quote(text)}")