"""OpenFlow actions that can be rendered to the text form used by Open vSwitch."""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from .codegen import hw_addr_go_string, ipv4_go_string

ETHERNET_ADDR_LEN = 6

_SOURCE = "src"
_DESTINATION = "dst"

_KIND_LOAD = "load"
_KIND_SET_FIELD = "set_field"

_MAX_OPENFLOW_PORT = 0xFFFFFEFF

ERR_CT_NO_ARGUMENTS = "no arguments for connection tracking"
ERR_INVALID_VLAN_VID = "VLAN VID must be between 0 and 4095"
ERR_OUTPUT_NEGATIVE_PORT = "output port number must not be negative"
ERR_RESUBMIT_PORT_TABLE_ZERO = "both port and table are zero for action resubmit"
ERR_LOAD_SET_FIELD_ZERO = "value and/or field for action load or set_field are empty"
ERR_RESUBMIT_PORT_INVALID = "resubmit port must be between 0 and 65279 inclusive"
ERR_DIMENSION_TOO_LARGE = "dimension number exceeds total number of dimensions"
ERR_MOVE_EMPTY = "src and/or dst field for action move are empty"
ERR_OUTPUT_FIELD_EMPTY = "field for action output (output:field syntax) is empty"
ERR_LEARNED_NIL = "learned flow for action learn is nil"
ERR_INVALID_IPV4 = "invalid IPv4 address for ModNetwork action"
ERR_INVALID_TRANSPORT_PORT = "transport port must be between 0 and 65535"

_TEXT_ACTION_GO_NAMES = {
    "all": "ovs.All()",
    "drop": "ovs.Drop()",
    "flood": "ovs.Flood()",
    "in_port": "ovs.InPort()",
    "local": "ovs.Local()",
    "normal": "ovs.Normal()",
    "strip_vlan": "ovs.StripVLAN()",
}

IPInput = Union[ipaddress.IPv4Address, ipaddress.IPv6Address, bytes, bytearray, str, None]


class ActionError(ValueError):
    """Raised when an action cannot be rendered to text."""


def _go_quote(text: str) -> str:
    """Quote a string the way Go's %q verb does."""
    parts = ['"']
    for ch in text:
        code = ord(ch)
        if ch == '"':
            parts.append('\\"')
        elif ch == "\\":
            parts.append("\\\\")
        elif ch == "\n":
            parts.append("\\n")
        elif ch == "\t":
            parts.append("\\t")
        elif ch == "\r":
            parts.append("\\r")
        elif code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif not ch.isprintable():
            parts.append(f"\\u{code:04x}" if code <= 0xFFFF else f"\\U{code:08x}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts)


def _to_ipv4(ip: IPInput) -> Optional[ipaddress.IPv4Address]:
    """Convert an address to IPv4, or None if it is not an IPv4 address."""
    if ip is None:
        return None
    if isinstance(ip, str):
        try:
            ip = ipaddress.ip_address(ip)
        except ValueError:
            return None
    if isinstance(ip, ipaddress.IPv4Address):
        return ip
    if isinstance(ip, ipaddress.IPv6Address):
        return ip.ipv4_mapped
    raw = bytes(ip)
    if len(raw) == 4:
        return ipaddress.IPv4Address(raw)
    if len(raw) == 16:
        return ipaddress.IPv6Address(raw).ipv4_mapped
    return None


class Action(ABC):
    """An OpenFlow action with a text form and a Go-syntax form."""

    @abstractmethod
    def marshal_text(self) -> str:
        """Return the action in Open vSwitch text form."""

    @abstractmethod
    def go_string(self) -> str:
        """Return a Go expression that constructs this action."""


@dataclass(frozen=True)
class TextAction(Action):
    """An action referred to by name only."""

    action: str

    def marshal_text(self) -> str:
        return self.action

    def go_string(self) -> str:
        try:
            return _TEXT_ACTION_GO_NAMES[self.action]
        except KeyError:
            return f"// BUG(mdlayher): unimplemented OVS text action: {_go_quote(self.action)}"


@dataclass(frozen=True)
class ConnectionTrackingAction(Action):
    """Sends a packet through the connection tracker."""

    args: str

    def marshal_text(self) -> str:
        if not self.args:
            raise ActionError(ERR_CT_NO_ARGUMENTS)
        return f"ct({self.args})"

    def go_string(self) -> str:
        return f"ovs.ConnectionTracking({_go_quote(self.args)})"


@dataclass(frozen=True)
class ModDataLinkAction(Action):
    """Modifies the data link source ("src") or destination ("dst") address."""

    direction: str
    addr: bytes

    def marshal_text(self) -> str:
        if len(self.addr) != ETHERNET_ADDR_LEN:
            raise ActionError(
                f"hardware address must be {ETHERNET_ADDR_LEN} octets, "
                f"but got {len(self.addr)}"
            )
        mac = ":".join(f"{b:02x}" for b in self.addr)
        return f"mod_dl_{self.direction}:{mac}"

    def go_string(self) -> str:
        name = "Source" if self.direction == _SOURCE else "Destination"
        return f"ovs.ModDataLink{name}({hw_addr_go_string(self.addr)})"


@dataclass(frozen=True)
class ModNetworkAction(Action):
    """Modifies the IPv4 source ("src") or destination ("dst") address."""

    direction: str
    ip: Optional[ipaddress.IPv4Address]

    def marshal_text(self) -> str:
        if self.ip is None:
            raise ActionError(ERR_INVALID_IPV4)
        return f"mod_nw_{self.direction}:{self.ip}"

    def go_string(self) -> str:
        name = "Source" if self.direction == _SOURCE else "Destination"
        return f"ovs.ModNetwork{name}({ipv4_go_string(self.ip)})"


@dataclass(frozen=True)
class ModTransportPortAction(Action):
    """Modifies the transport source ("src") or destination ("dst") port."""

    direction: str
    port: int

    def marshal_text(self) -> str:
        if not 0 <= self.port <= 0xFFFF:
            raise ActionError(ERR_INVALID_TRANSPORT_PORT)
        return f"mod_tp_{self.direction}:{self.port}"

    def go_string(self) -> str:
        name = "Source" if self.direction == _SOURCE else "Destination"
        return f"ovs.ModTransport{name}Port({self.port})"


@dataclass(frozen=True)
class ModVLANVIDAction(Action):
    """Sets the VLAN ID, adding a VLAN tag if needed."""

    vid: int

    def marshal_text(self) -> str:
        if not valid_vlan_vid(self.vid):
            raise ActionError(ERR_INVALID_VLAN_VID)
        return f"mod_vlan_vid:{self.vid}"

    def go_string(self) -> str:
        return f"ovs.ModVLANVID({self.vid})"


@dataclass(frozen=True)
class OutputAction(Action):
    """Outputs the packet to a numbered switch port."""

    port: int

    def marshal_text(self) -> str:
        if self.port < 0:
            raise ActionError(ERR_OUTPUT_NEGATIVE_PORT)
        return f"output:{self.port}"

    def go_string(self) -> str:
        return f"ovs.Output({self.port})"


@dataclass(frozen=True)
class OutputFieldAction(Action):
    """Outputs the packet to the port named by a field."""

    field: str

    def marshal_text(self) -> str:
        if not self.field:
            raise ActionError(ERR_OUTPUT_FIELD_EMPTY)
        return f"output:{self.field}"

    def go_string(self) -> str:
        return f"ovs.OutputField({_go_quote(self.field)})"


@dataclass(frozen=True)
class MultipathAction(Action):
    """Selects one of several links by hashing fields and stores it in a field."""

    fields: str
    basis: int
    algorithm: str
    nlinks: int
    arg: int
    dst: str

    def marshal_text(self) -> str:
        return (
            f"multipath({self.fields},{self.basis},{self.algorithm},"
            f"{self.nlinks},{self.arg},{self.dst})"
        )

    def go_string(self) -> str:
        return (
            f"ovs.Multipath({_go_quote(self.fields)}, {self.basis}, "
            f"{_go_quote(self.algorithm)}, {self.nlinks}, {self.arg}, {_go_quote(self.dst)})"
        )


@dataclass(frozen=True)
class ConjunctionAction(Action):
    """Associates a flow with one dimension of a conjunctive match."""

    conj_id: int
    dimension_number: int
    dimension_size: int

    def marshal_text(self) -> str:
        if self.dimension_number > self.dimension_size:
            raise ActionError(ERR_DIMENSION_TOO_LARGE)
        return f"conjunction({self.conj_id},{self.dimension_number}/{self.dimension_size})"

    def go_string(self) -> str:
        return f"ovs.Conjunction({self.conj_id}, {self.dimension_number}, {self.dimension_size})"


@dataclass(frozen=True)
class ResubmitAction(Action):
    """Resubmits the packet with the given port and table; zero means unset."""

    port: int
    table: int

    def marshal_text(self) -> str:
        if self.port == 0 and self.table == 0:
            raise ActionError(ERR_RESUBMIT_PORT_TABLE_ZERO)
        port = str(self.port) if self.port else ""
        table = str(self.table) if self.table else ""
        return f"resubmit({port},{table})"

    def go_string(self) -> str:
        return f"ovs.Resubmit({self.port}, {self.table})"


@dataclass(frozen=True)
class ResubmitPortAction(Action):
    """Resubmits the packet as if it arrived on the given port."""

    port: int

    def marshal_text(self) -> str:
        if not 0 <= self.port <= _MAX_OPENFLOW_PORT:
            raise ActionError(ERR_RESUBMIT_PORT_INVALID)
        return f"resubmit:{self.port}"

    def go_string(self) -> str:
        return f"ovs.ResubmitPort({self.port})"


@dataclass(frozen=True)
class LoadSetFieldAction(Action):
    """Writes a value into a field, either by "load" or "set_field"."""

    value: str
    field: str
    kind: str = _KIND_SET_FIELD

    @property
    def is_load(self) -> bool:
        return self.kind == _KIND_LOAD

    def marshal_text(self) -> str:
        if not self.value or not self.field:
            raise ActionError(ERR_LOAD_SET_FIELD_ZERO)
        keyword = _KIND_LOAD if self.is_load else _KIND_SET_FIELD
        return f"{keyword}:{self.value}->{self.field}"

    def go_string(self) -> str:
        name = "Load" if self.is_load else "SetField"
        return f"ovs.{name}({_go_quote(self.value)}, {_go_quote(self.field)})"


@dataclass(frozen=True)
class SetTunnelAction(Action):
    """Sets the tunnel ID, such as a VXLAN VNI."""

    tunnel_id: int

    def marshal_text(self) -> str:
        return f"set_tunnel:{self.tunnel_id:#x}"

    def go_string(self) -> str:
        return f"ovs.SetTunnel({self.tunnel_id:#x})"


@dataclass(frozen=True)
class MoveAction(Action):
    """Copies the value of one field into another."""

    src: str
    dst: str

    def marshal_text(self) -> str:
        if not self.src or not self.dst:
            raise ActionError(ERR_MOVE_EMPTY)
        return f"move:{self.src}->{self.dst}"

    def go_string(self) -> str:
        return f"ovs.Move({_go_quote(self.src)}, {_go_quote(self.dst)})"


@dataclass(frozen=True)
class LearnAction(Action):
    """Installs a learned flow dynamically.

    ``learned`` is any object providing ``marshal_text()`` and ``go_string()``,
    normally a LearnedFlow.
    """

    learned: Any = None

    def marshal_text(self) -> str:
        if self.learned is None:
            raise ActionError(ERR_LEARNED_NIL)
        text = self.learned.marshal_text()
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode()
        return f"learn({text})"

    def go_string(self) -> str:
        if self.learned is None:
            return "ovs.Learn((*ovs.LearnedFlow)(nil))"
        return f"ovs.Learn({self.learned.go_string()})"


def all_() -> Action:
    """Output on all ports except the input port."""
    return TextAction("all")


def drop() -> Action:
    """Discard the packet; must be the only action."""
    return TextAction("drop")


def flood() -> Action:
    """Output on all flooding-enabled ports except the input port."""
    return TextAction("flood")


def in_port() -> Action:
    """Output on the port the packet arrived on."""
    return TextAction("in_port")


def local() -> Action:
    """Output on the bridge's local port."""
    return TextAction("local")


def normal() -> Action:
    """Apply normal L2/L3 processing."""
    return TextAction("normal")


def strip_vlan() -> Action:
    """Remove the VLAN tag, if present."""
    return TextAction("strip_vlan")


def connection_tracking(args: str) -> Action:
    """Send the packet through the connection tracker with the given arguments."""
    return ConnectionTrackingAction(args)


def mod_data_link_destination(addr: Union[bytes, bytearray]) -> Action:
    """Set the Ethernet destination address."""
    return ModDataLinkAction(_DESTINATION, bytes(addr))


def mod_data_link_source(addr: Union[bytes, bytearray]) -> Action:
    """Set the Ethernet source address."""
    return ModDataLinkAction(_SOURCE, bytes(addr))


def mod_network_destination(ip: IPInput) -> Action:
    """Set the IPv4 destination address."""
    return ModNetworkAction(_DESTINATION, _to_ipv4(ip))


def mod_network_source(ip: IPInput) -> Action:
    """Set the IPv4 source address."""
    return ModNetworkAction(_SOURCE, _to_ipv4(ip))


def mod_transport_destination_port(port: int) -> Action:
    """Set the transport destination port."""
    return ModTransportPortAction(_DESTINATION, port)


def mod_transport_source_port(port: int) -> Action:
    """Set the transport source port."""
    return ModTransportPortAction(_SOURCE, port)


def mod_vlan_vid(vid: int) -> Action:
    """Set the VLAN ID (0-4095)."""
    return ModVLANVIDAction(vid)


def output(port: int) -> Action:
    """Output to a non-negative port number."""
    return OutputAction(port)


def output_field(field: str) -> Action:
    """Output to the port held in a field, such as "in_port"."""
    return OutputFieldAction(field)


def multipath(fields: str, basis: int, algorithm: str, nlinks: int, arg: int, dst: str) -> Action:
    """Hash fields and store the selected link number in dst."""
    return MultipathAction(fields, basis, algorithm, nlinks, arg, dst)


def conjunction(conj_id: int, dimension_number: int, dimension_size: int) -> Action:
    """Mark the flow as one dimension of conjunction conj_id."""
    return ConjunctionAction(conj_id, dimension_number, dimension_size)


def resubmit(port: int, table: int) -> Action:
    """Resubmit with the given port and table; zero values are left empty."""
    return ResubmitAction(port, table)


def resubmit_port(port: int) -> Action:
    """Resubmit to the current table as if received on port."""
    return ResubmitPortAction(port)


def set_field(value: str, field: str) -> Action:
    """Overwrite field with value using set_field."""
    return LoadSetFieldAction(value, field, _KIND_SET_FIELD)


def load(value: str, field: str) -> Action:
    """Load value into field."""
    return LoadSetFieldAction(value, field, _KIND_LOAD)


def set_tunnel(tunnel_id: int) -> Action:
    """Set the tunnel ID."""
    return SetTunnelAction(tunnel_id)


def move(src: str, dst: str) -> Action:
    """Copy the src field into the dst field."""
    return MoveAction(src, dst)


def learn(learned: Any) -> Action:
    """Dynamically install the given learned flow."""
    return LearnAction(learned)


def valid_arp_op(op: int) -> bool:
    """Whether an ARP opcode is in the range 1-4."""
    return 1 <= op <= 4


def valid_ipv6_label(label: int) -> bool:
    """Whether an IPv6 flow label fits in 20 bits."""
    return 0 <= label and (label & 0xFFF00000) == 0 and label <= 0xFFFFFFFF


def valid_vlan_vid(vid: int) -> bool:
    """Whether a VLAN ID is in the range 0-4095."""
    return 0x000 <= vid <= 0xFFF


def valid_vlan_pcp(pcp: int) -> bool:
    """Whether a VLAN priority is in the range 0-7."""
    return 0 <= pcp <= 7