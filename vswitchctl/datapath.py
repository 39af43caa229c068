"""Datapath and conntrack-limit operations backed by 'ovs-dpctl'."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol as TypingProtocol, Union

from .client import Client

ERR_MISSING_MANDATORY_DATAPATH_NAME = "datapath name argument is mandatory"
ERR_UNINITIALIZED_CLIENT = "client unitialized"
ERR_MISSING_MANDATORY_ZONE = "at least 1 zone is mandatory"
ERR_WRONG_ARGUMENT_NUMBER = "missing or too many arguments to setup ct limits"
ERR_WRONG_DEFAULT_ARGUMENT = "wrong argument while setting default ct limits"
ERR_WRONG_ZONE_ARGUMENT = "wrong argument while setting zone ct limits"

_DEFAULT = "default"
_ZONE = "zone"
_LIMIT = "limit"
_DPCTL = "ovs-dpctl"
_UINT64_MOD = 2**64

_INT_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)
_DEFAULT_RE = re.compile(r"default")

CTLimit = Dict[str, int]


class DataPathError(ValueError):
    """Raised when a datapath request is invalid or its output malformed."""


class CLI(TypingProtocol):
    """Anything that can run an 'ovs-dpctl' subcommand."""

    def exec(self, *args: str) -> Union[bytes, str]:
        ...


@dataclass
class ConntrackOutput:
    """Parsed output of 'ovs-dpctl ct-get-limits'."""

    default_limit: CTLimit = field(default_factory=dict)
    zone_limits: List[CTLimit] = field(default_factory=list)


def _to_text(out: Union[bytes, bytearray, str, None]) -> str:
    if out is None:
        return ""
    if isinstance(out, (bytes, bytearray)):
        return bytes(out).decode(errors="replace")
    return out


def _atoi(text: str) -> Optional[int]:
    """Parse a decimal integer as a uint64 value, or None if it is not one."""
    if not _INT_RE.fullmatch(text):
        return None
    return int(text) % _UINT64_MOD


class DpCLI:
    """Runs 'ovs-dpctl' through a Client."""

    def __init__(self, client: Optional[Client]) -> None:
        self.client = client

    def exec(self, *args: str) -> bytes:
        """Run 'ovs-dpctl' with args and return its trimmed output."""
        if self.client is None:
            raise DataPathError(ERR_UNINITIALIZED_CLIENT)
        return self.client.exec(_DPCTL, *args)


class DataPathService:
    """Datapath operations supported by 'ovs-dpctl'."""

    def __init__(self, cli: CLI) -> None:
        self.cli = cli

    def version(self) -> str:
        """Return the output of 'ovs-dpctl --version'."""
        return _to_text(self.cli.exec("--version"))

    def get_data_paths(self) -> List[str]:
        """Return the lines of 'ovs-dpctl dump-dps'."""
        return _to_text(self.cli.exec("dump-dps")).split("\n")

    def add_data_path(self, dp_name: str) -> None:
        """Create a datapath with 'ovs-dpctl add-dp'."""
        self.cli.exec("add-dp", dp_name)

    def del_data_path(self, dp_name: str) -> None:
        """Delete a datapath with 'ovs-dpctl del-dp'."""
        self.cli.exec("del-dp", dp_name)

    def get_ct_limits(self, dp_name: str, zones: Iterable[int]) -> ConntrackOutput:
        """Return the conntrack limits of a datapath, optionally for some zones."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_MANDATORY_DATAPATH_NAME)

        args = ["ct-get-limits", dp_name]
        zone_param = get_zone_string(zones)
        if zone_param:
            args.append(zone_param)

        entries = _to_text(self.cli.exec(*args)).split("\n")
        result = ConntrackOutput()

        zone_entries = []
        for entry in entries:
            if _DEFAULT_RE.search(entry):
                parts = entry.split("=")
                value = _atoi(parts[1]) if len(parts) > 1 else None
                if value is None:
                    raise DataPathError(f"invalid default limit entry: {entry!r}")
                result.default_limit = {_DEFAULT: value}
            else:
                zone_entries.append(entry)

        for entry in zone_entries:
            if not entry:
                continue
            limits: CTLimit = {}
            for item in entry.split(","):
                parts = item.split("=")
                if len(parts) < 2:
                    raise DataPathError(f"invalid zone limit entry: {entry!r}")
                value = _atoi(parts[1])
                limits[parts[0]] = 0 if value is None else value
            result.zone_limits.append(limits)

        return result

    def set_ct_limits(self, dp_name: str, zone: Mapping[str, int]) -> str:
        """Set the limit of one zone ("zone" and "limit") or the "default"."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_MANDATORY_DATAPATH_NAME)
        args = ct_set_limits_args_to_string(zone)
        return _to_text(self.cli.exec("ct-set-limits", dp_name, args))

    def del_ct_limits(self, dp_name: str, zones: Iterable[int]) -> str:
        """Delete the limits of the given zones."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_MANDATORY_DATAPATH_NAME)
        zone_param = get_zone_string(zones)
        if not zone_param:
            raise DataPathError(ERR_MISSING_MANDATORY_ZONE)
        return _to_text(self.cli.exec("ct-del-limits", dp_name, zone_param))


def new_data_path_service() -> DataPathService:
    """Return a DataPathService running 'ovs-dpctl' through sudo."""
    return DataPathService(DpCLI(Client(sudo=True)))


def ct_set_limits_args_to_string(zone: Mapping[str, int]) -> str:
    """Format a ct-set-limits argument such as "zone=2,limit=10000" or "default=10000"."""
    default_setup = False
    args: List[str] = []
    for key, value in zone.items():
        if key == _DEFAULT:
            args.append(f"{key}={value}")
            default_setup = True
        elif key in (_ZONE, _LIMIT):
            args.append(f"{key}={value}")

    if not 1 <= len(args) <= 2:
        raise DataPathError(ERR_WRONG_ARGUMENT_NUMBER)
    if default_setup and len(args) != 1:
        raise DataPathError(ERR_WRONG_DEFAULT_ARGUMENT)
    if not default_setup and len(args) != 2:
        raise DataPathError(ERR_WRONG_ZONE_ARGUMENT)
    return ",".join(args)


def get_zone_string(zones: Iterable[int]) -> str:
    """Format zones as "zone=2,3,4", or "" when there are none."""
    joined = ",".join(str(z) for z in zones)
    return f"zone={joined}" if joined else ""