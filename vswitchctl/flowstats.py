"""Aggregate flow statistics as reported by 'ovs-ofctl dump-aggregate'."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

_PACKET_COUNT = "packet_count"
_BYTE_COUNT = "byte_count"
_FLOW_COUNT = "flow_count"
_FIELDS = (_PACKET_COUNT, _BYTE_COUNT, _FLOW_COUNT)
_UINT64_MAX = 2**64 - 1


class InvalidFlowStatsError(ValueError):
    """Raised when flow statistics text does not match the expected format."""

    def __init__(self, message: str = "invalid flow statistics") -> None:
        super().__init__(message)


def _parse_uint64(value: str) -> int:
    if not value or not (value.isascii() and value.isdigit()):
        raise InvalidFlowStatsError(f"invalid unsigned integer: {value!r}")
    number = int(value)
    if number > _UINT64_MAX:
        raise InvalidFlowStatsError(f"value out of range: {value!r}")
    return number


@dataclass
class FlowStats:
    """Packet and byte counters for a set of flows."""

    packet_count: int = 0
    byte_count: int = 0

    @classmethod
    def from_text(cls, text: Union[str, bytes]) -> "FlowStats":
        """Parse the trailing 'packet_count=N byte_count=N flow_count=N' fields."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="replace")

        idx = text.find(_PACKET_COUNT)
        if idx == -1:
            raise InvalidFlowStatsError()

        tokens = text[idx:].split()
        if len(tokens) != len(_FIELDS):
            raise InvalidFlowStatsError()

        values = []
        for token, expected in zip(tokens, _FIELDS):
            key, sep, value = token.partition("=")
            if not sep or "=" in value:
                raise InvalidFlowStatsError()
            if key != expected:
                raise InvalidFlowStatsError()
            values.append(_parse_uint64(value))

        # The flow count is validated but not kept.
        return cls(packet_count=values[0], byte_count=values[1])