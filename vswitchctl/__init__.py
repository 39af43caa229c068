"""Open vSwitch actions, action parsing, flow statistics, command running and datapath control."""

__version__ = "0.1.0"