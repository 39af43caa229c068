# vswitchctl

A Python library for working with Open vSwitch. It builds OpenFlow actions as
Python objects and renders them in the text form that `ovs-ofctl` accepts,
parses action lists back into those objects, reads aggregate flow statistics,
runs the OVS command-line tools, and wraps the `ovs-dpctl` datapath and
conntrack-limit commands.

It has no third-party dependencies.

## Installation

```
pip install vswitchctl
```

For running the test suite:

```
pip install "vswitchctl[test]"
```

## Actions

Actions are created by factory functions in `vswitchctl.actions` and rendered
with `marshal_text()`:

```python
from vswitchctl.actions import mod_data_link_source, mod_vlan_vid, resubmit

mod_vlan_vid(20).marshal_text()      # 'mod_vlan_vid:20'
resubmit(0, 1).marshal_text()        # 'resubmit(,1)'
mod_data_link_source(bytes.fromhex("020000000001")).marshal_text()
# 'mod_dl_src:02:00:00:00:00:01'
```

The available factories are `all_`, `drop`, `flood`, `in_port`, `local`,
`normal`, `strip_vlan`, `connection_tracking`, `mod_data_link_destination`,
`mod_data_link_source`, `mod_network_destination`, `mod_network_source`,
`mod_transport_destination_port`, `mod_transport_source_port`,
`mod_vlan_vid`, `output`, `output_field`, `multipath`, `conjunction`,
`resubmit`, `resubmit_port`, `set_field`, `load`, `set_tunnel`, `move` and
`learn`.

Arguments are checked when an action is marshalled, and bad ones raise
`ActionError` — for example a VLAN ID outside 0–4095, a negative output port,
a hardware address that is not six octets, an address that is not IPv4, or
`resubmit(0, 0)`.

Each action also has `go_string()`, which returns a Go-syntax constructor
expression for it (for example `ovs.ModVLANVID(10)`), useful for code
generation and debugging. `vswitchctl.codegen` provides the helpers behind it,
`hw_addr_go_string` and `ipv4_go_string`.

The module also has small range checks: `valid_arp_op`, `valid_ipv6_label`,
`valid_vlan_vid` and `valid_vlan_pcp`.

## Parsing actions

`vswitchctl.actionparser` splits and parses comma-separated action lists,
honouring nested parentheses:

```python
from vswitchctl.actionparser import parse_action, parse_actions, split_actions

split_actions("strip_vlan,resubmit(,1),ct(commit,exec(set_field:1->ct_mark))")
# ['strip_vlan', 'resubmit(,1)', 'ct(commit,exec(set_field:1->ct_mark))']

actions, raw = parse_actions("mod_vlan_vid:10,output:1")
parse_action("NORMAL").marshal_text()   # 'normal'
```

Unbalanced parentheses, malformed arguments and unknown actions raise
`ActionParseError`.

## Flow statistics

`vswitchctl.flowstats.FlowStats.from_text` reads the output of
`ovs-ofctl dump-aggregate`:

```python
from vswitchctl.flowstats import FlowStats

FlowStats.from_text(
    "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644 flow_count=2"
)
# FlowStats(packet_count=642800, byte_count=141379644)
```

Text that does not end in `packet_count=… byte_count=… flow_count=…` raises
`InvalidFlowStatsError`.

## Running commands

`vswitchctl.client.Client` runs the OVS command-line tools. It takes keyword
options: `timeout` and `tcp_addr` add `--timeout=` and `--db=tcp:` flags to
every command, `sudo=True` prefixes commands with `sudo`, and `debug=True`
logs each command and its output at debug level on the `vswitchctl` logger.
`flow_format`, `protocols` and `ssl_param` are kept in `ofctl_flags` for
`ovs-ofctl` use.

`Client.exec(cmd, *args)` returns the command's combined output with
surrounding whitespace trimmed, and raises `CommandError` (holding the output
and the cause) on failure. `Client.pipe(stdin, cmd, *args)` feeds bytes, text
or a readable stream to the command and raises `PipeError` on failure.

The functions that actually start processes, `shell_exec` and `shell_pipe`,
can be replaced with `exec_func=` and `pipe_func=`, so code built on the client
can be tested without Open vSwitch installed.

## Datapaths and conntrack limits

`vswitchctl.datapath.DataPathService` wraps `ovs-dpctl`:

```python
from vswitchctl.datapath import new_data_path_service

dp = new_data_path_service()          # runs ovs-dpctl through sudo
dp.version()
dp.get_data_paths()
dp.set_ct_limits("system@ovs-system", {"zone": 4, "limit": 4000})
dp.set_ct_limits("system@ovs-system", {"default": 200})
limits = dp.get_ct_limits("system@ovs-system", [4])
limits.default_limit                  # e.g. {'default': 200}
limits.zone_limits                    # e.g. [{'zone': 4, 'limit': 4000, 'count': 0}]
dp.del_ct_limits("system@ovs-system", [4])
```

`DataPathService` accepts any object with an `exec(*args)` method, which makes
it easy to substitute a fake in tests; `DpCLI` is the implementation that runs
`ovs-dpctl` through a `Client`. The helpers `get_zone_string` and
`ct_set_limits_args_to_string` build the zone arguments. Missing or
inconsistent arguments raise `DataPathError`.

## What it does not do

- There is no flow type: the package does not build or parse whole flow lines
  (priority, matches, table, cookie and actions together), and has no match
  fields. `learn()` accepts any object providing `marshal_text()` and
  `go_string()` for the learned flow.
- It has no wrappers for `ovs-ofctl`, `ovs-vsctl` or `ovs-appctl`; those tools
  can only be run directly through `Client.exec` and `Client.pipe`.
- It installs no command-line program.