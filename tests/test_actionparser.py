import pytest

from vswitchctl.actionparser import (
    ActionParseError,
    parse_action,
    parse_actions,
    split_actions,
)
from vswitchctl.actions import (
    ActionError,
    conjunction,
    connection_tracking,
    drop,
    load,
    local,
    mod_data_link_destination,
    mod_network_destination,
    mod_transport_source_port,
    move,
    normal,
    resubmit,
    resubmit_port,
    strip_vlan,
)

MAC = bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD])


@pytest.mark.parametrize(
    "text, raw",
    [
        ("strip_vlan", ["strip_vlan"]),
        ("strip_vlan,resubmit(,1)", ["strip_vlan", "resubmit(,1)"]),
        (
            "strip_vlan,resubmit(,1),ct(commit,exec(set_field:1->ct_label,set_field:1->ct_mark))",
            [
                "strip_vlan",
                "resubmit(,1)",
                "ct(commit,exec(set_field:1->ct_label,set_field:1->ct_mark))",
            ],
        ),
    ],
)
def test_parse_actions_round_trip(text, raw):
    actions, got_raw = parse_actions(text)
    assert got_raw == raw
    assert [a.marshal_text() for a in actions] == raw


def test_parse_actions_invalid():
    with pytest.raises(ActionParseError):
        parse_actions("strip_vlan,resubmit(")


def test_split_actions_unmatched_close():
    with pytest.raises(ActionParseError):
        split_actions("drop)")


def test_split_actions_trailing_comma_and_empty():
    assert split_actions("drop,") == ["drop"]
    assert split_actions("a,,b") == ["a", "", "b"]
    assert split_actions("") == []


def test_parse_actions_empty_element_fails():
    with pytest.raises(ActionParseError):
        parse_actions("drop,,flood")


VALID = [
    "drop",
    "flood",
    "in_port",
    "local",
    "LOCAL",
    "normal",
    "NORMAL",
    "strip_vlan",
    "ct(commit)",
    "mod_dl_dst:de:ad:be:ef:de:ad",
    "mod_dl_src:de:ad:be:ef:de:ad",
    "mod_nw_dst:192.168.1.1",
    "mod_nw_src:192.168.1.1",
    "mod_tp_dst:65535",
    "mod_tp_src:65535",
    "mod_vlan_vid:10",
    "output:1",
    "resubmit:4",
    "resubmit(1,)",
    "resubmit(,2)",
    "resubmit(1,2)",
    "resubmit(,25)",
    "load:0x2->NXM_OF_ARP_OP[]",
    "move:NXM_OF_ARP_SPA[]->NXM_OF_ARP_TPA[]",
    "set_field:192.168.1.1->arp_spa",
    "conjunction(123,1/2)",
    "conjunction(123,2/2)",
]


@pytest.mark.parametrize("text", VALID)
def test_parse_action_valid(text):
    want = text.lower() if text in ("LOCAL", "NORMAL") else text
    assert parse_action(text).marshal_text() == want


INVALID = [
    "foo",
    "ct()",
    "mod_dl_dst:foo",
    "mod_nw_dst:foo",
    "mod_nw_dst:2001:db8::1",
    "mod_nw_src:foo",
    "mod_nw_src:2001:db8::1",
    "mod_tp_dst:foo",
    "mod_tp_dst:-1",
    "mod_tp_dst:65536",
    "mod_tp_src:foo",
    "mod_tp_src:-1",
    "mod_tp_src:65536",
    "mod_vlan_vid:foo",
    "output:foo",
    "resubmit(foo,)",
    "resubmit(,bar)",
    "resubmit(foo,bar)",
    "load:->NXM_OF_ARP_OP[]",
    "load:0x2->",
    "move:->NXM_OF_ARP_OP[]",
    "move:NXM_OF_ARP_SPA[]->",
    "set_field:->arp_spa",
    "set_field:192.168.1.1->",
    "conjunction(123,3/2)",
    "conjunxxxxx(123,3/2)",
]


@pytest.mark.parametrize("text", INVALID)
def test_parse_action_invalid(text):
    with pytest.raises((ActionParseError, ActionError)):
        parse_action(text).marshal_text()


@pytest.mark.parametrize(
    "text, expected",
    [
        ("drop", drop()),
        ("LOCAL", local()),
        ("Normal", normal()),
        ("strip_vlan", strip_vlan()),
        ("ct(commit)", connection_tracking("commit")),
        ("mod_dl_dst:de:ad:be:ef:de:ad", mod_data_link_destination(MAC)),
        ("mod_nw_dst:192.168.1.1", mod_network_destination("192.168.1.1")),
        ("mod_tp_src:65535", mod_transport_source_port(65535)),
        ("resubmit(,25)", resubmit(0, 25)),
        ("resubmit:4", resubmit_port(4)),
        ("load:0x2->NXM_OF_ARP_OP[]", load("0x2", "NXM_OF_ARP_OP[]")),
        (
            "move:NXM_OF_ARP_SPA[]->NXM_OF_ARP_TPA[]",
            move("NXM_OF_ARP_SPA[]", "NXM_OF_ARP_TPA[]"),
        ),
        ("conjunction(123,3/2)", conjunction(123, 3, 2)),
    ],
)
def test_parse_action_objects(text, expected):
    assert parse_action(text) == expected


def test_parse_action_nested_ct():
    text = "ct(commit,exec(set_field:1->ct_label,set_field:1->ct_mark))"
    assert parse_action(text) == connection_tracking(
        "commit,exec(set_field:1->ct_label,set_field:1->ct_mark)"
    )


def test_parse_action_hyphen_mac():
    action = parse_action("mod_dl_dst:02-00-00-00-00-01")
    assert action.marshal_text() == "mod_dl_dst:02:00:00:00:00:01"


def test_parse_action_eui64_mac_rejected_on_marshal():
    action = parse_action("mod_dl_src:02:00:00:00:00:00:00:01")
    with pytest.raises(ActionError):
        action.marshal_text()


def test_parse_action_ipv4_mapped():
    assert parse_action("mod_nw_src:::ffff:10.0.0.1").marshal_text() == "mod_nw_src:10.0.0.1"


def test_parse_action_all_not_recognised():
    with pytest.raises(ActionParseError, match="no action matched"):
        parse_action("all")


def test_parse_action_output_field_not_recognised():
    with pytest.raises(ActionParseError):
        parse_action("output:in_port")


def test_parse_action_empty():
    with pytest.raises(ActionParseError):
        parse_action("")