import pytest

from vswitchctl.flowstats import FlowStats, InvalidFlowStatsError


@pytest.mark.parametrize(
    "text",
    [
        "",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644 flow_count=2, flow_count=3",
        "NXST_AGGREGATE reply (xid=0x4): frame_count=642800 byte_count=141379644 flow_count=2",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 bits*8_count=141379644 flow_count=2",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=1=foo byte_count=141379644 flow_count=2",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=toosmall byte_count=141379644 flow_count=2",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=toolarge flow_count=2",
        "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=1 FLOW_count=2",
    ],
    ids=[
        "empty string",
        "too few fields",
        "too many fields",
        "packet_count missing",
        "byte_count missing",
        "bad key=value",
        "bad packet count",
        "bad byte count",
        "bad flow count",
    ],
)
def test_invalid_flow_stats(text):
    with pytest.raises(InvalidFlowStatsError):
        FlowStats.from_text(text)


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644 flow_count=2",
            FlowStats(packet_count=642800, byte_count=141379644),
        ),
        (
            "OFPST_AGGREGATE reply (OF1.4) (xid=0x2): packet_count=1207 byte_count=101673 flow_count=1",
            FlowStats(packet_count=1207, byte_count=101673),
        ),
    ],
    ids=["OK", "OK, OpenFlow 1.4"],
)
def test_valid_flow_stats(text, expected):
    assert FlowStats.from_text(text) == expected


def test_accepts_bytes():
    raw = b"NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644 flow_count=2"
    assert FlowStats.from_text(raw) == FlowStats(642800, 141379644)


def test_negative_count_rejected():
    with pytest.raises(InvalidFlowStatsError):
        FlowStats.from_text("packet_count=-1 byte_count=1 flow_count=2")


def test_overflow_rejected():
    too_big = str(2**64)
    with pytest.raises(InvalidFlowStatsError):
        FlowStats.from_text(f"packet_count={too_big} byte_count=1 flow_count=2")


def test_max_uint64_accepted():
    top = 2**64 - 1
    stats = FlowStats.from_text(f"packet_count={top} byte_count=0 flow_count=0")
    assert stats.packet_count == top
    assert stats.byte_count == 0


def test_error_is_value_error():
    with pytest.raises(ValueError):
        FlowStats.from_text("nothing here")