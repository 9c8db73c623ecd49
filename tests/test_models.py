import pytest

from zmux.channel import ZmuxChannel
from zmux.models import ChannelSummary, RemuxStatus


def test_remux_status_round_trip():
    status = RemuxStatus(liveness="Live", metadata="ok", timestamp=1700000000)
    assert RemuxStatus.from_dict(status.to_dict()) == status


def test_remux_status_keys():
    assert set(RemuxStatus().to_dict()) == {"liveness", "metadata", "timestamp"}


def test_remux_status_missing_fields_default():
    assert RemuxStatus.from_dict({"liveness": "Dead"}) == RemuxStatus(liveness="Dead")


@pytest.mark.parametrize(
    "data",
    [{"liveness": 5}, {"timestamp": "now"}, {"timestamp": 1.5}, {"timestamp": True}, ["x"]],
)
def test_remux_status_rejects_wrong_types(data):
    with pytest.raises(ValueError):
        RemuxStatus.from_dict(data)


def test_summary_without_monitoring_is_flat_channel():
    channel = ZmuxChannel(id=3, name="news")
    data = ChannelSummary(channel).to_dict()
    assert data == channel.to_dict()
    assert "status" not in data and "ifmt" not in data and "metrics" not in data


def test_summary_with_status_and_extras():
    channel = ZmuxChannel(id=3, name="news", enabled=True)
    status = RemuxStatus(liveness="Live")
    summary = ChannelSummary(channel, status=status, ifmt='{"a": 1}', metrics=b"[1, 2]")
    data = summary.to_dict()
    assert data["id"] == 3
    assert data["status"] == status.to_dict()
    assert data["ifmt"] == {"a": 1}
    assert data["metrics"] == [1, 2]


def test_summary_omits_empty_raw_json():
    summary = ChannelSummary(ZmuxChannel(id=1), status=RemuxStatus(), ifmt="", metrics=None)
    data = summary.to_dict()
    assert "ifmt" not in data
    assert "metrics" not in data
    assert data["status"] == RemuxStatus().to_dict()