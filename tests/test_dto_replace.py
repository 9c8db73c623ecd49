import copy

import pytest

from zmux.dto_replace import ReplaceChannel, ReplaceInput, ReplaceOutput
from zmux.fields import RequestError

FULL = {
    "name": "news",
    "input": {
        "url": "udp://239.0.0.1:1234",
        "avioflags": None,
        "probesize": 5000000,
        "analyzeduration": 0,
        "fflags": "nobuffer",
        "max_delay": -1,
        "localaddr": None,
        "timeout": 3000000,
        "rtsp_transport": None,
    },
    "output": {
        "url": None,
        "localaddr": None,
        "pkt_size": 1316,
        "map_video": True,
        "map_audio": False,
        "map_data": True,
    },
    "enabled": False,
    "restart_sec": 3,
}


def body():
    return copy.deepcopy(FULL)


def test_full_body_round_trips_with_id():
    channel = ReplaceChannel.from_json(body()).to_channel(7)
    assert channel.to_dict() == {"id": 7, **FULL}


def test_null_name_is_allowed():
    data = body()
    data["name"] = None
    channel = ReplaceChannel.from_json(data).to_channel(1)
    assert channel.name is None


@pytest.mark.parametrize("key", ["name", "input", "output", "enabled", "restart_sec"])
def test_missing_top_level_field(key):
    data = body()
    del data[key]
    with pytest.raises(RequestError, match=f"^{key} is required$"):
        ReplaceChannel.from_json(data).to_channel(1)


@pytest.mark.parametrize("key", ["input", "output", "enabled", "restart_sec"])
def test_null_top_level_non_nullable(key):
    data = body()
    data[key] = None
    with pytest.raises(RequestError, match=f"^{key} cannot be null$"):
        ReplaceChannel.from_json(data).to_channel(1)


@pytest.mark.parametrize("key", sorted(FULL["input"]))
def test_missing_input_field(key):
    data = body()
    del data["input"][key]
    with pytest.raises(RequestError, match=f"^input.{key} is required$"):
        ReplaceInput.from_json(data["input"]).to_channel_input()


@pytest.mark.parametrize("key", sorted(FULL["output"]))
def test_missing_output_field(key):
    data = body()
    del data["output"][key]
    with pytest.raises(RequestError, match=f"^output.{key} is required$"):
        ReplaceOutput.from_json(data["output"]).to_channel_output()


@pytest.mark.parametrize("key", ["probesize", "analyzeduration", "max_delay", "timeout"])
def test_null_input_non_nullable(key):
    data = body()
    data["input"][key] = None
    with pytest.raises(RequestError, match=f"^input.{key} cannot be null$"):
        ReplaceChannel.from_json(data).to_channel(1)


@pytest.mark.parametrize("key", ["pkt_size", "map_video", "map_audio", "map_data"])
def test_null_output_non_nullable(key):
    data = body()
    data["output"][key] = None
    with pytest.raises(RequestError, match=f"^output.{key} cannot be null$"):
        ReplaceChannel.from_json(data).to_channel(1)


@pytest.mark.parametrize("key", ["url", "avioflags", "fflags", "localaddr", "rtsp_transport"])
def test_null_input_nullable(key):
    data = body()
    data["input"][key] = None
    channel_input = ReplaceInput.from_json(data["input"]).to_channel_input()
    assert getattr(channel_input, key) is None


def test_unknown_field_rejected():
    data = body()
    data["extra"] = 1
    with pytest.raises(RequestError, match="unknown field"):
        ReplaceChannel.from_json(data)


def test_negative_uint_rejected():
    data = body()
    data["input"]["probesize"] = -1
    with pytest.raises(RequestError):
        ReplaceChannel.from_json(data)


def test_empty_body_requires_name_first():
    with pytest.raises(RequestError, match="^name is required$"):
        ReplaceChannel.from_json({}).to_channel(1)