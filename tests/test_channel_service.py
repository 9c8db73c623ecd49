import copy

import pytest

from zmux.channel import ZmuxChannel, ZmuxChannelInput, ZmuxChannelOutput
from zmux.channel_repo import ChannelNotFoundError
from zmux.channel_service import ChannelService
from zmux.remux_command import build_remux_exec_start
from zmux.systemd import SystemdError


class StoreError(RuntimeError):
    pass


class FakeRepo:
    def __init__(self):
        self.docs = {}
        self.next_id = 0
        self.fail_set = False
        self.fail_delete = False

    def generate_id(self):
        self.next_id += 1
        return self.next_id

    def exists(self, channel_id):
        return channel_id in self.docs

    def set(self, channel):
        if self.fail_set:
            raise StoreError("set failed")
        self.docs[channel.id] = copy.deepcopy(channel)

    def get(self, channel_id):
        if channel_id not in self.docs:
            raise ChannelNotFoundError()
        return copy.deepcopy(self.docs[channel_id])

    def delete(self, channel_id):
        if self.fail_delete:
            raise StoreError("delete failed")
        if self.docs.pop(channel_id, None) is None:
            raise ChannelNotFoundError()

    def list(self):
        return [copy.deepcopy(c) for c in self.docs.values()]


class FakeSystemd:
    def __init__(self):
        self.calls = []
        self.configs = []
        self.failing = set()

    def _do(self, op, name):
        self.calls.append((op, name))
        if op in self.failing:
            raise SystemdError(f"{op} failed")

    def commit_service(self, cfg):
        self.configs.append(cfg)
        self._do("commit", cfg.service_name)

    def restart_service(self, name):
        self._do("restart", name)

    def enable_service(self, name):
        self._do("enable", name)

    def disable_service(self, name):
        self._do("disable", name)


def make_channel(enabled=False, channel_id=0):
    return ZmuxChannel(
        id=channel_id,
        name="demo",
        input=ZmuxChannelInput(url="udp://239.0.0.1:1234", probesize=5000000, timeout=3000000),
        output=ZmuxChannelOutput(url="udp://239.0.0.2:5000", pkt_size=1316,
                                 map_video=True, map_audio=True, map_data=True),
        enabled=enabled,
        restart_sec=3,
    )


@pytest.fixture
def env():
    repo, systemd = FakeRepo(), FakeSystemd()
    return ChannelService(repo=repo, systemd=systemd), repo, systemd


def stored(repo, svc, enabled):
    ch = make_channel(enabled=enabled, channel_id=repo.generate_id())
    repo.docs[ch.id] = copy.deepcopy(ch)
    return ch


def test_create_disabled_persists_without_systemd(env):
    svc, repo, systemd = env
    ch = svc.create_channel(make_channel(enabled=False))
    assert ch.id == 1
    assert repo.get(1) == ch
    assert systemd.calls == []


def test_create_enabled_commits_then_enables(env):
    svc, repo, systemd = env
    ch = svc.create_channel(make_channel(enabled=True))
    name = f"zmux-channel-{ch.id}"
    assert systemd.calls == [("commit", name), ("enable", name)]
    cfg = systemd.configs[0]
    assert cfg.exec_start == build_remux_exec_start(ch)
    assert cfg.restart_sec == str(ch.restart_sec)
    assert repo.get(ch.id).enabled is True


def test_create_commit_failure_stores_nothing(env):
    svc, repo, systemd = env
    systemd.failing.add("commit")
    with pytest.raises(SystemdError, match="commit systemd service"):
        svc.create_channel(make_channel(enabled=True))
    assert repo.docs == {}
    assert [op for op, _ in systemd.calls] == ["commit"]


def test_create_enable_failure_stores_nothing(env):
    svc, repo, systemd = env
    systemd.failing.add("enable")
    with pytest.raises(SystemdError, match="enable channel"):
        svc.create_channel(make_channel(enabled=True))
    assert repo.docs == {}


def test_create_set_failure_rolls_back(env):
    svc, repo, systemd = env
    repo.fail_set = True
    with pytest.raises(StoreError):
        svc.create_channel(make_channel(enabled=True))
    assert [op for op, _ in systemd.calls] == ["commit", "enable", "disable"]


def test_get_missing_raises(env):
    svc, _, _ = env
    with pytest.raises(ChannelNotFoundError):
        svc.get_channel(42)


def test_channel_exists_and_list(env):
    svc, repo, _ = env
    ch = svc.create_channel(make_channel())
    assert svc.channel_exists(ch.id) is True
    assert svc.channel_exists(ch.id + 1) is False
    assert svc.list_channels() == [ch]


def test_update_disabled_to_enabled(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=False)
    ch.enabled = True
    svc.update_channel(ch)
    assert [op for op, _ in systemd.calls] == ["commit", "enable"]
    assert repo.get(ch.id).enabled is True


def test_update_enabled_restarts(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    ch.restart_sec = 7
    svc.update_channel(ch)
    assert [op for op, _ in systemd.calls] == ["commit", "restart"]
    assert repo.get(ch.id).restart_sec == 7


def test_update_enabled_to_disabled(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    ch.enabled = False
    svc.update_channel(ch)
    assert [op for op, _ in systemd.calls] == ["disable"]
    assert repo.get(ch.id).enabled is False


def test_update_missing_raises(env):
    svc, _, systemd = env
    with pytest.raises(ChannelNotFoundError):
        svc.update_channel(make_channel(enabled=True, channel_id=9))
    assert systemd.calls == []


def test_update_set_failure_does_not_roll_back(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=False)
    ch.enabled = True
    repo.fail_set = True
    with pytest.raises(StoreError):
        svc.update_channel(ch)
    assert [op for op, _ in systemd.calls] == ["commit", "enable"]
    assert repo.docs[ch.id].enabled is False


def test_delete_enabled_disables_and_removes(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    svc.delete_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["disable"]
    assert svc.channel_exists(ch.id) is False


def test_delete_failure_reenables(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    repo.fail_delete = True
    with pytest.raises(StoreError):
        svc.delete_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["disable", "enable"]
    assert repo.exists(ch.id) is True


def test_delete_disable_failure_keeps_record(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    systemd.failing.add("disable")
    with pytest.raises(SystemdError, match="disable channel"):
        svc.delete_channel(ch.id)
    assert repo.exists(ch.id) is True


def test_delete_missing_raises(env):
    svc, _, _ = env
    with pytest.raises(ChannelNotFoundError):
        svc.delete_channel(5)


def test_enable_is_idempotent(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=False)
    svc.enable_channel(ch.id)
    svc.enable_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["enable"]
    assert repo.get(ch.id).enabled is True


def test_enable_set_failure_rolls_back(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=False)
    repo.fail_set = True
    with pytest.raises(StoreError):
        svc.enable_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["enable", "disable"]
    assert repo.docs[ch.id].enabled is False


def test_disable_is_idempotent(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    svc.disable_channel(ch.id)
    svc.disable_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["disable"]
    assert repo.get(ch.id).enabled is False


def test_disable_set_failure_rolls_back(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=True)
    repo.fail_set = True
    with pytest.raises(StoreError):
        svc.disable_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["disable", "enable"]
    assert repo.docs[ch.id].enabled is True


def test_rollback_failure_does_not_mask_primary_error(env):
    svc, repo, systemd = env
    ch = stored(repo, svc, enabled=False)
    repo.fail_set = True
    systemd.failing.add("disable")
    with pytest.raises(StoreError):
        svc.enable_channel(ch.id)
    assert [op for op, _ in systemd.calls] == ["enable", "disable"]