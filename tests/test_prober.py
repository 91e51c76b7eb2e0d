import asyncio

import pytest

from ip_sweeper.config import ProbeStatus
from ip_sweeper.errors import SweepError
from ip_sweeper.prober import (
    FakeProber,
    ProbeTask,
    SystemPingProber,
    TaskState,
    parse_ping_output,
)

LINUX_REPLY = """PING 192.168.1.1 (192.168.1.1) 56(84) bytes of data.
64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=0.512 ms

--- 192.168.1.1 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
rtt min/avg/max/mdev = 0.512/0.512/0.512/0.000 ms
"""

LINUX_NO_REPLY = """PING 192.168.1.2 (192.168.1.2) 56(84) bytes of data.

--- 192.168.1.2 ping statistics ---
1 packets transmitted, 0 received, 100% packet loss, time 0ms
"""

LINUX_UNREACHABLE = """PING 192.168.1.3 (192.168.1.3) 56(84) bytes of data.
From 192.168.1.10 icmp_seq=1 Destination Host Unreachable

--- 192.168.1.3 ping statistics ---
1 packets transmitted, 0 received, +1 errors, 100% packet loss, time 0ms
"""

WINDOWS_REPLY = """
Pinging 10.0.0.1 with 32 bytes of data:
Reply from 10.0.0.1: bytes=32 time=2ms TTL=128

Ping statistics for 10.0.0.1:
    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),
"""

WINDOWS_FAST_REPLY = "Reply from 10.0.0.1: bytes=32 time<1ms TTL=128"

WINDOWS_RU_REPLY = "Ответ от 10.0.0.1: число байт=32 время=3мс TTL=127"


def test_parse_linux_reply_reports_payload_size():
    status, size, ttl, rtt, detail = parse_ping_output(LINUX_REPLY, 0)
    assert status is ProbeStatus.SUCCESS
    assert (size, ttl, rtt) == (56, 64, 1)
    assert detail is None


def test_parse_linux_no_reply_is_timeout():
    status, size, ttl, rtt, _ = parse_ping_output(LINUX_NO_REPLY, 1)
    assert status is ProbeStatus.TIMEOUT
    assert (size, ttl, rtt) == (None, None, None)


def test_parse_unreachable_is_failure():
    status, _, _, _, detail = parse_ping_output(LINUX_UNREACHABLE, 1)
    assert status is ProbeStatus.FAILURE
    assert "unreachable" in detail


def test_parse_windows_reply():
    assert parse_ping_output(WINDOWS_REPLY, 0)[:4] == (ProbeStatus.SUCCESS, 32, 128, 2)


def test_parse_windows_sub_millisecond_reply():
    assert parse_ping_output(WINDOWS_FAST_REPLY, 0)[:4] == (ProbeStatus.SUCCESS, 32, 128, 0)


def test_parse_windows_russian_locale():
    assert parse_ping_output(WINDOWS_RU_REPLY, 0)[:4] == (ProbeStatus.SUCCESS, 32, 127, 3)


def test_parse_command_error_is_failure():
    status, _, _, _, detail = parse_ping_output("ping: bad timeout value\n", 2)
    assert status is ProbeStatus.FAILURE
    assert detail == "ping: bad timeout value"


def test_task_lifecycle_moves_forward_only():
    task = ProbeTask(address="10.0.0.1")
    assert task.state is TaskState.CREATED
    assert task.timeout_ms == 2000

    task.advance(TaskState.SUBMITTED)
    task.advance(TaskState.PENDING)
    task.advance(TaskState.RESOLVED)

    with pytest.raises(SweepError):
        task.advance(TaskState.PENDING)


def test_tokens_are_unique():
    tokens = {ProbeTask(address="10.0.0.1").token for _ in range(100)}
    assert len(tokens) == 100


def test_ping_command_per_platform():
    task = ProbeTask(address="10.0.0.1", timeout_ms=2000)
    prober = SystemPingProber()

    prober.system = "linux"
    assert prober._build_ping_command(task) == ['ping', '-n', '-c', '1', '-W', '2', '10.0.0.1']
    prober.system = "windows"
    assert prober._build_ping_command(task) == ['ping', '-n', '1', '-w', '2000', '10.0.0.1']
    prober.system = "darwin"
    assert prober._build_ping_command(task)[-3:] == ['-W', '2000', '10.0.0.1']


def test_system_prober_reports_missing_binary_as_failure(monkeypatch):
    async def missing(*_args, **_kwargs):
        raise FileNotFoundError("ping")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", missing)
    outcome = asyncio.run(SystemPingProber().probe(ProbeTask(address="10.0.0.1")))

    assert outcome.status is ProbeStatus.FAILURE
    assert outcome.address == "10.0.0.1"


def test_fake_prober_scripted_and_default():
    prober = FakeProber(script={"10.0.0.1": {"status": "success", "bytes": 32, "ttl": 128, "rtt_ms": 4}})

    ok = asyncio.run(prober.probe(ProbeTask(address="10.0.0.1")))
    silent = asyncio.run(prober.probe(ProbeTask(address="10.0.0.2")))

    assert ok.status is ProbeStatus.SUCCESS
    assert (ok.bytes, ok.ttl, ok.rtt_ms) == (32, 128, 4)
    assert silent.status is ProbeStatus.TIMEOUT
    assert prober.calls == ["10.0.0.1", "10.0.0.2"]
