import asyncio

import pytest

from ip_sweeper.collector import CompletionCollector, SweepState, DEFAULT_POLL_INTERVAL
from ip_sweeper.config import ProbeStatus
from ip_sweeper.errors import CollectorDesyncError
from ip_sweeper.prober import ProbeTask, TaskState


def _submitted_tasks(collector, state, addresses):
    tasks = []
    for address in addresses:
        task = ProbeTask(address=address)
        collector.register(task)
        task.advance(TaskState.SUBMITTED)
        task.advance(TaskState.PENDING)
        state.mark_submitted()
        tasks.append(task)
    collector.submission_finished()
    return tasks


def test_state_counters():
    state = SweepState(total=2)
    state.mark_submitted()
    state.mark_submitted()
    state.mark_collected()
    assert state.pending == 1
    assert not state.is_complete
    state.mark_collected()
    assert state.is_complete


def test_state_rejects_more_collected_than_submitted():
    state = SweepState(total=1)
    with pytest.raises(CollectorDesyncError):
        state.mark_collected()


def test_state_rejects_more_submitted_than_total():
    state = SweepState(total=1)
    state.mark_submitted()
    with pytest.raises(CollectorDesyncError):
        state.mark_submitted()


def test_desync_error_is_an_assertion():
    assert issubclass(CollectorDesyncError, AssertionError)


def test_out_of_order_completion():
    """Результаты принимаются независимо от порядка отправки"""
    async def scenario():
        state = SweepState(total=3)
        seen = []
        collector = CompletionCollector(state, on_complete=lambda s: seen.append(s.collected))
        tasks = _submitted_tasks(collector, state, ["10.0.0.1", "10.0.0.2", "10.0.0.3"])

        for task in reversed(tasks):
            collector.complete(task.outcome(ProbeStatus.TIMEOUT))

        await asyncio.wait_for(collector.wait(), timeout=1)
        return collector, tasks, seen

    collector, tasks, seen = asyncio.run(scenario())

    assert seen == [1, 2, 3]
    assert {o.address for o in collector.outcomes()} == {"10.0.0.1", "10.0.0.2", "10.0.0.3"}
    assert all(t.state is TaskState.RESOLVED for t in tasks)


def test_wait_blocks_until_all_resolved():
    async def scenario():
        state = SweepState(total=2)
        collector = CompletionCollector(state)
        first, second = _submitted_tasks(collector, state, ["10.0.0.1", "10.0.0.2"])

        collector.complete(first.outcome(ProbeStatus.SUCCESS, bytes=32, ttl=64, rtt_ms=1))
        waiter = asyncio.ensure_future(collector.wait())
        await asyncio.sleep(0.02)
        still_waiting = not waiter.done()

        collector.complete(second.outcome(ProbeStatus.FAILURE, detail="unreachable"))
        await asyncio.wait_for(waiter, timeout=1)
        return still_waiting

    assert asyncio.run(scenario()) is True


def test_polling_wait():
    async def scenario():
        state = SweepState(total=1)
        collector = CompletionCollector(state)
        (task,) = _submitted_tasks(collector, state, ["10.0.0.1"])
        asyncio.get_running_loop().call_later(0.03, collector.complete, task.outcome(ProbeStatus.TIMEOUT))
        await asyncio.wait_for(collector.wait(poll=True), timeout=1)
        return len(collector)

    assert asyncio.run(scenario()) == 1
    assert DEFAULT_POLL_INTERVAL == 0.01


def test_empty_sweep_is_complete_immediately():
    async def scenario():
        collector = CompletionCollector(SweepState(total=0))
        await asyncio.wait_for(collector.wait(), timeout=1)
        return collector.outcomes()

    assert asyncio.run(scenario()) == []


def test_unknown_token_fails_loudly():
    async def scenario():
        state = SweepState(total=1)
        collector = CompletionCollector(state)
        _submitted_tasks(collector, state, ["10.0.0.1"])
        stranger = ProbeTask(address="10.0.0.9")
        collector.complete(stranger.outcome(ProbeStatus.TIMEOUT))

    with pytest.raises(CollectorDesyncError):
        asyncio.run(scenario())


def test_duplicate_completion_fails_loudly():
    async def scenario():
        state = SweepState(total=1)
        collector = CompletionCollector(state)
        (task,) = _submitted_tasks(collector, state, ["10.0.0.1"])
        collector.complete(task.outcome(ProbeStatus.TIMEOUT))
        collector.complete(task.outcome(ProbeStatus.SUCCESS))

    with pytest.raises(CollectorDesyncError):
        asyncio.run(scenario())
