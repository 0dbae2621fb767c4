from __future__ import annotations

import asyncio

import pytest

from nanorpc.rpc.scheduler import ExecutionScheduler


def _tracked_job(log: list[str], name: str, delay: float = 0.05):
    async def job():
        log.append(f"start:{name}")
        await asyncio.sleep(delay)
        log.append(f"end:{name}")
        return name

    return job


@pytest.mark.asyncio
async def test_queued_jobs_never_overlap_and_run_fifo():
    scheduler = ExecutionScheduler(queued=True)
    log: list[str] = []

    results = await asyncio.gather(
        *(scheduler.run_exclusive(_tracked_job(log, name)) for name in ("a", "b", "c"))
    )

    assert results == ["a", "b", "c"]
    assert log == ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"]


@pytest.mark.asyncio
async def test_unqueued_jobs_interleave():
    scheduler = ExecutionScheduler(queued=False)
    log: list[str] = []

    await asyncio.gather(scheduler.run_exclusive(_tracked_job(log, "a")), scheduler.run_exclusive(_tracked_job(log, "b")))

    assert log[:2] == ["start:a", "start:b"]


@pytest.mark.asyncio
async def test_failure_releases_queue():
    scheduler = ExecutionScheduler(queued=True)

    async def boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await scheduler.run_exclusive(boom)

    assert await asyncio.wait_for(scheduler.run_exclusive(lambda: 7), timeout=1) == 7
    assert scheduler.status() == {"queued": True, "running": 0, "waiting": 0}


@pytest.mark.asyncio
async def test_waiting_count_reflects_queue():
    scheduler = ExecutionScheduler(queued=True)
    gate = asyncio.Event()

    async def blocker():
        await gate.wait()

    first = asyncio.create_task(scheduler.run_exclusive(blocker))
    second = asyncio.create_task(scheduler.run_exclusive(lambda: None))
    await asyncio.sleep(0.01)

    assert scheduler.running == 1
    assert scheduler.waiting == 1
    gate.set()
    await asyncio.gather(first, second)
    assert scheduler.waiting == 0
