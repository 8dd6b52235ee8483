from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from structlog.testing import capture_logs

from uptime_monitor.config import MonitorConfig
from uptime_monitor.notifications import AlertEvent, NotifyOutcome
from uptime_monitor.probe import ProbeOutcome
from uptime_monitor.scheduler import CheckCycle, CycleGuard, MonitorScheduler
from uptime_monitor.scheduler.job_scheduler import CHECK_JOB_ID


class CountingCycle:
    def __init__(self) -> None:
        self.guard = CycleGuard()
        self.runs = 0

    async def run(self) -> None:
        self.runs += 1


@pytest.mark.asyncio
async def test_start_runs_first_cycle_immediately() -> None:
    cycle = CountingCycle()
    scheduler = MonitorScheduler(cycle, interval_minutes=60)
    scheduler.start()
    try:
        for _ in range(50):
            if cycle.runs:
                break
            await asyncio.sleep(0.05)
        assert cycle.runs == 1
    finally:
        scheduler.stop()


@pytest.mark.asyncio
async def test_job_registered_with_interval() -> None:
    scheduler = MonitorScheduler(CountingCycle(), interval_minutes=5)
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job(CHECK_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 300
        assert job.max_instances == 2
        assert job.coalesce is True
        status = scheduler.get_status()
        assert status["running"] is True
        assert status["interval_minutes"] == 5
        assert status["cycle_in_progress"] is False
    finally:
        scheduler.stop()
    assert scheduler.get_status()["running"] is False


@pytest.mark.asyncio
async def test_start_twice_is_harmless() -> None:
    scheduler = MonitorScheduler(CountingCycle(), interval_minutes=5)
    scheduler.start()
    try:
        scheduler.start()
        assert len(scheduler.scheduler.get_jobs()) == 1
    finally:
        scheduler.stop()


class BlockingProbe:
    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.calls: list[str] = []

    async def probe(self, url: str, timeout: float) -> ProbeOutcome:
        self.calls.append(url)
        await self.release.wait()
        return ProbeOutcome(domain=url, status_code=200)


class NullNotifier:
    async def notify(self, event: AlertEvent) -> NotifyOutcome:
        return NotifyOutcome.SENT


async def _wait_until(predicate, attempts: int = 100) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.02)


@pytest.mark.asyncio
async def test_tick_during_running_cycle_hits_guard() -> None:
    probe = BlockingProbe()
    config = MonitorConfig(domains=["https://slow.example"], check_interval_minutes=60)
    cycle = CheckCycle(config, probe, NullNotifier())
    scheduler = MonitorScheduler(cycle, interval_minutes=60)

    with capture_logs() as logs:
        scheduler.start()
        try:
            await _wait_until(lambda: probe.calls)
            assert cycle.guard.run_in_progress is True

            scheduler.scheduler.modify_job(CHECK_JOB_ID, next_run_time=datetime.now(timezone.utc))
            await _wait_until(lambda: any(e["event"] == "Check already running, skipping" for e in logs))

            probe.release.set()
            await _wait_until(lambda: not cycle.guard.run_in_progress)
        finally:
            scheduler.stop()

    assert any(e["event"] == "Check already running, skipping" for e in logs)
    assert probe.calls == ["https://slow.example"]
    assert sum(1 for e in logs if e["event"] == "Starting uptime check") == 1
    assert cycle.guard.run_in_progress is False


@pytest.mark.asyncio
async def test_run_once_bypasses_schedule() -> None:
    cycle = CountingCycle()
    scheduler = MonitorScheduler(cycle, interval_minutes=5)
    await scheduler.run_once()
    assert cycle.runs == 1


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        MonitorScheduler(CountingCycle(), interval_minutes=0)
