"""Check cycle orchestration: probe every domain, classify, alert."""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import structlog

from ..classifier import Classification, classify
from ..config import MonitorConfig
from ..notifications.alerts import AlertEvent, Notifier, NotifyOutcome
from ..probe import Probe, ProbeOutcome, describe_error


logger = structlog.get_logger(__name__)


class CycleGuard:
    """Single-flight flag shared by every trigger of the check cycle."""

    def __init__(self):
        self._lock = threading.Lock()
        self.run_in_progress = False

    def try_acquire(self) -> bool:
        with self._lock:
            if self.run_in_progress:
                return False
            self.run_in_progress = True
            return True

    def release(self):
        with self._lock:
            self.run_in_progress = False


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: List[Tuple[ProbeOutcome, Classification]] = field(default_factory=list)
    notifications: Dict[str, NotifyOutcome] = field(default_factory=dict)

    @property
    def alerted(self) -> bool:
        return any(classification.should_alert for _, classification in self.results)


class CheckCycle:
    """Runs one uptime pass over all configured domains."""

    def __init__(
        self,
        config: MonitorConfig,
        probe: Probe,
        notifier: Notifier,
        guard: Optional[CycleGuard] = None,
    ):
        self.config = config
        self.probe = probe
        self.notifier = notifier
        self.guard = guard or CycleGuard()

    async def run(self) -> Optional[CycleReport]:
        """Execute a cycle unless one is already in progress.

        Returns the cycle report, or None when the run was skipped. Never raises.
        """
        if not self.guard.try_acquire():
            logger.info("Check already running, skipping")
            return None

        report = CycleReport(started_at=datetime.now(timezone.utc))
        try:
            await self._run_checks(report)
        except Exception as e:
            logger.exception("Check cycle crashed", error=describe_error(e))
        finally:
            report.finished_at = datetime.now(timezone.utc)
            self.guard.release()

        return report

    async def _run_checks(self, report: CycleReport):
        domains = list(self.config.domains)
        logger.info("Starting uptime check", domain_count=len(domains))

        tasks = [asyncio.create_task(self._safe_probe(url)) for url in domains]
        outcomes = await asyncio.gather(*tasks)

        for outcome in outcomes:
            classification = classify(outcome)
            report.results.append((outcome, classification))
            self._log_result(outcome, classification)

            if classification.should_alert:
                event = AlertEvent.from_outcome(outcome)
                report.notifications[outcome.domain] = await self._safe_notify(event)

        counts = {c.value: 0 for c in Classification}
        for _, classification in report.results:
            counts[classification.value] += 1
        logger.info("Uptime check completed", **counts)

    async def _safe_probe(self, url: str) -> ProbeOutcome:
        try:
            return await self.probe.probe(url, self.config.probe_timeout_seconds)
        except Exception as e:
            err = describe_error(e)
            logger.exception("Domain probe crashed", domain=url, error=err)
            return ProbeOutcome(domain=url, failure_reason=err)

    async def _safe_notify(self, event: AlertEvent) -> NotifyOutcome:
        try:
            return await self.notifier.notify(event)
        except Exception as e:
            logger.exception("Notifier crashed", domain=event.domain, error=describe_error(e))
            return NotifyOutcome.SEND_FAILED

    @staticmethod
    def _log_result(outcome: ProbeOutcome, classification: Classification):
        if classification is Classification.OK:
            logger.info("Domain OK", domain=outcome.domain, status_code=outcome.status_code)
        elif classification is Classification.ERROR:
            logger.error("Domain returned error status", domain=outcome.domain, status_code=outcome.status_code)
        elif classification is Classification.CONNECTION_FAILURE:
            logger.error("Domain connection error", domain=outcome.domain, error=outcome.failure_reason)
        else:
            logger.warning(
                "Domain returned unexpected status", domain=outcome.domain, status_code=outcome.status_code
            )
