from __future__ import annotations

from enum import Enum

from uptime_monitor.probe import ProbeOutcome


HEALTHY_STATUS_CODES = frozenset({200, 301, 302})


class Classification(str, Enum):
    OK = "ok"
    ERROR = "error"
    UNEXPECTED = "unexpected"
    CONNECTION_FAILURE = "connection_failure"

    @property
    def should_alert(self) -> bool:
        return self in (Classification.ERROR, Classification.CONNECTION_FAILURE)


def classify(outcome: ProbeOutcome) -> Classification:
    # Only 200/301/302 count as healthy; other 2xx/3xx are UNEXPECTED.
    status = outcome.status_code
    if status is None:
        return Classification.CONNECTION_FAILURE
    if status in HEALTHY_STATUS_CODES:
        return Classification.OK
    if 400 <= status < 600:
        return Classification.ERROR
    return Classification.UNEXPECTED
