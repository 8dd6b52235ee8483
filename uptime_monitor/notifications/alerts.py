"""Alert events handed from the check cycle to a notifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol
from urllib.parse import urlsplit

from uptime_monitor.probe import ProbeOutcome


class NotifyOutcome(str, Enum):
    SENT = "sent"
    SUPPRESSED = "suppressed"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class AlertEvent:
    domain: str
    url: str
    status_code: int | None = None
    failure_reason: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_outcome(cls, outcome: ProbeOutcome) -> "AlertEvent":
        return cls(
            domain=display_domain(outcome.domain),
            url=outcome.domain,
            status_code=outcome.status_code,
            failure_reason=outcome.failure_reason,
        )

    @property
    def status_text(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}"
        return "Connection Error"


class Notifier(Protocol):
    async def notify(self, event: AlertEvent) -> NotifyOutcome: ...


def display_domain(url: str) -> str:
    """Host part of a URL, or the input unchanged when it has none."""
    s = (url or "").strip()
    try:
        host = urlsplit(s).hostname
    except ValueError:
        host = None
    return host or s
