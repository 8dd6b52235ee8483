"""Alert delivery for failed uptime checks."""

from .alerts import AlertEvent, Notifier, NotifyOutcome
from .slack_notifier import SlackNotifier, build_slack_payload

__all__ = ["AlertEvent", "Notifier", "NotifyOutcome", "SlackNotifier", "build_slack_payload"]
