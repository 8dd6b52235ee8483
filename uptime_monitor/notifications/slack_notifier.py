"""Slack notification system for uptime alerts."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from uptime_monitor.config import is_placeholder_webhook
from uptime_monitor.notifications.alerts import AlertEvent, NotifyOutcome
from uptime_monitor.probe import describe_error

logger = structlog.get_logger(__name__)


def build_slack_payload(event: AlertEvent) -> dict[str, Any]:
    """Format an alert as a Slack incoming-webhook message."""
    fields: list[dict[str, Any]] = [
        {"title": "Domain", "value": event.domain, "short": True},
        {"title": "Status", "value": event.status_text, "short": True},
        {"title": "Time", "value": event.timestamp.isoformat(), "short": True},
    ]
    if event.failure_reason:
        fields.append({"title": "Error", "value": event.failure_reason, "short": False})

    return {
        "text": "🚨 Uptime Alert",
        "attachments": [
            {
                "color": "danger",
                "fields": fields,
            }
        ],
    }


def redact_webhook_url(url: str | None) -> str:
    # The path of a Slack webhook is the secret.
    s = (url or "").strip()
    try:
        parts = urlsplit(s)
    except ValueError:
        return "<redacted>"
    if not parts.scheme or not parts.netloc:
        return "<redacted>"
    return f"{parts.scheme}://{parts.netloc}/<redacted>"


class SlackNotifier:
    """Sends uptime alerts to a Slack incoming webhook."""

    def __init__(
        self,
        webhook_url: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        """Initialize Slack notifier.

        Args:
            webhook_url: Slack incoming webhook URL; None or placeholder disables sending
            client: Shared HTTP client (a private one is opened per send otherwise)
            timeout: Upper bound in seconds for a single delivery
        """
        self.webhook_url = (webhook_url or "").strip() or None
        self.client = client
        self.timeout = timeout

        if self.is_configured():
            logger.info("Slack notifier initialized", webhook=redact_webhook_url(self.webhook_url))
        else:
            logger.warning("Slack webhook not configured, alerts will only be logged")

    def is_configured(self) -> bool:
        return not is_placeholder_webhook(self.webhook_url)

    async def notify(self, event: AlertEvent) -> NotifyOutcome:
        """Deliver one alert.

        Returns:
            SENT on a 2xx reply, SUPPRESSED when unconfigured, SEND_FAILED otherwise
        """
        if not self.is_configured():
            logger.info("Slack webhook not configured, skipping notification", domain=event.domain)
            return NotifyOutcome.SUPPRESSED

        payload = build_slack_payload(event)
        try:
            # httpx timeouts apply per connect/read/write; bound the whole delivery too.
            resp = await asyncio.wait_for(self._post(payload), timeout=self.timeout)
            resp.raise_for_status()
        except asyncio.TimeoutError:
            logger.error(
                "Failed to send Slack alert",
                domain=event.domain,
                error=f"timeout after {self.timeout:g}s",
                webhook=redact_webhook_url(self.webhook_url),
            )
            return NotifyOutcome.SEND_FAILED
        except httpx.HTTPStatusError as e:
            logger.error(
                "Failed to send Slack alert",
                domain=event.domain,
                status_code=e.response.status_code,
                webhook=redact_webhook_url(self.webhook_url),
            )
            return NotifyOutcome.SEND_FAILED
        except httpx.HTTPError as e:
            logger.error(
                "Failed to send Slack alert",
                domain=event.domain,
                error=_scrub(describe_error(e), self.webhook_url),
                webhook=redact_webhook_url(self.webhook_url),
            )
            return NotifyOutcome.SEND_FAILED

        logger.info("Slack alert sent", domain=event.domain)
        return NotifyOutcome.SENT

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.webhook_url, json=payload, timeout=self.timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(self.webhook_url, json=payload, timeout=self.timeout)


def _scrub(message: str, webhook_url: str | None) -> str:
    if webhook_url:
        return message.replace(webhook_url, redact_webhook_url(webhook_url))
    return message
