"""Recurring domain uptime checker with Slack alerts."""

__version__ = "0.1.0"
