"""Scheduler module for orchestrating uptime check cycles."""

from .check_cycle import CheckCycle, CycleGuard, CycleReport
from .job_scheduler import MonitorScheduler

__all__ = ["CheckCycle", "CycleGuard", "CycleReport", "MonitorScheduler"]
