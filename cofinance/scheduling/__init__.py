"""Subscription scheduling package."""

from cofinance.scheduling.frequency import (
    coerce_interval_days,
    frequency_from_label,
    next_occurrence,
    occurrences,
)
from cofinance.scheduling.scheduler import SubscriptionScheduler, days_between

__all__ = [
    "SubscriptionScheduler",
    "coerce_interval_days",
    "days_between",
    "frequency_from_label",
    "next_occurrence",
    "occurrences",
]
