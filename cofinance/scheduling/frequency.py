"""
Frequency Model

Pure date arithmetic for subscription recurrence:

    monthly  -> +1 calendar month
    weekly   -> +7 days
    yearly   -> +1 calendar year
    custom   -> +interval_days days

CALENDAR POLICY: month and year steps keep the day-of-month when the
target month has it and clamp to the target month's last day otherwise
(Jan 31 -> Feb 29 in 2024, Feb 28 in 2023; Feb 29 -> Feb 28 in a
non-leap year). This is exactly what dateutil's relativedelta does, so
we rely on it instead of hand-rolling month lengths.

Time of day is preserved, and a `date` in gives a `date` out.
"""

from datetime import date, datetime
from typing import Optional, TypeVar, Union

from dateutil.relativedelta import relativedelta

from cofinance.ledger.errors import InvalidIntervalError
from cofinance.models.ledger import SubscriptionFrequency


D = TypeVar("D", date, datetime)

# Labels used by records created with the original (Spanish) app
LEGACY_LABELS = {
    "mensual": SubscriptionFrequency.MONTHLY,
    "semanal": SubscriptionFrequency.WEEKLY,
    "anual": SubscriptionFrequency.YEARLY,
    "personalizado": SubscriptionFrequency.CUSTOM,
}


def step_for(
    frequency: SubscriptionFrequency,
    interval_days: Optional[int] = None,
) -> relativedelta:
    """
    Return the calendar step for one cycle of `frequency`.

    Raises:
        InvalidIntervalError: custom frequency with interval_days < 1
    """
    if frequency == SubscriptionFrequency.MONTHLY:
        return relativedelta(months=1)
    if frequency == SubscriptionFrequency.WEEKLY:
        return relativedelta(days=7)
    if frequency == SubscriptionFrequency.YEARLY:
        return relativedelta(years=1)
    if frequency == SubscriptionFrequency.CUSTOM:
        if interval_days is None or interval_days < 1:
            raise InvalidIntervalError(interval_days)
        return relativedelta(days=interval_days)
    raise ValueError(f"Unknown subscription frequency: {frequency!r}")


def next_occurrence(
    after: D,
    frequency: SubscriptionFrequency,
    interval_days: Optional[int] = None,
) -> D:
    """
    Compute the next occurrence after `after`.

    Deterministic and side-effect free: the same inputs always give the
    same output.

    Args:
        after: Reference date (usually the current next charge date)
        frequency: Recurrence cycle
        interval_days: Cycle length in days, required for CUSTOM

    Returns:
        The rolled-forward date, same type as `after`

    Raises:
        InvalidIntervalError: CUSTOM with interval_days < 1. Validated
            Subscription models can never trigger this.
    """
    return after + step_for(frequency, interval_days)


def occurrences(
    start: D,
    frequency: SubscriptionFrequency,
    count: int,
    interval_days: Optional[int] = None,
) -> list[D]:
    """
    The next `count` occurrences after `start`, each rolled from the previous.

    Rolling from the previous date (not from `start`) mirrors how charges
    advance one at a time, so a monthly cycle that clamps to Feb 28 keeps
    the 28th afterwards.
    """
    dates = []
    current = start
    for _ in range(count):
        current = next_occurrence(current, frequency, interval_days)
        dates.append(current)
    return dates


def coerce_interval_days(interval_days: Optional[int]) -> int:
    """
    Legacy coercion: anything below 1 day becomes 1 day.

    The original app applied this silently inside the date math. We only
    use it when importing old records; new input is rejected instead.
    """
    if interval_days is None:
        return 1
    return max(1, interval_days)


def frequency_from_label(label: Union[str, SubscriptionFrequency, None]) -> SubscriptionFrequency:
    """
    Decode a stored frequency label.

    Accepts canonical values ("monthly") and the original app's labels
    ("Mensual"). Unknown or empty labels decode as MONTHLY, matching how
    old records were read back.
    """
    if isinstance(label, SubscriptionFrequency):
        return label
    if not label:
        return SubscriptionFrequency.MONTHLY

    normalized = label.strip().lower()
    try:
        return SubscriptionFrequency(normalized)
    except ValueError:
        return LEGACY_LABELS.get(normalized, SubscriptionFrequency.MONTHLY)
