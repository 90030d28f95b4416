"""
Due-computation engine for medication schedules.

Decides whether a dose is due at a given instant from a schedule's
frequency and reminder times. Everything here is pure: no I/O, no clock
reads, no hidden state, so repeated calls with the same inputs agree.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Union

from app.schemas.schedule import FrequencyType

DEFAULT_DUE_WINDOW = timedelta(minutes=30)


@dataclass(frozen=True)
class Daily:
    pass


@dataclass(frozen=True)
class Weekly:
    days: frozenset[int]  # 0 = Sunday ... 6 = Saturday


@dataclass(frozen=True)
class Monthly:
    day: int


@dataclass(frozen=True)
class AsNeeded:
    pass


Recurrence = Union[Daily, Weekly, Monthly, AsNeeded]


def recurrence_from_frequency(frequency: Any) -> Optional[Recurrence]:
    """
    Map a stored frequency row to its recurrence variant.

    Returns None for missing or unrecognized data, including a weekly row
    without days or a monthly row without a day.
    """
    if frequency is None:
        return None

    frequency_type = frequency.frequency_type
    if frequency_type == FrequencyType.DAILY.value:
        return Daily()
    if frequency_type == FrequencyType.WEEKLY.value:
        if not frequency.days_of_week:
            return None
        return Weekly(frozenset(int(day) for day in frequency.days_of_week))
    if frequency_type == FrequencyType.MONTHLY.value:
        if frequency.day_of_month is None:
            return None
        return Monthly(int(frequency.day_of_month))
    if frequency_type == FrequencyType.AS_NEEDED.value:
        return AsNeeded()
    return None


def sunday_based_weekday(moment: datetime) -> int:
    """Day of week with 0 = Sunday, matching stored ``days_of_week``."""
    return (moment.weekday() + 1) % 7


def is_active_on(recurrence: Recurrence, moment: datetime) -> bool:
    """Whether the recurrence puts doses on ``moment``'s calendar day."""
    if isinstance(recurrence, Daily):
        return True
    if isinstance(recurrence, Weekly):
        return sunday_based_weekday(moment) in recurrence.days
    if isinstance(recurrence, Monthly):
        return moment.day == recurrence.day
    # AsNeeded is only ever logged on demand
    return False


def reminder_instant(reminder: Any, now: datetime) -> datetime:
    """Today's occurrence of a reminder's wall-clock time, in ``now``'s zone."""
    return now.replace(hour=reminder.hour, minute=reminder.minute, second=0, microsecond=0)


def is_due(
    schedule: Any,
    frequency: Any,
    reminder_times: Iterable[Any],
    now: datetime,
    window: timedelta = DEFAULT_DUE_WINDOW
) -> bool:
    """
    Decide whether a dose is due at ``now``.

    A schedule is due when its recurrence is active on ``now``'s day and
    some reminder time, placed on that same day, lies within ``window`` of
    ``now`` (inclusive, either side). There is no wraparound across
    midnight: a 00:05 reminder is not due at 23:50.

    ``schedule`` is accepted for call-site symmetry; its start and end dates
    are not consulted.

    Args:
        schedule: The schedule row.
        frequency: Its frequency row, or None.
        reminder_times: Objects exposing ``hour`` and ``minute``.
        now: Reference instant in the user's wall-clock time.
        window: Half-width of the acceptance window.

    Returns:
        True if due, False otherwise (including unknown frequency data).
    """
    recurrence = recurrence_from_frequency(frequency)
    if recurrence is None or not is_active_on(recurrence, now):
        return False

    return any(
        abs(now - reminder_instant(reminder, now)) <= window
        for reminder in reminder_times
    )
