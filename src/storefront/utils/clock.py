"""Injectable clock.

Domain code asks ``now()`` for the current time instead of calling
``datetime.now`` directly, so review windows and order numbers can be
exercised at fixed instants in tests.
"""

from collections.abc import Callable
from datetime import UTC, datetime

_clock: Callable[[], datetime] | None = None


def now() -> datetime:
    """Current UTC time from the active clock."""
    if _clock is None:
        return datetime.now(UTC)
    return _clock()


def set_clock(clock: Callable[[], datetime]) -> None:
    """Replace the active clock with any zero-argument callable."""
    global _clock
    _clock = clock


def freeze(instant: datetime) -> None:
    """Pin the clock to a single instant."""
    set_clock(lambda: instant)


def reset_clock() -> None:
    global _clock
    _clock = None


def as_utc(value: datetime | None) -> datetime | None:
    """Read a stored datetime as UTC.

    SQL providers hand back naive datetimes for ``DateTime`` fields; they
    were written in UTC, so UTC is attached. Aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
