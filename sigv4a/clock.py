from datetime import datetime, timezone
from typing import Callable, Tuple

Clock = Callable[[], datetime]

LONG_DATE_FORMAT = '%Y%m%dT%H%M%SZ'
SHORT_DATE_FORMAT = '%Y%m%d'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def signing_instant(now: datetime) -> datetime:
    """Floor ``now`` to the start of its minute, in UTC.

    Every signature produced within the same minute carries the same
    timestamp. Naive datetimes are taken to already be UTC.
    """
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.replace(second=0, microsecond=0)


def format_signing_dates(now: datetime) -> Tuple[str, str]:
    """Return ``(long_date, short_date)`` for the minute containing ``now``."""
    instant = signing_instant(now)
    return instant.strftime(LONG_DATE_FORMAT), instant.strftime(SHORT_DATE_FORMAT)
