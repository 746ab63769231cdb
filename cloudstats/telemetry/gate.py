"""Send cadence: at most one submission per expiration window."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from cloudstats.config import EXPIRATION

# A missing sent time counts as this instant, so it is always eligible.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def should_send(
    last_sent: datetime | None,
    now: datetime | None = None,
    expiration: timedelta = EXPIRATION,
) -> bool:
    if last_sent is None:
        last_sent = ZERO_TIME
    if last_sent.tzinfo is None:
        last_sent = last_sent.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - last_sent > expiration
