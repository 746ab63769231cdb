"""Build, send and commit: the full statistics submission."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from cloudstats.config import SENT_ID_KEY, SENT_TIME_KEY, EXPIRATION
from cloudstats.errors import RetrievalError
from cloudstats.models import UpgradeAdvisory
from cloudstats.telemetry.gate import should_send
from cloudstats.telemetry.report import build_report
from cloudstats.telemetry.transport import SecureTransport

logger = logging.getLogger(__name__)


def check_stats_to_send(store, now: datetime | None = None, expiration=EXPIRATION) -> bool:
    """True when the last successful send is older than the expiration window.

    An unreadable sent time counts as never sent.
    """
    try:
        last_sent = store.get_time_value(SENT_TIME_KEY)
    except RetrievalError as e:
        logger.warning("Cannot read last send time, treating as never sent: %s", e)
        last_sent = None
    return should_send(last_sent, now=now, expiration=expiration)


def send_stats(
    store,
    infra,
    access,
    public_key,
    transport: SecureTransport | None = None,
    now: datetime | None = None,
) -> UpgradeAdvisory | None:
    """Send the statistics gathered since the last successful send.

    Callers must not run two send_stats() against the same store at once:
    both would read and then clear the same history.

    Nothing is written to the store unless the collector accepted the
    report. The commit steps run in order and are not rolled back if a later
    one fails: resending already-cleared data is fine, losing unsent data
    is not.
    """
    transport = transport or SecureTransport()

    watermark = store.get_int_value(SENT_ID_KEY)
    report, new_watermark = build_report(store, infra, access, watermark, now=now)

    advisory = transport.send(report, public_key)
    logger.debug("Report accepted by collector, committing watermark %d", new_watermark)

    if new_watermark > watermark:
        store.set_int_value(SENT_ID_KEY, new_watermark)
    store.set_time_value(SENT_TIME_KEY, now or datetime.now(timezone.utc))
    store.delete_logs()
    store.delete_history()
    return advisory
