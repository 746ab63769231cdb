"""Assemble one StatsReport from the store and the two resource graphs."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from cloudstats import __version__
from cloudstats.config import ANONYMOUS_ID_KEY, SECONDARY_ID_KEY, current_build_info
from cloudstats.models import AccessMetrics, BuildInfo, InfraMetrics, StatsReport
from cloudstats.telemetry.commands import aggregate_commands
from cloudstats.telemetry.instances import build_instance_stats
from cloudstats.telemetry.metrics import build_access_metrics, build_infra_metrics

logger = logging.getLogger(__name__)


def build_report(
    store,
    infra,
    access,
    since_watermark: int,
    now: datetime | None = None,
    version: str = __version__,
    build_info: BuildInfo | None = None,
) -> tuple[StatsReport, int]:
    """Build the report and the watermark to commit once it is sent.

    ``infra`` and ``access`` may be None, in which case their snapshots are
    zeroed. Any error aborts the whole build; no partial report is returned.
    """
    now = now or datetime.now(timezone.utc)

    history = store.get_history_since(since_watermark)
    commands, new_watermark = aggregate_commands(history, since_watermark)

    region = store.get_default_region()

    infra_metrics = InfraMetrics()
    instance_stats = []
    if infra is not None:
        infra_metrics = build_infra_metrics(region, infra, now)
        instance_stats = build_instance_stats(infra, now)

    access_metrics = AccessMetrics()
    if access is not None:
        access_metrics = build_access_metrics(region, access, now)

    report = StatsReport(
        anonymous_id=store.get_string_value(ANONYMOUS_ID_KEY),
        anonymous_secondary_id=store.get_string_value(SECONDARY_ID_KEY),
        version=version,
        build_info=build_info or current_build_info(),
        commands=tuple(commands),
        infra_metrics=infra_metrics,
        instance_stats=tuple(instance_stats),
        access_metrics=access_metrics,
        logs=tuple(store.get_all_logs()),
    )
    logger.debug(
        "Built report: %d daily commands, %d instance stats, %d logs, watermark %d -> %d",
        len(report.commands), len(report.instance_stats), len(report.logs),
        since_watermark, new_watermark,
    )
    return report, new_watermark
