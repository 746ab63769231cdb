"""Instance property frequencies (instance types, image ids)."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone

from cloudstats.graph.models import ResourceType
from cloudstats.models import InstanceStat

logger = logging.getLogger(__name__)

# property name -> stat type label
TRACKED_PROPERTIES: list[tuple[str, str]] = [
    ("Type", "InstanceType"),
    ("ImageId", "ImageId"),
]


def _stats_for_property(infra, property_name: str, stat_type: str,
                        now: datetime) -> list[InstanceStat]:
    values: Counter = Counter()
    for instance in infra.get_all_resources(ResourceType.INSTANCE):
        # Raises SchemaViolationError on a non-string value
        value = instance.string_property(property_name)
        if value is not None:
            values[value] += 1
    return [
        InstanceStat(stat_type=stat_type, name=name, hits=hits, date=now)
        for name, hits in values.items()
    ]


def build_instance_stats(infra, now: datetime | None = None) -> list[InstanceStat]:
    """One InstanceStat per distinct value of each tracked property.

    Instances lacking a property are skipped for that property.
    """
    if infra is None:
        return []
    now = now or datetime.now(timezone.utc)
    stats: list[InstanceStat] = []
    for property_name, stat_type in TRACKED_PROPERTIES:
        stats.extend(_stats_for_property(infra, property_name, stat_type, now))
    logger.debug("Built %d instance stats", len(stats))
    return stats
