"""Structural snapshots of the infrastructure and access graphs."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from cloudstats.errors import RetrievalError
from cloudstats.graph.models import ResourceType
from cloudstats.graph.statistics import (
    count_min_max_children_of_specific_type as of_specific_type,
    count_min_max_children_of_type as of_type,
)
from cloudstats.models import AccessMetrics, InfraMetrics


def build_infra_metrics(region: str, infra, now: datetime | None = None) -> InfraMetrics:
    """Vpc -> subnet and subnet -> instance fan-out plus instance count.

    On a graph error the RetrievalError carries the snapshot filled so far
    in its ``partial`` attribute.
    """
    metrics = InfraMetrics(date=now or datetime.now(timezone.utc), region=region)
    try:
        c, lo, hi = of_type(infra, ResourceType.VPC)
        metrics = replace(metrics, vpc_count=c, min_subnets_per_vpc=lo, max_subnets_per_vpc=hi)

        c, lo, hi = of_type(infra, ResourceType.SUBNET)
        metrics = replace(metrics, subnet_count=c,
                          min_instances_per_subnet=lo, max_instances_per_subnet=hi)

        c, _, _ = of_type(infra, ResourceType.INSTANCE)
        metrics = replace(metrics, instance_count=c)
    except RetrievalError as e:
        e.partial = metrics
        raise
    return metrics


def build_access_metrics(region: str, access, now: datetime | None = None) -> AccessMetrics:
    """Group/policy membership fan-out plus role and user counts."""
    metrics = AccessMetrics(date=now or datetime.now(timezone.utc), region=region)
    try:
        c, lo, hi = of_specific_type(access, ResourceType.GROUP, ResourceType.USER)
        metrics = replace(metrics, group_count=c, min_users_per_group=lo, max_users_per_group=hi)

        c, lo, hi = of_specific_type(access, ResourceType.POLICY, ResourceType.USER)
        metrics = replace(metrics, policy_count=c,
                          min_users_per_policy=lo, max_users_per_policy=hi)

        _, lo, hi = of_specific_type(access, ResourceType.POLICY, ResourceType.ROLE)
        metrics = replace(metrics, min_roles_per_policy=lo, max_roles_per_policy=hi)

        _, lo, hi = of_specific_type(access, ResourceType.POLICY, ResourceType.GROUP)
        metrics = replace(metrics, min_groups_per_policy=lo, max_groups_per_policy=hi)

        c, _, _ = of_type(access, ResourceType.ROLE)
        metrics = replace(metrics, role_count=c)

        c, _, _ = of_type(access, ResourceType.USER)
        metrics = replace(metrics, user_count=c)
    except RetrievalError as e:
        e.partial = metrics
        raise
    return metrics
