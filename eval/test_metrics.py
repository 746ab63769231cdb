"""Tests for the infrastructure and access structural snapshots."""
from datetime import datetime, timezone

import pytest

from cloudstats.errors import RetrievalError
from cloudstats.graph import ResourceGraph, ResourceType
from cloudstats.models import AccessMetrics, InfraMetrics
from cloudstats.telemetry.metrics import build_access_metrics, build_infra_metrics

NOW = datetime(2017, 6, 1, 12, 0, tzinfo=timezone.utc)


# ── Helpers ─────────────────────────────────────────────────────────


def _build(nodes, edges):
    g = ResourceGraph()
    for node_id, rtype in nodes:
        g.add_resource(node_id, rtype)
    for parent, child in edges:
        g.add_child(parent, child)
    return g


def build_infra_graph():
    V, S, I = ResourceType.VPC, ResourceType.SUBNET, ResourceType.INSTANCE
    return _build(
        [("vpc-1", V), ("vpc-2", V),
         ("subnet-1", S), ("subnet-2", S), ("subnet-3", S),
         ("i-1", I), ("i-2", I), ("i-3", I)],
        [("vpc-1", "subnet-1"), ("vpc-1", "subnet-2"), ("vpc-2", "subnet-3"),
         ("subnet-1", "i-1"), ("subnet-1", "i-2"), ("subnet-2", "i-3")],
    )


def build_access_graph():
    G, U, R, P = ResourceType.GROUP, ResourceType.USER, ResourceType.ROLE, ResourceType.POLICY
    return _build(
        [("group-1", G), ("group-2", G),
         ("user-1", U), ("user-2", U), ("user-3", U),
         ("role-1", R), ("role-2", R),
         ("policy-1", P), ("policy-2", P)],
        [("group-1", "user-1"), ("group-1", "user-2"), ("group-2", "user-3"),
         ("policy-1", "user-1"), ("policy-1", "role-1"), ("policy-1", "group-1"),
         ("policy-2", "user-2"), ("policy-2", "user-3"),
         ("policy-2", "role-1"), ("policy-2", "role-2")],
    )


class _FailingOnType(ResourceGraph):
    def __init__(self, failing_type, graph):
        super().__init__(graph.nx_graph)
        self.failing_type = failing_type

    def get_all_resources(self, resource_type):
        if resource_type == self.failing_type:
            raise RetrievalError(f"cannot list {resource_type.value}")
        return super().get_all_resources(resource_type)


# ── Tests ───────────────────────────────────────────────────────────


def test_infra_metrics():
    m = build_infra_metrics("eu-west-1", build_infra_graph(), now=NOW)
    assert m == InfraMetrics(
        date=NOW, region="eu-west-1",
        vpc_count=2, min_subnets_per_vpc=1, max_subnets_per_vpc=2,
        subnet_count=3, min_instances_per_subnet=0, max_instances_per_subnet=2,
        instance_count=3,
    )


def test_access_metrics():
    m = build_access_metrics("eu-west-1", build_access_graph(), now=NOW)
    assert m == AccessMetrics(
        date=NOW, region="eu-west-1",
        group_count=2, min_users_per_group=1, max_users_per_group=2,
        policy_count=2, min_users_per_policy=1, max_users_per_policy=2,
        min_roles_per_policy=1, max_roles_per_policy=2,
        min_groups_per_policy=0, max_groups_per_policy=1,
        role_count=2, user_count=3,
    )


def test_empty_graphs_collapse_to_zero():
    infra = build_infra_metrics("us-east-1", ResourceGraph(), now=NOW)
    access = build_access_metrics("us-east-1", ResourceGraph(), now=NOW)
    assert infra == InfraMetrics(date=NOW, region="us-east-1")
    assert access == AccessMetrics(date=NOW, region="us-east-1")


def test_infra_error_carries_partial_snapshot():
    graph = _FailingOnType(ResourceType.SUBNET, build_infra_graph())
    with pytest.raises(RetrievalError) as excinfo:
        build_infra_metrics("us-east-1", graph, now=NOW)
    partial = excinfo.value.partial
    assert partial.vpc_count == 2
    assert partial.subnet_count == 0


def test_access_error_aborts():
    graph = _FailingOnType(ResourceType.ROLE, build_access_graph())
    with pytest.raises(RetrievalError) as excinfo:
        build_access_metrics("us-east-1", graph, now=NOW)
    assert excinfo.value.partial.max_groups_per_policy == 1
    assert excinfo.value.partial.role_count == 0


def test_snapshot_wire_names():
    d = build_infra_metrics("eu-west-1", build_infra_graph(), now=NOW).to_dict()
    assert d["NbVpcs"] == 2
    assert d["MaxInstancesPerSubnet"] == 2
    assert d["Region"] == "eu-west-1"
    assert d["Date"] == NOW.isoformat()
