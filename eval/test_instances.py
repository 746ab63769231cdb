"""Tests for instance property frequency stats."""
from datetime import datetime, timezone

import pytest

from cloudstats.errors import SchemaViolationError
from cloudstats.graph import ResourceGraph, ResourceType
from cloudstats.telemetry.instances import build_instance_stats

NOW = datetime(2017, 6, 1, 12, 0, tzinfo=timezone.utc)


def _infra(*property_sets):
    g = ResourceGraph()
    for i, props in enumerate(property_sets):
        g.add_resource(f"i-{i}", ResourceType.INSTANCE, props)
    return g


def test_type_frequencies_skip_missing_property():
    infra = _infra(
        {"Type": "t2.micro"}, {"Type": "t2.micro"}, {"Type": "t2.micro"},
        {"Type": "m5.large"}, {"Type": "m5.large"},
        {"Name": "no-type"},
    )
    stats = build_instance_stats(infra, now=NOW)
    assert len(stats) == 2
    assert {(s.stat_type, s.name, s.hits) for s in stats} == {
        ("InstanceType", "t2.micro", 3),
        ("InstanceType", "m5.large", 2),
    }
    assert all(s.date == NOW for s in stats)


def test_type_and_image_stats_are_both_emitted():
    infra = _infra(
        {"Type": "t2.micro", "ImageId": "ami-1"},
        {"Type": "t2.nano", "ImageId": "ami-1"},
    )
    stats = build_instance_stats(infra, now=NOW)
    assert sorted((s.stat_type, s.name, s.hits) for s in stats) == [
        ("ImageId", "ami-1", 2),
        ("InstanceType", "t2.micro", 1),
        ("InstanceType", "t2.nano", 1),
    ]


def test_non_string_image_id_is_schema_violation():
    infra = _infra({"Type": "t2.micro", "ImageId": 1234})
    with pytest.raises(SchemaViolationError):
        build_instance_stats(infra, now=NOW)


def test_non_string_type_is_schema_violation():
    infra = _infra({"Type": True})
    with pytest.raises(SchemaViolationError):
        build_instance_stats(infra, now=NOW)


def test_other_resource_types_are_ignored():
    infra = _infra({"Type": "t2.micro"})
    infra.add_resource("subnet-1", ResourceType.SUBNET, {"Type": "private"})
    stats = build_instance_stats(infra, now=NOW)
    assert [(s.name, s.hits) for s in stats] == [("t2.micro", 1)]


def test_no_graph_gives_no_stats():
    assert build_instance_stats(None) == []
