"""Statistic data shapes: log entries, daily counts, snapshots, the report."""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _timestamp(value: datetime | None) -> str | None:
    """RFC 3339 rendering used on the wire."""
    if value is None:
        return None
    return value.isoformat()


@dataclass(frozen=True)
class CommandLogEntry:
    """One executed command as recorded by the log store."""
    id: int
    timestamp: datetime
    tokens: tuple[str, ...] = ()

    @property
    def command(self) -> str:
        return " ".join(self.tokens)


@dataclass(frozen=True)
class DailyCommandCount:
    command: str
    hits: int
    date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"Command": self.command, "Hits": self.hits, "Date": _timestamp(self.date)}


@dataclass(frozen=True)
class InstanceStat:
    """Frequency of one instance property value (e.g. an instance type)."""
    stat_type: str
    name: str
    hits: int
    date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "Type": self.stat_type,
            "Date": _timestamp(self.date),
            "Hits": self.hits,
            "Name": self.name,
        }


@dataclass(frozen=True)
class InfraMetrics:
    date: datetime | None = None
    region: str = ""
    vpc_count: int = 0
    subnet_count: int = 0
    min_subnets_per_vpc: int = 0
    max_subnets_per_vpc: int = 0
    instance_count: int = 0
    min_instances_per_subnet: int = 0
    max_instances_per_subnet: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "Date": _timestamp(self.date),
            "Region": self.region,
            "NbVpcs": self.vpc_count,
            "NbSubnets": self.subnet_count,
            "MinSubnetsPerVpc": self.min_subnets_per_vpc,
            "MaxSubnetsPerVpc": self.max_subnets_per_vpc,
            "NbInstances": self.instance_count,
            "MinInstancesPerSubnet": self.min_instances_per_subnet,
            "MaxInstancesPerSubnet": self.max_instances_per_subnet,
        }


@dataclass(frozen=True)
class AccessMetrics:
    date: datetime | None = None
    region: str = ""
    group_count: int = 0
    policy_count: int = 0
    role_count: int = 0
    user_count: int = 0
    min_users_per_group: int = 0
    max_users_per_group: int = 0
    min_users_per_policy: int = 0
    max_users_per_policy: int = 0
    min_roles_per_policy: int = 0
    max_roles_per_policy: int = 0
    min_groups_per_policy: int = 0
    max_groups_per_policy: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "Date": _timestamp(self.date),
            "Region": self.region,
            "NbGroups": self.group_count,
            "NbPolicies": self.policy_count,
            "NbRoles": self.role_count,
            "NbUsers": self.user_count,
            "MinUsersByGroup": self.min_users_per_group,
            "MaxUsersByGroup": self.max_users_per_group,
            "MinUsersByLocalPolicies": self.min_users_per_policy,
            "MaxUsersByLocalPolicies": self.max_users_per_policy,
            "MinRolesByLocalPolicies": self.min_roles_per_policy,
            "MaxRolesByLocalPolicies": self.max_roles_per_policy,
            "MinGroupsByLocalPolicies": self.min_groups_per_policy,
            "MaxGroupsByLocalPolicies": self.max_groups_per_policy,
        }


@dataclass(frozen=True)
class BuildInfo:
    """Build metadata stamped into every report."""
    sha: str = ""
    date: str = ""
    build_for: str = ""
    build_os: str = ""
    build_arch: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "Sha": self.sha,
            "Date": self.date,
            "BuildFor": self.build_for,
            "BuildOS": self.build_os,
            "BuildArch": self.build_arch,
        }


@dataclass(frozen=True)
class StatsReport:
    """Everything sent in one submission. Built once, never mutated."""
    anonymous_id: str
    anonymous_secondary_id: str
    version: str
    build_info: BuildInfo = field(default_factory=BuildInfo)
    commands: tuple[DailyCommandCount, ...] = ()
    infra_metrics: InfraMetrics = field(default_factory=InfraMetrics)
    instance_stats: tuple[InstanceStat, ...] = ()
    access_metrics: AccessMetrics = field(default_factory=AccessMetrics)
    logs: tuple[dict, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "Id": self.anonymous_id,
            "AId": self.anonymous_secondary_id,
            "Version": self.version,
            "BuildInfo": self.build_info.to_dict(),
            "Commands": [c.to_dict() for c in self.commands],
            "InfraMetrics": self.infra_metrics.to_dict(),
            "InstancesStats": [s.to_dict() for s in self.instance_stats],
            "AccessMetrics": self.access_metrics.to_dict(),
            "Logs": list(self.logs),
        }


@dataclass(frozen=True)
class EncryptedEnvelope:
    """Wire payload: RSA-wrapped session key plus AES-GCM ciphertext."""
    wrapped_key: bytes
    ciphertext: bytes

    def to_json(self) -> bytes:
        return json.dumps({
            "Key": base64.b64encode(self.wrapped_key).decode("ascii"),
            "Data": base64.b64encode(self.ciphertext).decode("ascii"),
        }).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str) -> "EncryptedEnvelope":
        data = json.loads(raw)
        return cls(
            wrapped_key=base64.b64decode(data["Key"]),
            ciphertext=base64.b64decode(data["Data"]),
        )


@dataclass(frozen=True)
class UpgradeAdvisory:
    version: str
    url: str
    install_hint: str

    @property
    def message(self) -> str:
        return f"New version {self.version} available. {self.install_hint}"
