"""Resource graph data models: resource types and nodes."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cloudstats.errors import SchemaViolationError


class ResourceType(str, Enum):
    # Infrastructure graph
    VPC = "vpc"
    SUBNET = "subnet"
    INSTANCE = "instance"
    # Access graph
    GROUP = "group"
    USER = "user"
    ROLE = "role"
    POLICY = "policy"


@dataclass
class Resource:
    id: str
    resource_type: ResourceType
    properties: dict[str, Any] = field(default_factory=dict)

    def string_property(self, name: str) -> str | None:
        """Return a string property, or None when absent.

        A present value of any other type means the graph was written with
        the wrong schema.
        """
        value = self.properties.get(name)
        if value is None:
            return None
        if not isinstance(value, str):
            raise SchemaViolationError(
                f"property '{name}' of {self.resource_type.value} {self.id} "
                f"is not a string: {type(value).__name__}"
            )
        return value
