"""NetworkX-backed resource graph: typed nodes with parent -> child edges."""
from __future__ import annotations

import json
import logging

import networkx as nx

from cloudstats.errors import RetrievalError
from cloudstats.graph.models import Resource, ResourceType

logger = logging.getLogger(__name__)


def _resource_type(value: ResourceType | str) -> ResourceType:
    try:
        return ResourceType(value)
    except ValueError as e:
        raise RetrievalError(f"unknown resource type: {value!r}") from e


class ResourceGraph:
    """Directed graph of resources. An edge points from parent to child."""

    def __init__(self, graph: nx.DiGraph | None = None):
        self._g = graph if graph is not None else nx.DiGraph()

    @property
    def nx_graph(self) -> nx.DiGraph:
        return self._g

    def __len__(self) -> int:
        return self._g.number_of_nodes()

    def add_resource(self, resource_id: str, resource_type: ResourceType | str,
                     properties: dict | None = None) -> Resource:
        rtype = _resource_type(resource_type)
        props = dict(properties or {})
        self._g.add_node(resource_id, type=rtype.value, properties=props)
        return Resource(resource_id, rtype, dict(props))

    def add_child(self, parent_id: str, child_id: str) -> None:
        for node_id in (parent_id, child_id):
            if node_id not in self._g:
                raise RetrievalError(f"unknown resource: {node_id}")
        self._g.add_edge(parent_id, child_id)

    def get_all_resources(self, resource_type: ResourceType) -> list[Resource]:
        rtype = _resource_type(resource_type)
        resources = []
        for node_id, attrs in self._g.nodes(data=True):
            if attrs.get("type") == rtype.value:
                resources.append(
                    Resource(node_id, rtype, dict(attrs.get("properties") or {}))
                )
        return resources

    def count_children(self, resource: Resource) -> int:
        if resource.id not in self._g:
            raise RetrievalError(f"unknown resource: {resource.id}")
        return self._g.out_degree(resource.id)

    def count_children_of_type(self, resource: Resource,
                               child_type: ResourceType) -> int:
        ctype = _resource_type(child_type).value
        if resource.id not in self._g:
            raise RetrievalError(f"unknown resource: {resource.id}")
        return sum(
            1 for child in self._g.successors(resource.id)
            if self._g.nodes[child].get("type") == ctype
        )


def graph_from_dict(data: dict) -> ResourceGraph:
    """Build a ResourceGraph from node-link style data.

    Expected shape::

        {"nodes": [{"id": "vpc-1", "type": "vpc", "properties": {...}}],
         "links": [{"source": "vpc-1", "target": "subnet-1"}]}

    "edges" is accepted in place of "links".
    """
    graph = ResourceGraph()
    try:
        for node in data.get("nodes", []):
            graph.add_resource(node["id"], node["type"], node.get("properties"))
        for link in data.get("links", data.get("edges", [])):
            graph.add_child(link["source"], link["target"])
    except (KeyError, TypeError, ValueError) as e:
        raise RetrievalError(f"malformed graph data: {e}") from e
    return graph


def load_graph(path: str) -> ResourceGraph:
    """Load a resource graph from a node-link JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RetrievalError(f"cannot load graph {path}: {e}") from e
    graph = graph_from_dict(data)
    logger.debug("Loaded graph %s: %d resources", path, len(graph))
    return graph
