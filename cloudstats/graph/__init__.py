"""Resource graphs and structural statistics over them."""
from cloudstats.graph.models import Resource, ResourceType
from cloudstats.graph.store import ResourceGraph, graph_from_dict, load_graph
from cloudstats.graph.statistics import (
    count_min_max_children_of_specific_type, count_min_max_children_of_type,
)

__all__ = [
    "Resource", "ResourceType", "ResourceGraph", "graph_from_dict", "load_graph",
    "count_min_max_children_of_type", "count_min_max_children_of_specific_type",
]
