"""Count / min / max of child relationships over a resource graph."""
from __future__ import annotations

from typing import Callable

from cloudstats.graph.models import Resource, ResourceType


def _count_min_max(resources: list[Resource],
                   count_children: Callable[[Resource], int]) -> tuple[int, int, int]:
    if not resources:
        return 0, 0, 0
    low = high = count_children(resources[0])
    for res in resources[1:]:
        n = count_children(res)
        if n < low:
            low = n
        if n > high:
            high = n
    return len(resources), low, high


def count_min_max_children_of_type(graph, parent_type: ResourceType) -> tuple[int, int, int]:
    """(number of parent_type resources, min children, max children).

    Children of any type are counted. Returns (0, 0, 0) when the graph has
    no resource of parent_type. Lookup failures propagate as RetrievalError.
    """
    resources = graph.get_all_resources(parent_type)
    return _count_min_max(resources, graph.count_children)


def count_min_max_children_of_specific_type(
    graph,
    parent_type: ResourceType,
    child_type: ResourceType,
) -> tuple[int, int, int]:
    """Same as count_min_max_children_of_type, counting only child_type children."""
    resources = graph.get_all_resources(parent_type)
    return _count_min_max(
        resources, lambda res: graph.count_children_of_type(res, child_type)
    )
