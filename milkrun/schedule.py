"""
Scheduling of resources into a single sequential execution order.
"""

from typing import TYPE_CHECKING

import networkx as nx

from .exceptions import CyclicDependency, UnresolvedDependency
from .topology import Topology

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from .resource import Resource


def resolve_topology(resources: "Sequence[Resource]") -> Topology:
    """
    Build the dependency graph of `resources` and order it topologically. Resources
    that become ready at the same step keep their relative input order, so the same
    resource set always yields the same schedule.
    """
    position = {resource.name: idx for idx, resource in enumerate(resources)}

    # validate that every dependency is part of the set
    for resource in resources:
        if missing := resource.depends_on - position.keys():
            raise UnresolvedDependency(resource.name, missing)

    # create a directed graph where edges point from a dependency to its dependents
    digraph = nx.DiGraph()

    for resource in resources:
        digraph.add_node(resource.name, resource=resource)

    for resource in resources:
        for dependency in resource.depends_on:
            digraph.add_edge(dependency, resource.name)

    try:
        names = list(
            nx.lexicographical_topological_sort(digraph, key=position.__getitem__)
        )
    except nx.NetworkXUnfeasible as e:
        # sort cycles by length, then by name, for stable error reporting
        cycles = sorted(
            (tuple(cycle) for cycle in nx.simple_cycles(digraph)),
            key=lambda cycle: (len(cycle), cycle),
        )

        raise CyclicDependency(cycles) from e

    return Topology(
        digraph=digraph, order=[digraph.nodes[name]["resource"] for name in names]
    )


def create_schedule(resources: "Sequence[Resource]") -> list["Resource"]:
    return resolve_topology(resources).order
