from typing import TYPE_CHECKING

from networkx import generate_network_text

if TYPE_CHECKING:  # pragma: no cover
    from networkx import DiGraph

    from .resource import Resource


class Topology:
    def __init__(self, *, digraph: "DiGraph", order: list["Resource"]) -> None:
        self.digraph = digraph
        self.order = order

    @property
    def names(self) -> list[str]:
        return [resource.name for resource in self.order]

    def dependents(self, name: str) -> set[str]:
        """Names of the resources that depend directly on `name`."""
        return set(self.digraph.successors(name))

    def __str__(self) -> str:
        return "\n".join(generate_network_text(self.digraph, vertical_chains=True))
