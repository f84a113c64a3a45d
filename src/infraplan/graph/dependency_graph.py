"""Build directed dependency graph from resolved resource nodes."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set
import networkx as nx
from ..ingest.models import ResourceNode
from ..utils.errors import GraphConstructionError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


@dataclass(frozen=True)
class Reference:
    """Edge from a consuming node/field to a producing node's output."""

    consumer: str
    producer: str
    consumer_field: Optional[str] = None
    output: Optional[str] = None

    @property
    def is_explicit(self) -> bool:
        """True for depends_on entries, which carry no field."""
        return self.output is None

    def describe(self) -> str:
        if self.is_explicit:
            return f"{self.consumer} -> {self.producer} (depends_on)"
        return f"{self.consumer}.{self.consumer_field} -> {self.producer}.{self.output}"


class DependencyGraph:
    """Directed dependency graph: nodes=resources, edges=references (consumer -> producer).

    A multigraph, so every reference token is its own edge.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._node_map: Dict[str, ResourceNode] = {}

    def add_node(self, node: ResourceNode) -> None:
        """Add a resource node to the graph."""
        self.graph.add_node(node.address, node=node)
        self._node_map[node.address] = node

    def add_reference(self, reference: Reference) -> None:
        """Add a reference edge. Both ends must already be nodes."""
        if reference.consumer not in self._node_map or reference.producer not in self._node_map:
            raise GraphConstructionError(f"Reference endpoints missing from graph: {reference.describe()}")
        self.graph.add_edge(
            reference.consumer,
            reference.producer,
            field=reference.consumer_field,
            output=reference.output,
        )
        logger.debug(f"Added dependency edge: {reference.describe()}")

    def build(self, nodes: Iterable[ResourceNode], references: Iterable[Reference]) -> "DependencyGraph":
        """Build the complete graph from nodes and resolved references."""
        for node in sorted(nodes, key=lambda n: n.address):
            self.add_node(node)
        for reference in references:
            self.add_reference(reference)

        logger.info(
            f"Built dependency graph with {self.graph.number_of_nodes()} nodes "
            f"and {self.graph.number_of_edges()} edges"
        )
        return self

    def find_cycle(self) -> Optional[List[str]]:
        """Return a cycle as an address path (first == last), or None if acyclic."""
        try:
            edges = nx.find_cycle(self.graph)
        except nx.NetworkXNoCycle:
            return None
        return [edges[0][0]] + [edge[1] for edge in edges]

    def roots(self) -> List[str]:
        """Nodes with no incoming edges (nothing depends on them)."""
        return sorted(n for n in self.graph.nodes if self.graph.in_degree(n) == 0)

    def leaves(self) -> List[str]:
        """Nodes with no outgoing edges (they depend on nothing)."""
        return sorted(n for n in self.graph.nodes if self.graph.out_degree(n) == 0)

    def dependencies(self, address: str) -> List[str]:
        """Direct producers the given node references."""
        if address not in self.graph:
            return []
        return sorted(set(self.graph.successors(address)))

    def dependents(self, address: str) -> List[str]:
        """Direct consumers of the given node."""
        if address not in self.graph:
            return []
        return sorted(set(self.graph.predecessors(address)))

    def transitive_dependents(self, address: str) -> Set[str]:
        """All nodes that depend on the given node, directly or not."""
        if address not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, address))

    def transitive_dependencies(self, address: str) -> Set[str]:
        """All nodes the given node depends on, directly or not."""
        if address not in self.graph:
            return set()
        return set(nx.descendants(self.graph, address))

    def creation_order(self) -> List[str]:
        """Producers before consumers, ties broken lexicographically by address."""
        return list(nx.lexicographical_topological_sort(self.graph.reverse(copy=False)))

    def get_node(self, address: str) -> Optional[ResourceNode]:
        """Get resource node by address."""
        return self._node_map.get(address)

    def get_all_nodes(self) -> List[ResourceNode]:
        """Get all nodes in address order."""
        return [self._node_map[a] for a in sorted(self._node_map)]

    def references(self) -> List[Reference]:
        """All edges as Reference records, in deterministic order."""
        refs = [
            Reference(consumer=u, producer=v, consumer_field=data.get("field"), output=data.get("output"))
            for u, v, data in self.graph.edges(data=True)
        ]
        return sorted(refs, key=lambda r: (r.consumer, r.consumer_field or "", r.producer, r.output or ""))

    def __contains__(self, address: str) -> bool:
        return address in self._node_map

    def __len__(self) -> int:
        return len(self._node_map)
