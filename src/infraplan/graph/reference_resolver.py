"""Resolve cross-resource references into a dependency graph."""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional
from .dependency_graph import DependencyGraph, Reference
from ..ingest.addresses import ADDRESS_RE
from ..ingest.models import ResourceNode
from ..ingest.values import ReferenceValue, Value, iter_references, map_references
from ..registry.registry import SchemaRegistry
from ..utils.errors import CyclicReferenceError, UnresolvedReferenceError
from ..utils.logging import get_logger

logger = get_logger("graph.reference_resolver")


@dataclass
class ResourceGraph:
    """Resolved declarations: canonical nodes, every reference edge, and outputs."""

    dag: DependencyGraph
    references: List[Reference]
    outputs: Dict[str, Value] = field(default_factory=dict)

    @property
    def nodes(self) -> List[ResourceNode]:
        return self.dag.get_all_nodes()

    def get_node(self, address: str) -> Optional[ResourceNode]:
        return self.dag.get_node(address)


class _Resolver:
    def __init__(self, nodes: List[ResourceNode], registry: SchemaRegistry):
        self.registry = registry
        self.by_address: Dict[str, ResourceNode] = {n.address: n for n in nodes}
        self.references: List[Reference] = []

    def locate(self, address: str, consumer: Optional[ResourceNode]) -> Optional[str]:
        """Find a producer by absolute address, then relative to the consumer's module."""
        if address in self.by_address:
            return address
        if consumer is not None and consumer.module:
            prefixed = f"{consumer.module_path}.{address}"
            if prefixed in self.by_address:
                return prefixed
        return None

    def canonical_reference(self, consumer: ResourceNode, field_name: str, ref: ReferenceValue) -> ReferenceValue:
        producer = self.locate(ref.address, consumer)
        if producer is None:
            raise UnresolvedReferenceError(
                consumer.address, ref.token, f"no resource declared at '{ref.address}'"
            )
        schema = self.registry.get_schema(self.by_address[producer].type, producer)
        if not schema.has_output(ref.field):
            raise UnresolvedReferenceError(
                consumer.address, ref.token,
                f"{schema.type} has no output '{ref.field}'"
            )
        self.references.append(Reference(
            consumer=consumer.address, producer=producer,
            consumer_field=field_name, output=ref.field,
        ))
        return ReferenceValue(address=producer, field=ref.field)

    def explicit_dependencies(self, consumer: ResourceNode, dep: str) -> List[str]:
        """depends_on may name a single instance or every instance of a fanned-out resource."""
        if ADDRESS_RE.match(dep) is None:
            raise UnresolvedReferenceError(consumer.address, dep, "not a resource address")
        producer = self.locate(dep, consumer)
        if producer is not None:
            return [producer]
        candidates = [dep]
        if consumer.module:
            candidates.append(f"{consumer.module_path}.{dep}")
        for candidate in candidates:
            instances = sorted(a for a in self.by_address if a.startswith(f"{candidate}["))
            if instances:
                return instances
        raise UnresolvedReferenceError(consumer.address, dep, f"no resource declared at '{dep}'")

    def resolve_node(self, node: ResourceNode) -> ResourceNode:
        self.registry.get_schema(node.type, node.address)

        attributes = {}
        for name in sorted(node.attributes):
            attributes[name] = map_references(
                node.attributes[name],
                lambda ref, name=name: self.canonical_reference(node, name, ref),
            )

        depends_on = []
        for dep in node.depends_on:
            for producer in self.explicit_dependencies(node, dep):
                self.references.append(Reference(consumer=node.address, producer=producer))
                depends_on.append(producer)

        return replace(node, attributes=attributes, depends_on=tuple(depends_on))

    def resolve_output(self, name: str, value: Value) -> Value:
        def canonical(ref: ReferenceValue) -> ReferenceValue:
            producer = self.locate(ref.address, None)
            if producer is None:
                raise UnresolvedReferenceError(f"output.{name}", ref.token, f"no resource declared at '{ref.address}'")
            schema = self.registry.get_schema(self.by_address[producer].type, producer)
            if not schema.has_output(ref.field):
                raise UnresolvedReferenceError(f"output.{name}", ref.token, f"{schema.type} has no output '{ref.field}'")
            return ReferenceValue(address=producer, field=ref.field)
        return map_references(value, canonical)


def resolve(
    nodes: List[ResourceNode],
    registry: SchemaRegistry,
    outputs: Optional[Dict[str, Value]] = None,
) -> ResourceGraph:
    """
    Resolve references between resource nodes into a ResourceGraph.

    Every `${<address>.<output>}` token and every depends_on entry becomes one
    edge. Relative addresses inside a module are canonicalized to absolute
    ones in the returned nodes.

    Args:
        nodes: Expanded resource nodes
        registry: Schema registry used to check types and outputs
        outputs: Optional output expressions to resolve alongside

    Returns:
        ResourceGraph with an acyclic DependencyGraph

    Raises:
        UnknownTypeError: If a node's type has no schema
        UnresolvedReferenceError: If a reference names a missing resource or output
        CyclicReferenceError: If references form a cycle
    """
    resolver = _Resolver(nodes, registry)
    resolved_nodes = [resolver.resolve_node(node) for node in sorted(nodes, key=lambda n: n.address)]
    resolved_outputs = {
        name: resolver.resolve_output(name, value) for name, value in sorted((outputs or {}).items())
    }

    dag = DependencyGraph().build(resolved_nodes, resolver.references)
    cycle = dag.find_cycle()
    if cycle:
        raise CyclicReferenceError(cycle)

    logger.info(f"Resolved {len(resolver.references)} references across {len(resolved_nodes)} resources")
    return ResourceGraph(dag=dag, references=list(resolver.references), outputs=resolved_outputs)


def count_reference_tokens(nodes: List[ResourceNode]) -> int:
    """Number of reference tokens (attribute references plus depends_on entries) in nodes."""
    total = 0
    for node in nodes:
        for value in node.attributes.values():
            total += sum(1 for _ in iter_references(value))
        total += len(node.depends_on)
    return total
