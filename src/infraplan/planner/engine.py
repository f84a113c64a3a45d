"""Diff desired declarations against last-applied state into an ordered plan."""

from typing import Any, Dict
import networkx as nx
from .diff import compare, desired_attributes, render_after, validate_node, validate_value
from .models import Plan, PlannedChange, ResourceAction
from ..graph.reference_resolver import ResourceGraph
from ..ingest.values import UNKNOWN, to_raw
from ..registry.registry import SchemaRegistry
from ..state.models import StateSnapshot
from ..utils.errors import GraphConstructionError
from ..utils.logging import get_logger

logger = get_logger("planner.engine")


def plan(
    graph: ResourceGraph,
    last_state: StateSnapshot,
    registry: SchemaRegistry,
    destroy: bool = False,
) -> Plan:
    """
    Compute the plan that reconciles a resolved graph with the last state.

    Planning never mutates state. The returned order is a topological sort of
    the changes with a lexicographic tie-break, so identical inputs always
    produce an identical plan.

    Args:
        graph: Resolved resource graph
        last_state: Snapshot of last-applied attributes
        registry: Schema registry
        destroy: Plan the deletion of every resource in state instead

    Returns:
        Plan with every change in execution order

    Raises:
        SchemaValidationError: If any desired value violates its schema
        UnknownTypeError: If a node's type has no schema
    """
    for node in graph.nodes:
        validate_node(node, registry.get_schema(node.type, node.address))

    changes: Dict[str, PlannedChange] = {}

    if not destroy:
        projected: Dict[str, Dict[str, Any]] = {}

        def lookup(address: str, field: str) -> Any:
            return projected.get(address, {}).get(field, UNKNOWN if address not in projected else None)

        for address in graph.dag.creation_order():
            node = graph.get_node(address)
            schema = registry.get_schema(node.type, address)
            desired = desired_attributes(node, schema, lookup)
            for name in sorted(node.attributes):
                validate_value(address, name, schema.fields[name], desired[name])

            prior = last_state.get(address)
            action, changed, replace_fields = compare(node, schema, desired, prior)
            projected[address] = _project(action, desired, schema.computed_outputs(), prior)

            create_before_destroy = schema.create_before_destroy
            if node.create_before_destroy is not None:
                create_before_destroy = node.create_before_destroy

            changes[address] = PlannedChange(
                address=address,
                type=node.type,
                action=action,
                before=dict(prior.attributes) if prior else None,
                after=render_after(node, schema),
                changed_fields=changed,
                replace_fields=replace_fields,
                create_before_destroy=create_before_destroy,
                dependencies=graph.dag.dependencies(address),
            )

    for address in last_state.addresses():
        if destroy or address not in graph.dag:
            prior = last_state.get(address)
            changes[address] = PlannedChange(
                address=address,
                type=prior.type,
                action=ResourceAction.DELETE,
                before=dict(prior.attributes),
                dependencies=list(prior.dependencies),
            )

    ordered = _order_changes(changes, graph)
    result = Plan(
        destroy=destroy,
        state_serial=last_state.serial,
        changes=ordered,
        outputs={} if destroy else {name: to_raw(value) for name, value in graph.outputs.items()},
    )

    summary = result.summary()
    logger.info(
        f"Plan: {summary['CREATE']} to create, {summary['UPDATE']} to update, "
        f"{summary['REPLACE']} to replace, {summary['DELETE']} to delete, "
        f"{summary['NO_OP']} unchanged"
    )
    return result


def _project(action: ResourceAction, desired: Dict[str, Any], outputs, prior) -> Dict[str, Any]:
    """Attribute values a resource will have once its change is applied."""
    if action in (ResourceAction.CREATE, ResourceAction.REPLACE):
        projected = {name: UNKNOWN for name in outputs}
        projected.update(desired)
        return projected
    projected = dict(prior.attributes)
    projected.update(desired)
    return projected


def _order_changes(changes: Dict[str, PlannedChange], graph: ResourceGraph):
    """
    Order changes so that creates/updates follow their producers and deletes
    precede the deletion or replacement of what they depended on.
    """
    ordering = nx.DiGraph()
    ordering.add_nodes_from(changes)

    for address, change in changes.items():
        if change.action != ResourceAction.DELETE:
            for producer in graph.dag.dependencies(address):
                if producer in changes and changes[producer].action != ResourceAction.DELETE:
                    ordering.add_edge(producer, address)
        else:
            for producer in change.dependencies:
                target = changes.get(producer)
                if target is not None and target.action in (ResourceAction.DELETE, ResourceAction.REPLACE):
                    ordering.add_edge(address, producer)

    try:
        order = list(nx.lexicographical_topological_sort(ordering))
    except nx.NetworkXUnfeasible as e:
        raise GraphConstructionError(f"Cannot order plan: {e}")

    ordered = []
    for address in order:
        change = changes[address]
        change.requires = sorted(ordering.predecessors(address))
        ordered.append(change)
    return ordered
