"""Schema validation and attribute comparison for a single resource."""

import copy
from typing import Any, Dict, List, Optional, Tuple
from .models import ResourceAction
from ..ingest.models import ResourceNode
from ..ingest.values import UNKNOWN, ReferenceLookup, evaluate, to_raw
from ..registry.models import FieldSchema, ResourceSchema
from ..registry.validators import check_type, run_validator
from ..state.models import ResourceState
from ..utils.errors import SchemaValidationError


def _unknown_lookup(address: str, field: str) -> Any:
    return UNKNOWN


def validate_value(address: str, name: str, field_schema: FieldSchema, value: Any) -> None:
    """Validate one concrete value against its field schema."""
    if value is UNKNOWN or value is None:
        return
    ok, message = check_type(field_schema.type, value)
    if not ok:
        raise SchemaValidationError(address, name, "type", message)
    for spec in field_schema.validators:
        ok, message = run_validator(spec, value)
        if not ok:
            raise SchemaValidationError(address, name, spec.rule, message)


def validate_node(node: ResourceNode, schema: ResourceSchema) -> None:
    """
    Validate a node's declared attributes against its schema.

    Values that depend on references are only checked once they can be
    resolved (see validate_value during planning).

    Raises:
        SchemaValidationError: On the first violated rule
    """
    for name in sorted(node.attributes):
        if name not in schema.fields:
            raise SchemaValidationError(node.address, name, "unknown_field", f"{schema.type} has no field '{name}'")

    for name in node.ignore_changes:
        if name not in schema.fields:
            raise SchemaValidationError(
                node.address, name, "unknown_field",
                f"ignore_changes names '{name}', which {schema.type} does not have"
            )

    for name in sorted(schema.fields):
        if schema.fields[name].required and name not in node.attributes:
            raise SchemaValidationError(node.address, name, "required", "required field is not set")

    for name in sorted(node.attributes):
        value = evaluate(node.attributes[name], _unknown_lookup)
        validate_value(node.address, name, schema.fields[name], value)


def desired_attributes(node: ResourceNode, schema: ResourceSchema, lookup: ReferenceLookup) -> Dict[str, Any]:
    """Evaluate every schema field for a node: declared value, else default, else None."""
    desired = {}
    for name in sorted(schema.fields):
        if name in node.attributes:
            desired[name] = evaluate(node.attributes[name], lookup)
        else:
            desired[name] = copy.deepcopy(schema.fields[name].default)
    return desired


def render_after(node: ResourceNode, schema: ResourceSchema) -> Dict[str, Any]:
    """Declaration form of the desired attributes, with defaults filled in."""
    after = {}
    for name in sorted(schema.fields):
        if name in node.attributes:
            after[name] = to_raw(node.attributes[name])
        elif schema.fields[name].default is not None:
            after[name] = copy.deepcopy(schema.fields[name].default)
    return after


def compare(
    node: ResourceNode,
    schema: ResourceSchema,
    desired: Dict[str, Any],
    prior: Optional[ResourceState],
) -> Tuple[ResourceAction, List[str], List[str]]:
    """
    Decide the action for a node given its prior state.

    Returns:
        Tuple of (action, changed fields, changed fields forcing replacement)
    """
    if prior is None:
        return ResourceAction.CREATE, [], []

    if prior.type != node.type:
        changed = sorted(schema.fields)
        return ResourceAction.REPLACE, changed, changed

    changed = []
    for name in sorted(schema.fields):
        if name in node.ignore_changes:
            continue
        new = desired.get(name)
        old = prior.attributes.get(name)
        if new is UNKNOWN or new != old:
            changed.append(name)

    if not changed:
        return ResourceAction.NO_OP, [], []

    replace_fields = [name for name in changed if schema.fields[name].force_new]
    if replace_fields:
        return ResourceAction.REPLACE, changed, replace_fields
    return ResourceAction.UPDATE, changed, []
