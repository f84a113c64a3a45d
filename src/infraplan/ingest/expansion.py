"""Expand declarations into one resource node per instance.

count/for_each fan-out and variable substitution happen here, before any
graph is built, so later stages only ever see concrete instances.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
import yaml
from .addresses import INTERPOLATION_RE, InstanceKey, ResourceAddress, module_tuple, split_reference
from .models import DeclarationDocument, ExpandedDeclarations, ResourceDeclaration, ResourceNode, VariableDeclaration
from .values import parse_attributes, parse_value, stringify
from ..registry.models import FieldType
from ..registry.validators import check_type, run_validator
from ..utils.errors import DeclarationLoadError, SchemaValidationError
from ..utils.logging import get_logger

logger = get_logger("ingest.expansion")

_MISSING = object()


def expand_declarations(
    document: DeclarationDocument,
    variable_overrides: Optional[Mapping[str, Any]] = None,
) -> ExpandedDeclarations:
    """
    Expand a declarations document into resource nodes.

    Args:
        document: Parsed declarations
        variable_overrides: Values for input variables (strings are coerced
            to the declared variable type)

    Returns:
        ExpandedDeclarations with one node per instance

    Raises:
        DeclarationLoadError: On invalid expressions, missing variables or
            duplicate addresses
        SchemaValidationError: If a variable value fails its validators
    """
    variables = resolve_variables(document.variables, variable_overrides or {})

    nodes: List[ResourceNode] = []
    seen = set()
    for declaration in document.resources:
        for node in _expand_one(declaration, variables):
            if node.address in seen:
                raise DeclarationLoadError(f"Duplicate resource address: {node.address}")
            seen.add(node.address)
            nodes.append(node)

    outputs = {}
    for name, raw in document.outputs.items():
        substituted = _substitute(raw, {"var": variables}, f"output.{name}")
        try:
            outputs[name] = parse_value(substituted)
        except ValueError as e:
            raise DeclarationLoadError(f"output.{name}: {e}")

    logger.info(f"Expanded {len(document.resources)} declarations into {len(nodes)} resource instances")
    return ExpandedDeclarations(nodes=nodes, outputs=outputs, variables=variables)


def resolve_variables(
    declared: Mapping[str, VariableDeclaration],
    overrides: Mapping[str, Any],
) -> Dict[str, Any]:
    """Compute final variable values and validate them."""
    unknown = sorted(set(overrides) - set(declared))
    if unknown:
        raise DeclarationLoadError(f"Values given for undeclared variables: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for name in sorted(declared):
        declaration = declared[name]
        if name in overrides:
            value = _coerce_variable(name, declaration, overrides[name])
        else:
            value = declaration.default
        if value is None:
            raise DeclarationLoadError(f"No value for required variable '{name}'")

        ok, message = check_type(declaration.type, value)
        if not ok:
            raise SchemaValidationError(f"var.{name}", name, "type", message)
        for spec in declaration.validators:
            ok, message = run_validator(spec, value)
            if not ok:
                raise SchemaValidationError(f"var.{name}", name, spec.rule, message)
        values[name] = value
    return values


def _coerce_variable(name: str, declaration: VariableDeclaration, raw: Any) -> Any:
    if not isinstance(raw, str) or declaration.type == FieldType.STRING:
        return raw
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise DeclarationLoadError(f"Cannot parse value for variable '{name}': {e}")


def _instances(declaration: ResourceDeclaration) -> Iterator[Tuple[Optional[InstanceKey], Dict[str, Any]]]:
    """Yield (instance key, expression context) for every instance of a declaration."""
    if declaration.count is not None:
        for index in range(declaration.count):
            yield index, {"count": {"index": index}}
    elif declaration.for_each is not None:
        items = declaration.for_each
        if isinstance(items, list):
            items = {str(key): key for key in items}
        for key, value in items.items():
            yield str(key), {"each": {"key": str(key), "value": value}}
    else:
        yield None, {}


def _expand_one(declaration: ResourceDeclaration, variables: Dict[str, Any]) -> Iterator[ResourceNode]:
    module = module_tuple(declaration.module)
    for key, context in _instances(declaration):
        context["var"] = variables
        address = str(ResourceAddress(type=declaration.type, name=declaration.name, module=module, index=key))
        raw_attributes = _substitute(declaration.attributes, context, address)
        try:
            attributes = parse_attributes(raw_attributes)
        except ValueError as e:
            raise DeclarationLoadError(f"{address}: {e}")

        yield ResourceNode(
            address=address,
            type=declaration.type,
            name=declaration.name,
            module=module,
            index=key,
            attributes=attributes,
            depends_on=tuple(declaration.depends_on),
            create_before_destroy=declaration.lifecycle.create_before_destroy,
            ignore_changes=tuple(declaration.lifecycle.ignore_changes),
        )


def _substitute(raw: Any, context: Dict[str, Any], where: str) -> Any:
    """Replace var/count/each expressions; resource references are left in place."""
    if isinstance(raw, str):
        return _substitute_string(raw, context, where)
    if isinstance(raw, list):
        return [_substitute(item, context, where) for item in raw]
    if isinstance(raw, dict):
        return {key: _substitute(item, context, where) for key, item in raw.items()}
    return raw


def _substitute_string(raw: str, context: Dict[str, Any], where: str) -> Any:
    matches = list(INTERPOLATION_RE.finditer(raw))
    if not matches:
        return raw

    if len(matches) == 1 and matches[0].group(0) == raw:
        value = _lookup(matches[0].group(1), context, where)
        return raw if value is _MISSING else value

    def replace(match) -> str:
        value = _lookup(match.group(1), context, where)
        return match.group(0) if value is _MISSING else stringify(value)

    return INTERPOLATION_RE.sub(replace, raw)


def _lookup(expression: str, context: Dict[str, Any], where: str) -> Any:
    """Resolve a context expression; _MISSING means it is a resource reference."""
    expression = expression.strip()
    root, _, rest = expression.partition(".")

    if root == "var":
        variables = context.get("var", {})
        if rest not in variables:
            raise DeclarationLoadError(f"{where}: reference to undeclared variable 'var.{rest}'")
        return variables[rest]

    if root in ("count", "each"):
        scope = context.get(root)
        if scope is None:
            raise DeclarationLoadError(f"{where}: '{expression}' used without {'count' if root == 'count' else 'for_each'}")
        if rest not in scope:
            raise DeclarationLoadError(f"{where}: unknown expression '{expression}'")
        return scope[rest]

    if split_reference(expression) is None:
        raise DeclarationLoadError(f"{where}: invalid expression '${{{expression}}}'")
    return _MISSING
