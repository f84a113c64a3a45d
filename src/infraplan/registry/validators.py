"""Validation predicates for attribute values.

Every predicate is a pure function of (spec, value) returning ``(ok, message)``.
"""

import ipaddress
import re
from typing import Any, Callable, Dict, Tuple
from .models import FieldType, ValidatorSpec

ValidationResult = Tuple[bool, str]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_cidr(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """Value must be a well-formed IPv4 or IPv6 CIDR block."""
    if not isinstance(value, str) or "/" not in value:
        return False, f"'{value}' is not a valid CIDR block"
    try:
        ipaddress.ip_network(value, strict=True)
    except ValueError as e:
        return False, f"'{value}' is not a valid CIDR block ({e})"
    return True, ""


def check_enum(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """Value must be one of spec.values."""
    allowed = spec.values or []
    if value not in allowed:
        return False, f"'{value}' is not one of {allowed}"
    return True, ""


def check_range(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """Numeric value must fall within [min, max]."""
    if not _is_number(value):
        return False, f"'{value}' is not a number"
    if spec.min is not None and value < spec.min:
        return False, f"{value} is less than minimum {spec.min:g}"
    if spec.max is not None and value > spec.max:
        return False, f"{value} is greater than maximum {spec.max:g}"
    return True, ""


def check_regex(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """String value must fully match spec.pattern."""
    if not isinstance(value, str):
        return False, f"'{value}' is not a string"
    if spec.pattern is None or re.fullmatch(spec.pattern, value) is None:
        return False, f"'{value}' does not match pattern {spec.pattern}"
    return True, ""


def check_length(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """String, list or map length must fall within [min, max]."""
    if not isinstance(value, (str, list, dict)):
        return False, f"'{value}' has no length"
    size = len(value)
    if spec.min is not None and size < spec.min:
        return False, f"length {size} is less than minimum {spec.min:g}"
    if spec.max is not None and size > spec.max:
        return False, f"length {size} is greater than maximum {spec.max:g}"
    return True, ""


PREDICATES: Dict[str, Callable[[ValidatorSpec, Any], ValidationResult]] = {
    "cidr": check_cidr,
    "enum": check_enum,
    "range": check_range,
    "regex": check_regex,
    "length": check_length,
}


def run_validator(spec: ValidatorSpec, value: Any) -> ValidationResult:
    """
    Run a single validator against a concrete value.

    Args:
        spec: Validator specification from a field schema
        value: Concrete (fully resolved) value

    Returns:
        Tuple of (passed, message); message is empty on success
    """
    predicate = PREDICATES.get(spec.rule)
    if predicate is None:
        return False, f"unknown validation rule '{spec.rule}'"
    ok, message = predicate(spec, value)
    if not ok and spec.message:
        message = spec.message
    return ok, message


def check_type(field_type: FieldType, value: Any) -> ValidationResult:
    """Check that a concrete value matches the declared field type."""
    if field_type == FieldType.ANY:
        return True, ""
    matches = {
        FieldType.STRING: isinstance(value, str),
        FieldType.NUMBER: _is_number(value),
        FieldType.BOOL: isinstance(value, bool),
        FieldType.LIST: isinstance(value, list),
        FieldType.MAP: isinstance(value, dict),
    }[field_type]
    if not matches:
        return False, f"expected {field_type.value}, got {type(value).__name__}"
    return True, ""
