"""Tagged attribute values.

Declarations arrive as loosely-typed YAML/JSON. They are converted once into
these variants so that references stay explicit through planning and
execution instead of hiding inside strings.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Tuple, Union
from .addresses import INTERPOLATION_RE, split_reference


class _Unknown:
    """Placeholder for a value that is only known after apply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "(known after apply)"

    def __bool__(self) -> bool:
        return False


UNKNOWN = _Unknown()


@dataclass(frozen=True)
class StringValue:
    value: str
    kind = "string"


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float]
    kind = "number"


@dataclass(frozen=True)
class BoolValue:
    value: bool
    kind = "bool"


@dataclass(frozen=True)
class ListValue:
    items: Tuple["Value", ...]
    kind = "list"


@dataclass(frozen=True)
class MapValue:
    entries: Tuple[Tuple[str, "Value"], ...]
    kind = "map"


@dataclass(frozen=True)
class ReferenceValue:
    address: str
    field: str
    kind = "reference"

    @property
    def token(self) -> str:
        return f"{self.address}.{self.field}"


@dataclass(frozen=True)
class TemplateValue:
    """A string with one or more embedded references."""
    parts: Tuple[Union[str, ReferenceValue], ...]
    kind = "template"


Value = Union[StringValue, NumberValue, BoolValue, ListValue, MapValue, ReferenceValue, TemplateValue]

# Resolves (address, field) to a concrete value or UNKNOWN.
ReferenceLookup = Callable[[str, str], Any]


def parse_value(raw: Any) -> Value:
    """
    Convert a raw declaration value into its tagged variant.

    Raises:
        ValueError: If the value is of an unsupported type or a string holds
            an interpolation that is not a resource reference
    """
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        return NumberValue(raw)
    if isinstance(raw, str):
        return _parse_string(raw)
    if isinstance(raw, (list, tuple)):
        return ListValue(tuple(parse_value(item) for item in raw))
    if isinstance(raw, dict):
        return MapValue(tuple((str(k), parse_value(v)) for k, v in raw.items() if v is not None))
    raise ValueError(f"Unsupported value type: {type(raw).__name__}")


def _parse_string(raw: str) -> Value:
    matches = list(INTERPOLATION_RE.finditer(raw))
    if not matches:
        return StringValue(raw)

    parts = []
    cursor = 0
    for match in matches:
        reference = split_reference(match.group(1))
        if reference is None:
            raise ValueError(f"Invalid reference expression: ${{{match.group(1)}}}")
        if match.start() > cursor:
            parts.append(raw[cursor:match.start()])
        parts.append(ReferenceValue(*reference))
        cursor = match.end()
    if cursor < len(raw):
        parts.append(raw[cursor:])

    if len(parts) == 1 and isinstance(parts[0], ReferenceValue):
        return parts[0]
    return TemplateValue(tuple(parts))


def to_raw(value: Value) -> Any:
    """Render a value back to its declaration form (references as `${...}`)."""
    if isinstance(value, (StringValue, NumberValue, BoolValue)):
        return value.value
    if isinstance(value, ListValue):
        return [to_raw(item) for item in value.items]
    if isinstance(value, MapValue):
        return {key: to_raw(item) for key, item in value.entries}
    if isinstance(value, ReferenceValue):
        return f"${{{value.token}}}"
    if isinstance(value, TemplateValue):
        return "".join(
            f"${{{part.token}}}" if isinstance(part, ReferenceValue) else part
            for part in value.parts
        )
    raise TypeError(f"Not a value: {value!r}")


def iter_references(value: Value) -> Iterator[ReferenceValue]:
    """Yield every reference token contained in a value, in declaration order."""
    if isinstance(value, ReferenceValue):
        yield value
    elif isinstance(value, TemplateValue):
        for part in value.parts:
            if isinstance(part, ReferenceValue):
                yield part
    elif isinstance(value, ListValue):
        for item in value.items:
            yield from iter_references(item)
    elif isinstance(value, MapValue):
        for _, item in value.entries:
            yield from iter_references(item)


def map_references(value: Value, fn: Callable[[ReferenceValue], ReferenceValue]) -> Value:
    """Return a copy of value with every reference replaced by fn(reference)."""
    if isinstance(value, ReferenceValue):
        return fn(value)
    if isinstance(value, TemplateValue):
        return TemplateValue(tuple(
            fn(part) if isinstance(part, ReferenceValue) else part for part in value.parts
        ))
    if isinstance(value, ListValue):
        return ListValue(tuple(map_references(item, fn) for item in value.items))
    if isinstance(value, MapValue):
        return MapValue(tuple((key, map_references(item, fn)) for key, item in value.entries))
    return value


def evaluate(value: Value, lookup: ReferenceLookup) -> Any:
    """
    Evaluate a value to plain Python data.

    Returns UNKNOWN if any reference inside the value cannot be resolved yet.
    """
    if isinstance(value, (StringValue, NumberValue, BoolValue)):
        return value.value
    if isinstance(value, ReferenceValue):
        return lookup(value.address, value.field)
    if isinstance(value, TemplateValue):
        pieces = []
        for part in value.parts:
            if isinstance(part, ReferenceValue):
                resolved = lookup(part.address, part.field)
                if resolved is UNKNOWN:
                    return UNKNOWN
                pieces.append(stringify(resolved))
            else:
                pieces.append(part)
        return "".join(pieces)
    if isinstance(value, ListValue):
        items = [evaluate(item, lookup) for item in value.items]
        return UNKNOWN if any(item is UNKNOWN for item in items) else items
    if isinstance(value, MapValue):
        entries = {key: evaluate(item, lookup) for key, item in value.entries}
        return UNKNOWN if any(item is UNKNOWN for item in entries.values()) else entries
    raise TypeError(f"Not a value: {value!r}")


def stringify(value: Any) -> str:
    """Render a concrete value for string interpolation."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def parse_attributes(raw: Dict[str, Any]) -> Dict[str, Value]:
    """Parse a raw attribute mapping; null attributes are treated as unset."""
    return {name: parse_value(item) for name, item in raw.items() if item is not None}
