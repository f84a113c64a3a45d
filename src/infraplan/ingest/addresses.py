"""Resource addresses and reference token grammar."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

NAME = r"[A-Za-z_][A-Za-z0-9_-]*"
INDEX = r'\[(?:\d+|"[^"\]]*")\]'
ADDRESS_PATTERN = rf"(?:module\.{NAME}\.)*{NAME}\.{NAME}(?:{INDEX})?"

ADDRESS_RE = re.compile(
    rf'^(?P<modules>(?:module\.{NAME}\.)*)(?P<type>{NAME})\.(?P<name>{NAME})(?:\[(?P<index>\d+|"[^"\]]*")\])?$'
)
REFERENCE_RE = re.compile(rf"^(?P<address>{ADDRESS_PATTERN})\.(?P<field>{NAME})$")
INTERPOLATION_RE = re.compile(r"\$\{([^}]+)\}")

InstanceKey = Union[int, str]


@dataclass(frozen=True)
class ResourceAddress:
    """Parsed form of `[module.<m>.]*<type>.<name>[<index>]`."""

    type: str
    name: str
    module: Tuple[str, ...] = ()
    index: Optional[InstanceKey] = None

    @classmethod
    def parse(cls, text: str) -> "ResourceAddress":
        match = ADDRESS_RE.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid resource address: {text}")
        modules = tuple(
            part for part in match.group("modules").split(".")
            if part and part != "module"
        )
        raw_index = match.group("index")
        index: Optional[InstanceKey] = None
        if raw_index is not None:
            index = raw_index[1:-1] if raw_index.startswith('"') else int(raw_index)
        return cls(type=match.group("type"), name=match.group("name"), module=modules, index=index)

    @property
    def module_path(self) -> str:
        """Rendered module prefix without trailing dot, empty at root."""
        return ".".join(f"module.{m}" for m in self.module)

    def __str__(self) -> str:
        base = f"{self.type}.{self.name}"
        if self.index is not None:
            base += f"[{self.index}]" if isinstance(self.index, int) else f'["{self.index}"]'
        if self.module:
            return f"{self.module_path}.{base}"
        return base


def split_reference(expression: str) -> Optional[Tuple[str, str]]:
    """
    Split a reference expression into (address, output field).

    Returns None when the expression is not a resource reference
    (e.g. `var.name` or `count.index`).
    """
    expression = expression.strip()
    if expression.startswith(("var.", "count.", "each.")):
        return None
    match = REFERENCE_RE.match(expression)
    if match is None:
        return None
    return match.group("address"), match.group("field")


def module_tuple(module: Optional[str]) -> Tuple[str, ...]:
    """Turn a dotted declaration module (`network.subnets`) into a path tuple."""
    if not module:
        return ()
    return tuple(part for part in module.split(".") if part)
