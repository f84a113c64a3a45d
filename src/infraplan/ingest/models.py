"""Models for declaration documents and expanded resource nodes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from pydantic import BaseModel, Field, model_validator
from .addresses import NAME, InstanceKey
from .values import Value
from ..registry.models import FieldType, ValidatorSpec


class VariableDeclaration(BaseModel):
    """Input variable with an optional default and validation rules."""
    type: FieldType = Field(FieldType.ANY, description="Expected value type")
    default: Any = Field(None, description="Value used when no override is given")
    description: Optional[str] = Field(None, description="Human-readable description")
    validators: List[ValidatorSpec] = Field(default_factory=list, description="Validation predicates")


class LifecycleOptions(BaseModel):
    """Per-declaration lifecycle overrides."""
    create_before_destroy: Optional[bool] = Field(None, description="Override the schema replacement order")
    ignore_changes: List[str] = Field(default_factory=list, description="Fields excluded from diffing")


class ResourceDeclaration(BaseModel):
    """One resource block as written in a declarations file."""
    type: str = Field(..., pattern=f"^{NAME}$", description="Resource type, e.g. aws_vpc")
    name: str = Field(..., pattern=f"^{NAME}$", description="Local name")
    module: Optional[str] = Field(None, description="Dotted module path, e.g. network.subnets")
    count: Optional[int] = Field(None, ge=0, description="Number of instances to create")
    for_each: Optional[Union[Dict[str, Any], List[str]]] = Field(None, description="Instance keys (and values)")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependency addresses")
    lifecycle: LifecycleOptions = Field(default_factory=LifecycleOptions)
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Desired attribute values")

    @model_validator(mode="after")
    def _check_fan_out(self) -> "ResourceDeclaration":
        if self.count is not None and self.for_each is not None:
            raise ValueError("count and for_each are mutually exclusive")
        return self


class DeclarationDocument(BaseModel):
    """A full declarations file."""
    variables: Dict[str, VariableDeclaration] = Field(default_factory=dict)
    resources: List[ResourceDeclaration] = Field(default_factory=list)
    outputs: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ResourceNode:
    """A single declared resource instance after expansion."""

    address: str
    type: str
    name: str
    module: Tuple[str, ...] = ()
    index: Optional[InstanceKey] = None
    attributes: Dict[str, Value] = field(default_factory=dict)
    depends_on: Tuple[str, ...] = ()
    create_before_destroy: Optional[bool] = None
    ignore_changes: Tuple[str, ...] = ()

    @property
    def module_path(self) -> str:
        return ".".join(f"module.{m}" for m in self.module)


@dataclass(frozen=True)
class ExpandedDeclarations:
    """Expansion result: one node per instance plus output expressions."""

    nodes: List[ResourceNode]
    outputs: Dict[str, Value] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
