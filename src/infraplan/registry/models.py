"""Pydantic models for resource type schemas."""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class FieldType(str, Enum):
    """Attribute value types a schema can declare."""
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    LIST = "list"
    MAP = "map"
    ANY = "any"


class ValidatorSpec(BaseModel):
    """A single validation rule attached to a field."""
    rule: str = Field(..., description="Predicate name: cidr, enum, range, regex, length")
    values: Optional[List[Any]] = Field(None, description="Allowed values for enum")
    min: Optional[float] = Field(None, description="Lower bound for range/length")
    max: Optional[float] = Field(None, description="Upper bound for range/length")
    pattern: Optional[str] = Field(None, description="Regular expression for regex")
    message: Optional[str] = Field(None, description="Custom failure message")


class FieldSchema(BaseModel):
    """Schema of one declared attribute."""
    type: FieldType = Field(FieldType.STRING, description="Value type")
    required: bool = Field(False, description="Whether the field must be declared")
    default: Any = Field(None, description="Value used when the field is not declared")
    force_new: bool = Field(False, description="Changing this field requires replacement")
    validators: List[ValidatorSpec] = Field(default_factory=list, description="Validation predicates")


class ResourceSchema(BaseModel):
    """Schema of a resource type: declared fields, computed outputs, lifecycle."""
    type: str = Field(..., description="Resource type name, e.g. aws_vpc")
    fields: Dict[str, FieldSchema] = Field(default_factory=dict, description="Declared attributes")
    outputs: List[str] = Field(default_factory=lambda: ["id"], description="Computed attributes")
    create_before_destroy: bool = Field(False, description="Replace by creating the new object first")

    def has_output(self, name: str) -> bool:
        """Whether `name` can be referenced on a resource of this type."""
        return name in self.fields or name in self.outputs

    def computed_outputs(self) -> List[str]:
        """Computed outputs, always including id."""
        outputs = list(self.outputs)
        if "id" not in outputs:
            outputs.insert(0, "id")
        return outputs
