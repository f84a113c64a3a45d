"""Resource registry: schemas and validation predicates per resource type."""

from .models import FieldType, FieldSchema, ResourceSchema, ValidatorSpec
from .registry import SchemaRegistry, load_registry, load_schema_file
from .validators import run_validator, check_type

__all__ = [
    "FieldType",
    "FieldSchema",
    "ResourceSchema",
    "ValidatorSpec",
    "SchemaRegistry",
    "load_registry",
    "load_schema_file",
    "run_validator",
    "check_type",
]
