"""Catalog of resource type schemas loaded from YAML."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional
import yaml
from pydantic import ValidationError
from .models import ResourceSchema
from ..utils.errors import ConfigError, UnknownTypeError
from ..utils.logging import get_logger

logger = get_logger("registry.registry")

BUILTIN_SCHEMA_PATH = Path(__file__).parent / "aws_schemas.yaml"


class SchemaRegistry:
    """Read-only lookup of resource schemas by type name."""

    def __init__(self, schemas: Optional[Iterable[ResourceSchema]] = None):
        self._schemas: Dict[str, ResourceSchema] = {}
        for schema in schemas or []:
            self.register(schema)

    def register(self, schema: ResourceSchema) -> None:
        """Add or replace a schema. Only used while the registry is being built."""
        if schema.type in self._schemas:
            logger.debug(f"Overriding schema for {schema.type}")
        self._schemas[schema.type] = schema

    def get_schema(self, resource_type: str, address: Optional[str] = None) -> ResourceSchema:
        """
        Look up the schema for a resource type.

        Args:
            resource_type: Resource type name (e.g. aws_vpc)
            address: Optional declaring address, used in the error message

        Returns:
            The registered ResourceSchema

        Raises:
            UnknownTypeError: If the type has no schema
        """
        try:
            return self._schemas[resource_type]
        except KeyError:
            raise UnknownTypeError(resource_type, address) from None

    def has_type(self, resource_type: str) -> bool:
        return resource_type in self._schemas

    def types(self) -> List[str]:
        return sorted(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)


def load_schema_file(schema_path: Path) -> List[ResourceSchema]:
    """
    Load resource schemas from a YAML file.

    The file maps resource type names to schema bodies (fields, outputs,
    create_before_destroy).

    Raises:
        ConfigError: If the file is missing or malformed
    """
    schema_path = Path(schema_path)
    if not schema_path.exists():
        raise ConfigError(f"Schema file not found: {schema_path}")

    try:
        with open(schema_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in schema file {schema_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Schema file {schema_path} must contain a mapping of resource types")

    schemas = []
    for resource_type, body in data.items():
        try:
            schemas.append(ResourceSchema(type=resource_type, **(body or {})))
        except ValidationError as e:
            raise ConfigError(f"Invalid schema for '{resource_type}' in {schema_path}: {e}")

    logger.debug(f"Loaded {len(schemas)} schemas from {schema_path}")
    return schemas


def load_registry(extra_paths: Optional[Iterable[str]] = None, include_builtin: bool = True) -> SchemaRegistry:
    """Build a registry from the built-in AWS catalog plus any extra schema files."""
    registry = SchemaRegistry()
    if include_builtin:
        for schema in load_schema_file(BUILTIN_SCHEMA_PATH):
            registry.register(schema)
    for path in extra_paths or []:
        for schema in load_schema_file(Path(path)):
            registry.register(schema)
    logger.info(f"Schema registry ready with {len(registry)} resource types")
    return registry
