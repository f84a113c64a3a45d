"""Validate declarations document structure."""

from typing import Any, Dict
from ..utils.errors import DeclarationLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_validator")

KNOWN_SECTIONS = ("variables", "resources", "outputs")


def validate_document_structure(data: Any) -> None:
    """
    Validate the top-level shape of a declarations document.

    Field-level validation happens when the document is parsed into models;
    this check produces friendlier messages for the common mistakes.

    Args:
        data: Parsed YAML/JSON document

    Raises:
        DeclarationLoadError: If the structure is invalid
    """
    if not isinstance(data, dict):
        raise DeclarationLoadError(
            "Declarations must be a mapping with 'resources', 'variables' and 'outputs' sections."
        )

    unknown = [key for key in data if key not in KNOWN_SECTIONS]
    if unknown:
        raise DeclarationLoadError(
            f"Unknown top-level sections: {', '.join(sorted(unknown))}. "
            f"Supported sections: {', '.join(KNOWN_SECTIONS)}"
        )

    if "resources" not in data:
        logger.warning("Declarations missing 'resources' section - nothing will be managed")

    resources = data.get("resources") or []
    if not isinstance(resources, list):
        raise DeclarationLoadError("'resources' must be a list of resource blocks")

    for idx, resource in enumerate(resources):
        if not isinstance(resource, dict):
            raise DeclarationLoadError(f"Resource at index {idx} must be a mapping")
        missing = [key for key in ("type", "name") if key not in resource]
        if missing:
            raise DeclarationLoadError(
                f"Resource at index {idx} missing required fields: {', '.join(missing)}"
            )

    for section in ("variables", "outputs"):
        value = data.get(section)
        if value is not None and not isinstance(value, dict):
            raise DeclarationLoadError(f"'{section}' must be a mapping")

    logger.debug("Declarations structure validation passed")


def get_declarations_summary(data: Dict[str, Any]) -> Dict[str, Any]:
    """Extract summary counts from a validated document."""
    resources = data.get("resources") or []
    modules = sorted({r.get("module") for r in resources if r.get("module")})
    return {
        "resource_count": len(resources),
        "variable_count": len(data.get("variables") or {}),
        "output_count": len(data.get("outputs") or {}),
        "modules": modules,
    }
