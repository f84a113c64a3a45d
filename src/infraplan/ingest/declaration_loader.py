"""Load and validate resource declarations from YAML or JSON."""

import json
from pathlib import Path
import yaml
from pydantic import ValidationError
from .declaration_validator import validate_document_structure, get_declarations_summary
from .models import DeclarationDocument
from ..utils.errors import DeclarationLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_loader")


def load_declarations(declarations_path: str) -> DeclarationDocument:
    """
    Load and validate a declarations file.

    Files ending in `.json` are parsed as JSON, everything else as YAML.

    Args:
        declarations_path: Path to the declarations file

    Returns:
        Parsed DeclarationDocument

    Raises:
        DeclarationLoadError: If the file cannot be loaded or is invalid
    """
    path = Path(declarations_path)

    if not path.exists():
        raise DeclarationLoadError(
            f"Declarations file not found: {declarations_path}. "
            "Please check the file path and ensure the file exists."
        )

    if not path.is_file():
        raise DeclarationLoadError(f"Path is not a file: {declarations_path}.")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise DeclarationLoadError(f"Invalid JSON in declarations file: {e}")
    except yaml.YAMLError as e:
        raise DeclarationLoadError(f"Invalid YAML in declarations file: {e}")
    except OSError as e:
        raise DeclarationLoadError(
            f"Error reading declarations file: {e}. "
            "Please check file permissions and try again."
        )

    if data is None:
        data = {}

    validate_document_structure(data)

    try:
        document = DeclarationDocument(**data)
    except ValidationError as e:
        raise DeclarationLoadError(f"Invalid declarations in {declarations_path}: {e}")

    summary = get_declarations_summary(data)
    logger.info(
        f"Loaded declarations from {declarations_path} "
        f"(resources: {summary['resource_count']}, "
        f"variables: {summary['variable_count']}, "
        f"outputs: {summary['output_count']})"
    )
    return document
