"""Tests for loading declaration files."""

import json
import pytest
from infraplan.ingest.declaration_loader import load_declarations
from infraplan.ingest.declaration_validator import get_declarations_summary, validate_document_structure
from infraplan.utils.errors import DeclarationLoadError


class TestLoadDeclarations:
    """Test declaration file loading."""

    def test_load_yaml(self, stack_path):
        """YAML declarations parse into a document."""
        document = load_declarations(str(stack_path))
        assert [f"{r.type}.{r.name}" for r in document.resources] == [
            "aws_vpc.net", "aws_db_instance.db", "aws_ecs_service.app",
        ]
        assert document.variables["vpc_cidr"].default == "10.0.0.0/16"
        assert document.outputs["vpc_id"] == "${aws_vpc.net.id}"

    def test_load_json(self, tmp_path, stack_declarations):
        """Files ending in .json are parsed as JSON."""
        path = tmp_path / "stack.json"
        path.write_text(json.dumps(stack_declarations))
        document = load_declarations(str(path))
        assert len(document.resources) == 3

    def test_missing_file(self, tmp_path):
        """Missing files raise DeclarationLoadError."""
        with pytest.raises(DeclarationLoadError, match="not found"):
            load_declarations(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML raises DeclarationLoadError."""
        path = tmp_path / "broken.yaml"
        path.write_text("resources: [\n  - type: aws_vpc\n")
        with pytest.raises(DeclarationLoadError, match="Invalid YAML"):
            load_declarations(str(path))

    def test_empty_file(self, tmp_path):
        """An empty file is an empty document."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        document = load_declarations(str(path))
        assert document.resources == []

    def test_count_and_for_each_are_exclusive(self, tmp_path):
        """A resource cannot use both count and for_each."""
        path = tmp_path / "both.yaml"
        path.write_text(
            "resources:\n"
            "  - type: aws_sqs_queue\n"
            "    name: q\n"
            "    count: 2\n"
            "    for_each: [a, b]\n"
        )
        with pytest.raises(DeclarationLoadError, match="mutually exclusive"):
            load_declarations(str(path))

    def test_invalid_name(self, tmp_path):
        """Resource names must be identifiers."""
        path = tmp_path / "name.yaml"
        path.write_text("resources:\n  - type: aws_vpc\n    name: 'my vpc'\n")
        with pytest.raises(DeclarationLoadError):
            load_declarations(str(path))


class TestDocumentStructure:
    """Test top-level structure validation."""

    def test_not_a_mapping(self):
        with pytest.raises(DeclarationLoadError, match="mapping"):
            validate_document_structure(["aws_vpc"])

    def test_unknown_section(self):
        with pytest.raises(DeclarationLoadError, match="Unknown top-level sections: providers"):
            validate_document_structure({"resources": [], "providers": {}})

    def test_resource_missing_name(self):
        with pytest.raises(DeclarationLoadError, match="missing required fields: name"):
            validate_document_structure({"resources": [{"type": "aws_vpc"}]})

    def test_summary(self, stack_declarations):
        summary = get_declarations_summary(stack_declarations)
        assert summary["resource_count"] == 3
        assert summary["variable_count"] == 1
        assert summary["output_count"] == 2
