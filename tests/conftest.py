"""Shared fixtures for infraplan tests."""

from pathlib import Path
import pytest
from infraplan.graph.reference_resolver import resolve
from infraplan.ingest.expansion import expand_declarations
from infraplan.ingest.models import DeclarationDocument
from infraplan.registry import load_registry

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def registry():
    """Built-in AWS schema registry."""
    return load_registry()


@pytest.fixture
def stack_path():
    """Path to the net/db/app declarations fixture."""
    return FIXTURES / "stack.yaml"


@pytest.fixture
def build_graph(registry):
    """Expand and resolve a declarations mapping into a ResourceGraph."""
    def _build(data, variables=None):
        expanded = expand_declarations(DeclarationDocument(**data), variables)
        return resolve(expanded.nodes, registry, expanded.outputs)
    return _build


@pytest.fixture
def stack_declarations():
    """A VPC, a database that references it and a service that references the database."""
    return {
        "variables": {
            "vpc_cidr": {"type": "string", "default": "10.0.0.0/16", "validators": [{"rule": "cidr"}]},
        },
        "resources": [
            {
                "type": "aws_vpc",
                "name": "net",
                "attributes": {"cidr_block": "${var.vpc_cidr}", "tags": {"Name": "net"}},
            },
            {
                "type": "aws_db_instance",
                "name": "db",
                "attributes": {
                    "engine": "postgres",
                    "identifier": "orders",
                    "tags": {"vpc": "${aws_vpc.net.id}"},
                },
            },
            {
                "type": "aws_ecs_service",
                "name": "app",
                "attributes": {
                    "name": "orders-api",
                    "cluster": "main",
                    "environment": {"DB_HOST": "${aws_db_instance.db.endpoint}"},
                },
            },
        ],
        "outputs": {
            "vpc_id": "${aws_vpc.net.id}",
            "db_url": "postgres://${aws_db_instance.db.endpoint}/orders",
        },
    }
