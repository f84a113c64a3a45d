"""Tests for the diff/plan engine."""

import pytest
from infraplan.planner import ResourceAction, plan
from infraplan.state import ResourceState, StateSnapshot
from infraplan.utils.errors import SchemaValidationError

NET = {
    "cidr_block": "10.0.0.0/16",
    "enable_dns_hostnames": False,
    "enable_dns_support": True,
    "instance_tenancy": "default",
    "tags": {"Name": "net"},
    "id": "vpc-1",
    "arn": "arn:aws:vpc:local:000000000000:vpc/vpc-1",
}
DB = {
    "allocated_storage": 20,
    "engine": "postgres",
    "identifier": "orders",
    "instance_class": "db.t3.micro",
    "multi_az": False,
    "tags": {"vpc": "vpc-1"},
    "vpc_security_group_ids": [],
    "id": "db-1",
    "endpoint": "db-1.local:5432",
}
APP = {
    "cluster": "main",
    "desired_count": 1,
    "environment": {"DB_HOST": "db-1.local:5432"},
    "launch_type": "FARGATE",
    "name": "orders-api",
    "subnets": [],
    "id": "svc-1",
}


def snapshot(**overrides):
    """State holding the applied stack, with per-address attribute overrides."""
    resources = {
        "aws_vpc.net": ResourceState(type="aws_vpc", attributes=dict(NET)),
        "aws_db_instance.db": ResourceState(type="aws_db_instance", attributes=dict(DB),
                                            dependencies=["aws_vpc.net"]),
        "aws_ecs_service.app": ResourceState(type="aws_ecs_service", attributes=dict(APP),
                                             dependencies=["aws_db_instance.db"]),
    }
    for address, attributes in overrides.items():
        resources[address].attributes.update(attributes)
    return StateSnapshot(serial=7, resources=resources)


class TestPlanActions:
    """Test action selection."""

    def test_create_everything_from_empty_state(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), StateSnapshot(), registry)
        assert result.addresses() == ["aws_vpc.net", "aws_db_instance.db", "aws_ecs_service.app"]
        assert result.addresses(ResourceAction.CREATE) == result.addresses()
        assert result.get("aws_db_instance.db").requires == ["aws_vpc.net"]
        assert result.get("aws_ecs_service.app").dependencies == ["aws_db_instance.db"]
        assert result.summary()["CREATE"] == 3
        assert result.has_changes

    def test_after_keeps_references_and_defaults(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), StateSnapshot(), registry)
        after = result.get("aws_db_instance.db").after
        assert after["tags"] == {"vpc": "${aws_vpc.net.id}"}
        assert after["allocated_storage"] == 20
        assert "engine_version" not in after

    def test_outputs_recorded(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), StateSnapshot(), registry)
        assert result.outputs == {
            "db_url": "postgres://${aws_db_instance.db.endpoint}/orders",
            "vpc_id": "${aws_vpc.net.id}",
        }

    def test_no_op_when_state_matches(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), snapshot(), registry)
        assert result.addresses(ResourceAction.NO_OP) == result.addresses()
        assert not result.has_changes
        assert result.state_serial == 7

    def test_update_in_place(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), snapshot(**{"aws_vpc.net": {"tags": {"Name": "old"}}}), registry)
        change = result.get("aws_vpc.net")
        assert change.action == ResourceAction.UPDATE
        assert change.changed_fields == ["tags"]
        assert change.replace_fields == []
        assert result.get("aws_db_instance.db").action == ResourceAction.NO_OP

    def test_force_new_field_replaces(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations),
                      snapshot(**{"aws_vpc.net": {"cidr_block": "10.9.0.0/16"}}), registry)
        change = result.get("aws_vpc.net")
        assert change.action == ResourceAction.REPLACE
        assert change.replace_fields == ["cidr_block"]
        assert change.create_before_destroy is False
        # The new VPC id is unknown, so the database tag referencing it changes.
        db = result.get("aws_db_instance.db")
        assert db.action == ResourceAction.UPDATE
        assert db.changed_fields == ["tags"]
        assert db.requires == ["aws_vpc.net"]

    def test_lifecycle_create_before_destroy(self, build_graph, stack_declarations, registry):
        stack_declarations["resources"][0]["lifecycle"] = {"create_before_destroy": True}
        result = plan(build_graph(stack_declarations),
                      snapshot(**{"aws_vpc.net": {"cidr_block": "10.9.0.0/16"}}), registry)
        assert result.get("aws_vpc.net").create_before_destroy is True

    def test_schema_create_before_destroy(self, build_graph, registry):
        graph = build_graph({"resources": [{"type": "aws_lb_target_group", "name": "tg", "attributes": {"port": 80}}]})
        state = StateSnapshot(resources={"aws_lb_target_group.tg": ResourceState(
            type="aws_lb_target_group",
            attributes={"port": 8080, "protocol": "HTTP", "target_type": "instance", "id": "tg-1"},
        )})
        change = plan(graph, state, registry).get("aws_lb_target_group.tg")
        assert change.action == ResourceAction.REPLACE
        assert change.create_before_destroy is True

    def test_ignore_changes(self, build_graph, stack_declarations, registry):
        stack_declarations["resources"][0]["lifecycle"] = {"ignore_changes": ["tags"]}
        result = plan(build_graph(stack_declarations), snapshot(**{"aws_vpc.net": {"tags": {"Name": "old"}}}), registry)
        assert result.get("aws_vpc.net").action == ResourceAction.NO_OP

    def test_orphan_is_deleted_first(self, build_graph, stack_declarations, registry):
        state = snapshot()
        state.resources["aws_sqs_queue.old"] = ResourceState(
            type="aws_sqs_queue", attributes={"id": "q-1"}, dependencies=["aws_vpc.net"],
        )
        result = plan(build_graph(stack_declarations), state, registry)
        change = result.get("aws_sqs_queue.old")
        assert change.action == ResourceAction.DELETE
        assert change.before == {"id": "q-1"}
        assert change.after is None

    def test_delete_precedes_replacement_of_its_producer(self, build_graph, registry):
        graph = build_graph({"resources": [
            {"type": "aws_vpc", "name": "net", "attributes": {"cidr_block": "10.1.0.0/16"}},
        ]})
        state = StateSnapshot(resources={
            "aws_vpc.net": ResourceState(type="aws_vpc", attributes=dict(NET)),
            "aws_subnet.old": ResourceState(type="aws_subnet", attributes={"id": "subnet-1"},
                                            dependencies=["aws_vpc.net"]),
        })
        result = plan(graph, state, registry)
        assert result.addresses() == ["aws_subnet.old", "aws_vpc.net"]
        assert result.get("aws_vpc.net").requires == ["aws_subnet.old"]

    def test_destroy_reverses_dependency_order(self, build_graph, stack_declarations, registry):
        result = plan(build_graph(stack_declarations), snapshot(), registry, destroy=True)
        assert result.destroy
        assert result.addresses(ResourceAction.DELETE) == [
            "aws_ecs_service.app", "aws_db_instance.db", "aws_vpc.net",
        ]
        assert result.outputs == {}

    def test_plan_does_not_mutate_state(self, build_graph, stack_declarations, registry):
        state = snapshot(**{"aws_vpc.net": {"tags": {"Name": "old"}}})
        before = state.model_dump()
        plan(build_graph(stack_declarations), state, registry)
        assert state.model_dump() == before

    def test_plan_is_deterministic(self, build_graph, stack_declarations, registry):
        first = plan(build_graph(stack_declarations), snapshot(**{"aws_vpc.net": {"tags": {}}}), registry)
        second = plan(build_graph(stack_declarations), snapshot(**{"aws_vpc.net": {"tags": {}}}), registry)
        assert first.to_json() == second.to_json()


class TestPlanValidation:
    """Test schema validation during planning."""

    def test_invalid_cidr(self, build_graph, registry):
        graph = build_graph({"resources": [
            {"type": "aws_vpc", "name": "net", "attributes": {"cidr_block": "not-a-cidr"}},
        ]})
        with pytest.raises(SchemaValidationError) as exc_info:
            plan(graph, StateSnapshot(), registry)
        assert exc_info.value.address == "aws_vpc.net"
        assert exc_info.value.field == "cidr_block"
        assert exc_info.value.rule == "cidr"

    def test_missing_required_field(self, build_graph, registry):
        graph = build_graph({"resources": [{"type": "aws_vpc", "name": "net"}]})
        with pytest.raises(SchemaValidationError) as exc_info:
            plan(graph, StateSnapshot(), registry)
        assert exc_info.value.rule == "required"

    def test_unknown_field(self, build_graph, registry):
        graph = build_graph({"resources": [
            {"type": "aws_vpc", "name": "net", "attributes": {"cidr_block": "10.0.0.0/16", "colour": "blue"}},
        ]})
        with pytest.raises(SchemaValidationError) as exc_info:
            plan(graph, StateSnapshot(), registry)
        assert exc_info.value.field == "colour"
        assert exc_info.value.rule == "unknown_field"

    def test_type_mismatch(self, build_graph, registry):
        graph = build_graph({"resources": [
            {"type": "aws_db_instance", "name": "db", "attributes": {"engine": "postgres", "allocated_storage": "big"}},
        ]})
        with pytest.raises(SchemaValidationError) as exc_info:
            plan(graph, StateSnapshot(), registry)
        assert exc_info.value.rule == "type"

    def test_resolved_reference_is_validated(self, build_graph, registry):
        """A reference whose value is known from state is checked like a literal."""
        graph = build_graph({"resources": [
            {"type": "aws_vpc", "name": "net", "attributes": {"cidr_block": "10.0.0.0/16", "tags": {"Name": "net"}}},
            {"type": "aws_subnet", "name": "a",
             "attributes": {"vpc_id": "${aws_vpc.net.id}", "cidr_block": "${aws_vpc.net.instance_tenancy}"}},
        ]})
        state = StateSnapshot(resources={"aws_vpc.net": ResourceState(type="aws_vpc", attributes=dict(NET))})
        with pytest.raises(SchemaValidationError) as exc_info:
            plan(graph, state, registry)
        assert exc_info.value.address == "aws_subnet.a"
        assert exc_info.value.rule == "cidr"

    def test_unknown_reference_is_not_validated(self, build_graph, registry):
        """Values known only after apply pass planning."""
        graph = build_graph({"resources": [
            {"type": "aws_vpc", "name": "net", "attributes": {"cidr_block": "10.0.0.0/16"}},
            {"type": "aws_subnet", "name": "a",
             "attributes": {"vpc_id": "${aws_vpc.net.id}", "cidr_block": "${aws_vpc.net.arn}"}},
        ]})
        result = plan(graph, StateSnapshot(), registry)
        assert result.get("aws_subnet.a").action == ResourceAction.CREATE
