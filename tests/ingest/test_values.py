"""Tests for tagged attribute values."""

import pytest
from infraplan.ingest.addresses import ResourceAddress, split_reference
from infraplan.ingest.values import (
    UNKNOWN, BoolValue, ListValue, MapValue, NumberValue, ReferenceValue, StringValue, TemplateValue,
    evaluate, iter_references, parse_value, to_raw,
)


class TestParseValue:
    """Test conversion of raw values into variants."""

    def test_scalars(self):
        assert parse_value("x") == StringValue("x")
        assert parse_value(3) == NumberValue(3)
        assert parse_value(True) == BoolValue(True)

    def test_reference(self):
        value = parse_value("${module.net.aws_subnet.a[0].id}")
        assert value == ReferenceValue("module.net.aws_subnet.a[0]", "id")
        assert value.token == "module.net.aws_subnet.a[0].id"

    def test_nested(self):
        value = parse_value({"ids": ["${aws_vpc.a.id}", "static"], "on": True, "gone": None})
        assert isinstance(value, MapValue)
        assert dict(value.entries)["ids"] == ListValue((ReferenceValue("aws_vpc.a", "id"), StringValue("static")))
        assert "gone" not in dict(value.entries)
        assert [r.token for r in iter_references(value)] == ["aws_vpc.a.id"]

    def test_unresolved_variable_is_invalid(self):
        """Variables must be substituted before values are parsed."""
        with pytest.raises(ValueError, match="Invalid reference expression"):
            parse_value("${var.name}")

    def test_to_raw_restores_declaration_form(self):
        raw = {"name": "web-${aws_lb.web.dns_name}", "port": 80, "ids": ["${aws_vpc.a.id}"]}
        assert to_raw(parse_value(raw)) == raw


class TestEvaluate:
    """Test evaluation against a lookup."""

    def test_resolves_references(self):
        value = parse_value({"url": "https://${aws_lb.web.dns_name}/", "zone": "${aws_lb.web.zone_id}"})
        lookup = {("aws_lb.web", "dns_name"): "lb.example.com", ("aws_lb.web", "zone_id"): "Z1"}
        assert evaluate(value, lambda a, f: lookup[(a, f)]) == {"url": "https://lb.example.com/", "zone": "Z1"}

    def test_unknown_propagates(self):
        value = parse_value(["a", "prefix-${aws_vpc.a.id}"])
        assert evaluate(value, lambda a, f: UNKNOWN) is UNKNOWN

    def test_template_stringifies(self):
        value = TemplateValue(("on=", ReferenceValue("x.y", "flag")))
        assert evaluate(value, lambda a, f: True) == "on=true"


class TestAddresses:
    """Test address grammar."""

    def test_parse_and_render(self):
        address = ResourceAddress.parse('module.app.aws_sqs_queue.jobs["fast"]')
        assert address.module == ("app",)
        assert address.index == "fast"
        assert str(address) == 'module.app.aws_sqs_queue.jobs["fast"]'

    def test_invalid_address(self):
        with pytest.raises(ValueError):
            ResourceAddress.parse("aws_vpc")

    def test_split_reference(self):
        assert split_reference("aws_vpc.net.id") == ("aws_vpc.net", "id")
        assert split_reference("var.region") is None
        assert split_reference("count.index") is None
        assert split_reference("aws_vpc") is None
