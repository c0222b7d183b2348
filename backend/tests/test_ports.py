# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for port types and node port schemas
"""

import pytest

from flowgraph.core.errors import SchemaError
from flowgraph.ports import (
    NODE_PORT_SCHEMAS,
    PortDataType,
    is_compatible,
    is_compatible_with_any,
    is_conditional,
    schema_for,
)
from flowgraph.workflow_nodes import NodeType


class TestCompatibility:
    """Type compatibility table"""

    def test_same_type_is_compatible(self):
        """Every type flows into itself"""
        for data_type in PortDataType:
            assert is_compatible(data_type, data_type)

    def test_any_accepts_everything(self):
        """An accepted type of any matches every produced type"""
        for data_type in PortDataType:
            assert is_compatible(data_type, PortDataType.ANY)
        assert is_compatible("not-a-type", "any")

    def test_number_stringifies(self):
        """Numbers may flow into string ports but not the reverse"""
        assert is_compatible("number", "string")
        assert not is_compatible("string", "number")

    def test_http_response_is_json(self):
        """HTTP responses flow into json ports only"""
        assert is_compatible("http_response", "json")
        assert not is_compatible("http_response", "string")

    def test_unknown_types_never_match(self):
        """Unknown types return False instead of raising"""
        assert not is_compatible("bogus", "string")
        assert not is_compatible("string", "bogus")
        assert not is_compatible(None, "json")

    def test_compatible_with_any_of_list(self):
        """At least one accepted type must match"""
        assert is_compatible_with_any("email_address", ["number", "string"])
        assert not is_compatible_with_any("binary", ["number", "string"])


class TestPortSchemas:
    """Per-kind port declarations"""

    def test_every_kind_has_schema(self):
        """All node kinds are registered"""
        assert set(NODE_PORT_SCHEMAS) == set(NodeType)

    def test_triggers_have_no_inputs(self):
        """Triggers only produce"""
        for kind in (NodeType.MANUAL_TRIGGER, NodeType.WEBHOOK_TRIGGER):
            schema = schema_for(kind)
            assert schema.inputs == ()
            assert schema.get_input(None) is None

    def test_non_trigger_kinds_have_one_default_input(self):
        """Every other kind declares exactly the default input, identified by id, label and types"""
        for kind, schema in NODE_PORT_SCHEMAS.items():
            if kind.is_trigger:
                continue
            (port,) = schema.inputs
            assert port.id == "input"
            assert set(port.model_dump()) == {"id", "label", "accepted_types"}

    def test_http_is_conditional(self):
        """HTTP routes through success and error"""
        schema = schema_for("action:http")
        assert schema.is_conditional
        assert schema.required_labels == ["success", "error"]
        assert schema.get_output("success").data_type == PortDataType.HTTP_RESPONSE
        assert schema.get_output(None) is None

    def test_if_else_labels(self):
        """If/else exposes true and false"""
        assert schema_for(NodeType.IF_ELSE).required_labels == ["true", "false"]
        assert is_conditional("logic:if-else")

    def test_default_ports(self):
        """No handle resolves to the default input and output"""
        schema = schema_for(NodeType.EMAIL_ACTION)
        assert schema.get_input(None).id == "input"
        assert schema.get_output(None).id == "output"
        assert schema.required_labels == []
        assert not is_conditional(NodeType.EMAIL_ACTION)

    def test_unknown_kind_raises(self):
        """Unknown kinds are programming errors"""
        with pytest.raises(SchemaError):
            schema_for("action:fax")
