# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for node kinds and payload parsing
"""

import pytest

from flowgraph.core.errors import SchemaError, ValidationError
from flowgraph.workflow_models import WorkflowNode
from flowgraph.workflow_nodes import (
    AuthApiKey,
    Condition,
    ConditionOperator,
    HttpActionData,
    NodeType,
    TransformData,
    create_default_node_data,
    merge_node_data,
    node_type_of,
    parse_node_data,
)


def test_trigger_kinds():
    """Only trigger:* kinds are triggers"""
    assert NodeType.MANUAL_TRIGGER.is_trigger
    assert NodeType.WEBHOOK_TRIGGER.is_trigger
    assert not NodeType.HTTP_ACTION.is_trigger


def test_unknown_kind():
    """Unknown kind strings raise SchemaError"""
    with pytest.raises(SchemaError):
        node_type_of("action:fax")
    with pytest.raises(SchemaError):
        parse_node_data({"type": "action:fax"})
    with pytest.raises(SchemaError):
        parse_node_data({"label": "no type"})


def test_parse_camel_case_payload():
    """Persisted camelCase names map onto the typed payload"""
    data = parse_node_data({
        "type": "action:http",
        "url": "https://api.example.com",
        "method": "POST",
        "bodyType": "raw",
        "auth": {"type": "api-key", "key": "X-Key", "value": "secret"},
    })
    assert isinstance(data, HttpActionData)
    assert data.body_type == "raw"
    assert isinstance(data.auth, AuthApiKey)
    assert data.auth.location == "header"


def test_invalid_payload_raises_validation_error():
    """Shape errors surface as ValidationError"""
    with pytest.raises(ValidationError):
        parse_node_data({"type": "logic:delay", "delayValue": -1})
    with pytest.raises(ValidationError):
        parse_node_data({"type": "action:http", "method": "TRACE"})


def test_condition_operator_aliases():
    """gt / lt are accepted and logicalOp is uppercased"""
    condition = Condition.model_validate({"field": "n", "operator": "gt", "value": "1", "logicalOp": "or"})
    assert condition.operator == ConditionOperator.GREATER_THAN
    assert condition.logical_op == "OR"
    assert condition.describe() == "n greaterThan 1"


def test_default_node_data():
    """New nodes get the kind's default label"""
    data = create_default_node_data("logic:transform")
    assert isinstance(data, TransformData)
    assert data.label == "Transform"
    assert data.mappings == []


def test_node_kind_must_match_payload():
    """A node's kind and its payload tag agree"""
    node = WorkflowNode.model_validate({"id": "n1", "type": "logic:delay", "data": {"delayValue": 2}})
    assert node.data.type == "logic:delay"
    assert node.label == "n1"

    with pytest.raises(ValueError):
        WorkflowNode.model_validate({"id": "n2", "type": "logic:delay", "data": {"type": "action:sms"}})


def test_merge_keeps_nested_values_and_type():
    """Merging keeps untouched fields, including nested models, and the type tag"""
    current = parse_node_data({
        "type": "action:http",
        "url": "https://api.example.com",
        "auth": {"type": "api-key", "key": "X-Key", "value": "secret"},
        "bodyType": "raw",
    })
    merged = merge_node_data(current, {"body_type": "json", "type": "action:sms"})

    assert isinstance(merged, HttpActionData)
    assert merged.body_type == "json"
    assert merged.url == "https://api.example.com"
    assert isinstance(merged.auth, AuthApiKey)
    assert merged.auth.value == "secret"
