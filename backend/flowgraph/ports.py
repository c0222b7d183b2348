# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Port types and per-kind port schemas.

TYPE_COMPATIBILITY is the single source of truth for which produced value
type may flow into which accepted port type. NODE_PORT_SCHEMAS declares the
fixed input/output ports of every node kind; conditional kinds expose more
than one labeled output, each of which should be wired.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from .core.errors import SchemaError
from .workflow_nodes import NodeType


class PortDataType(str, Enum):
    """Value types a port can produce or accept."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
    ARRAY = "array"
    BINARY = "binary"
    EMAIL_ADDRESS = "email_address"
    PHONE_NUMBER = "phone_number"
    URL = "url"
    HTTP_RESPONSE = "http_response"
    ANY = "any"
    TRIGGER_PAYLOAD = "trigger_payload"


class ConditionalLabel(str, Enum):
    """Labels used by conditional output ports."""
    TRUE = "true"
    FALSE = "false"
    SUCCESS = "success"
    ERROR = "error"
    MATCH = "match"
    NO_MATCH = "no_match"
    CONTINUE = "continue"
    BREAK = "break"
    COMPLETE = "complete"


DEFAULT_INPUT_PORT = "input"
DEFAULT_OUTPUT_PORT = "output"


# ============================================================================
# Type Compatibility Table
# ============================================================================

_T = PortDataType

# produced type -> accepted types it may flow into
TYPE_COMPATIBILITY: Dict[PortDataType, FrozenSet[PortDataType]] = {
    _T.STRING: frozenset({_T.STRING, _T.ANY}),
    # numbers and booleans stringify losslessly
    _T.NUMBER: frozenset({_T.NUMBER, _T.STRING, _T.ANY}),
    _T.BOOLEAN: frozenset({_T.BOOLEAN, _T.STRING, _T.ANY}),
    _T.JSON: frozenset({_T.JSON, _T.STRING, _T.ANY}),
    _T.ARRAY: frozenset({_T.ARRAY, _T.JSON, _T.ANY}),
    _T.BINARY: frozenset({_T.BINARY, _T.ANY}),
    _T.EMAIL_ADDRESS: frozenset({_T.EMAIL_ADDRESS, _T.STRING, _T.ANY}),
    _T.PHONE_NUMBER: frozenset({_T.PHONE_NUMBER, _T.STRING, _T.ANY}),
    _T.URL: frozenset({_T.URL, _T.STRING, _T.ANY}),
    _T.HTTP_RESPONSE: frozenset({_T.HTTP_RESPONSE, _T.JSON, _T.ANY}),
    _T.ANY: frozenset(PortDataType),
    _T.TRIGGER_PAYLOAD: frozenset({_T.TRIGGER_PAYLOAD, _T.JSON, _T.ANY}),
}


def _coerce_type(value) -> Optional[PortDataType]:
    try:
        return PortDataType(value)
    except ValueError:
        return None


def is_compatible(produced_type, accepted_type) -> bool:
    """
    Check whether a produced value type may flow into an accepted port type.

    An accepted type of "any" always matches. Unknown types never match.
    Never raises.
    """
    accepted = _coerce_type(accepted_type)
    if accepted is None:
        return False
    if accepted == PortDataType.ANY:
        return True

    produced = _coerce_type(produced_type)
    if produced is None:
        return False
    return accepted in TYPE_COMPATIBILITY.get(produced, frozenset())


def is_compatible_with_any(produced_type, accepted_types) -> bool:
    """True if the produced type may flow into at least one accepted type."""
    return any(is_compatible(produced_type, accepted) for accepted in accepted_types)


# ============================================================================
# Port Schemas
# ============================================================================

class InputPort(BaseModel):
    """Named input attachment point with its accepted types."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    accepted_types: Tuple[PortDataType, ...]


class OutputPort(BaseModel):
    """Named output attachment point with its produced type."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    data_type: PortDataType
    conditional_label: Optional[ConditionalLabel] = None


class NodePortSchema(BaseModel):
    """Static port declaration for one node kind."""
    model_config = ConfigDict(frozen=True)

    node_type: NodeType
    inputs: Tuple[InputPort, ...] = Field(default_factory=tuple)
    outputs: Tuple[OutputPort, ...] = Field(default_factory=tuple)
    is_conditional: bool = False

    def get_input(self, port_id: Optional[str]) -> Optional[InputPort]:
        """Resolve an input port; no handle means the default input."""
        port_id = port_id or DEFAULT_INPUT_PORT
        for port in self.inputs:
            if port.id == port_id:
                return port
        return None

    def get_output(self, port_id: Optional[str]) -> Optional[OutputPort]:
        """Resolve an output port; no handle means the default output."""
        port_id = port_id or DEFAULT_OUTPUT_PORT
        for port in self.outputs:
            if port.id == port_id:
                return port
        return None

    @property
    def required_labels(self) -> List[str]:
        """Output labels that must each carry an outgoing edge."""
        if not self.is_conditional:
            return []
        return [port.id for port in self.outputs if port.conditional_label is not None]


def _input(label: str, *types: PortDataType) -> InputPort:
    return InputPort(id=DEFAULT_INPUT_PORT, label=label, accepted_types=types or (PortDataType.ANY,))


def _output(label: str, data_type: PortDataType) -> OutputPort:
    return OutputPort(id=DEFAULT_OUTPUT_PORT, label=label, data_type=data_type)


def _branch(label: ConditionalLabel, title: str, data_type: PortDataType) -> OutputPort:
    return OutputPort(id=label.value, label=title, data_type=data_type, conditional_label=label)


NODE_PORT_SCHEMAS: Dict[NodeType, NodePortSchema] = {
    # Triggers
    NodeType.MANUAL_TRIGGER: NodePortSchema(
        node_type=NodeType.MANUAL_TRIGGER,
        outputs=(_output("Trigger Data", PortDataType.TRIGGER_PAYLOAD),),
    ),
    NodeType.WEBHOOK_TRIGGER: NodePortSchema(
        node_type=NodeType.WEBHOOK_TRIGGER,
        outputs=(_output("Webhook Payload", PortDataType.JSON),),
    ),

    # Actions
    NodeType.HTTP_ACTION: NodePortSchema(
        node_type=NodeType.HTTP_ACTION,
        inputs=(_input("Request Data"),),
        outputs=(
            _branch(ConditionalLabel.SUCCESS, "Success", PortDataType.HTTP_RESPONSE),
            _branch(ConditionalLabel.ERROR, "Error", PortDataType.HTTP_RESPONSE),
        ),
        is_conditional=True,
    ),
    NodeType.EMAIL_ACTION: NodePortSchema(
        node_type=NodeType.EMAIL_ACTION,
        inputs=(_input("Email Data"),),
        outputs=(_output("Result", PortDataType.JSON),),
    ),
    NodeType.SMS_ACTION: NodePortSchema(
        node_type=NodeType.SMS_ACTION,
        inputs=(_input("SMS Data"),),
        outputs=(_output("Result", PortDataType.JSON),),
    ),

    # Logic
    NodeType.IF_ELSE: NodePortSchema(
        node_type=NodeType.IF_ELSE,
        inputs=(_input("Condition Data"),),
        outputs=(
            _branch(ConditionalLabel.TRUE, "True", PortDataType.ANY),
            _branch(ConditionalLabel.FALSE, "False", PortDataType.ANY),
        ),
        is_conditional=True,
    ),
    NodeType.DELAY: NodePortSchema(
        node_type=NodeType.DELAY,
        inputs=(_input("Input Data"),),
        outputs=(_output("Output", PortDataType.ANY),),
    ),
    NodeType.TRANSFORM: NodePortSchema(
        node_type=NodeType.TRANSFORM,
        inputs=(_input("Source Data"),),
        outputs=(_output("Mapped Variables", PortDataType.JSON),),
    ),
}


def schema_for(node_type) -> NodePortSchema:
    """
    Look up the port schema for a node kind.

    Raises:
        SchemaError: Unknown kind or a kind without a registered schema
    """
    try:
        kind = NodeType(node_type)
    except ValueError:
        raise SchemaError(f"Unknown node kind: {node_type}", kind=str(node_type))

    schema = NODE_PORT_SCHEMAS.get(kind)
    if schema is None:
        raise SchemaError(f"No port schema registered for node kind: {kind.value}", kind=kind.value)
    return schema


def is_conditional(node_type) -> bool:
    """True if the node kind routes through labeled outputs."""
    return schema_for(node_type).is_conditional
