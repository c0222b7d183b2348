# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Node Types - closed node-kind enumeration and per-kind payloads.

Each kind has exactly one payload model; the payloads form a tagged union
discriminated by the "type" field, so a node's data always matches its kind.
Field aliases keep the camelCase names used in persisted snapshots.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .core.errors import SchemaError, ValidationError


class NodeType(str, Enum):
    """
    Supported workflow node kinds.

    Triggers:
        MANUAL_TRIGGER - Started by the user, emits {triggered, timestamp}
        WEBHOOK_TRIGGER - Calls a webhook URL and emits its payload

    Actions:
        HTTP_ACTION - HTTP request with Success/Error outputs
        EMAIL_ACTION - Send an email
        SMS_ACTION - Send an SMS

    Logic:
        IF_ELSE - Conditional branch (true/false)
        DELAY - Wait before continuing
        TRANSFORM - Map upstream data into named variables
    """
    # Triggers
    MANUAL_TRIGGER = "trigger:manual"
    WEBHOOK_TRIGGER = "trigger:webhook"

    # Actions
    HTTP_ACTION = "action:http"
    EMAIL_ACTION = "action:email"
    SMS_ACTION = "action:sms"

    # Logic
    IF_ELSE = "logic:if-else"
    DELAY = "logic:delay"
    TRANSFORM = "logic:transform"

    @property
    def is_trigger(self) -> bool:
        return self.value.startswith("trigger:")


TRIGGER_TYPES = frozenset({NodeType.MANUAL_TRIGGER, NodeType.WEBHOOK_TRIGGER})

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


# ============================================================================
# Shared Payload Parts
# ============================================================================

class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AuthNone(_Model):
    type: Literal["none"] = "none"


class AuthBasic(_Model):
    type: Literal["basic"] = "basic"
    username: str = ""
    password: str = ""


class AuthApiKey(_Model):
    type: Literal["api-key"] = "api-key"
    key: str = ""
    value: str = ""
    location: Literal["header", "query"] = "header"


AuthSettings = Annotated[Union[AuthNone, AuthBasic, AuthApiKey], Field(discriminator="type")]


class ConditionOperator(str, Enum):
    """Comparison operators for if/else conditions."""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    IS_EMPTY = "isEmpty"


_OPERATOR_ALIASES = {"gt": "greaterThan", "lt": "lessThan"}


class Condition(_Model):
    """
    Single field comparison.

    Example:
        {
            "field": "response.status",
            "operator": "equals",
            "valueType": "number",
            "value": "200",
            "logicalOp": "AND"
        }
    """
    id: Optional[str] = None
    field: str = Field(..., description="Dotted path into the evaluation scope")
    operator: ConditionOperator = ConditionOperator.EQUALS
    value_type: Literal["string", "number", "boolean"] = Field("string", alias="valueType")
    value: Any = ""
    logical_op: Literal["AND", "OR"] = Field("AND", alias="logicalOp")

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v):
        if isinstance(v, str):
            return _OPERATOR_ALIASES.get(v, v)
        return v

    @field_validator("logical_op", mode="before")
    @classmethod
    def normalize_logical_op(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    def describe(self) -> str:
        return f"{self.field} {self.operator.value} {self.value}"


class VariableMapping(_Model):
    """
    Transform mapping into a named variable.

    Example:
        {"variableName": "userId", "type": "path", "value": "data.user.id"}
    """
    id: Optional[str] = None
    variable_name: str = Field(..., alias="variableName")
    type: Literal["path", "static"] = "path"
    value: Any = ""


class EmailRecipients(_Model):
    to: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)


# ============================================================================
# Node Payloads
# ============================================================================

class BaseNodeData(_Model):
    label: str = ""
    description: Optional[str] = None


class ManualTriggerData(BaseNodeData):
    type: Literal["trigger:manual"] = "trigger:manual"


class WebhookTriggerData(BaseNodeData):
    """Calls a webhook endpoint; output is the parsed response payload."""
    type: Literal["trigger:webhook"] = "trigger:webhook"
    webhook_url: str = Field("", alias="webhookUrl")
    method: HttpMethod = "POST"
    auth: AuthSettings = Field(default_factory=AuthNone)


class HttpActionData(BaseNodeData):
    """
    HTTP request. URL, header values and body support {{ }} placeholders.

    Example:
        {
            "type": "action:http",
            "url": "https://api.example.com/users/{{$vars.userId}}",
            "method": "POST",
            "bodyType": "json",
            "body": "{\"email\": \"{{email}}\"}",
            "timeout": 30
        }
    """
    type: Literal["action:http"] = "action:http"
    url: str = ""
    method: HttpMethod = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    auth: AuthSettings = Field(default_factory=AuthNone)
    body_type: Literal["json", "raw"] = Field("json", alias="bodyType")
    body: Optional[str] = None
    timeout: float = Field(30, description="Request timeout in seconds")


class EmailActionData(BaseNodeData):
    type: Literal["action:email"] = "action:email"
    recipients: EmailRecipients = Field(default_factory=EmailRecipients)
    subject: str = ""
    body: str = ""
    body_format: Literal["text", "html"] = Field("text", alias="bodyFormat")
    attachments: List[str] = Field(default_factory=list)


class SmsActionData(BaseNodeData):
    type: Literal["action:sms"] = "action:sms"
    from_number: str = Field("", alias="fromNumber")
    to_number: str = Field("", alias="toNumber")
    message: str = ""


class IfElseData(BaseNodeData):
    """Conditions are folded left to right with each condition's logicalOp."""
    type: Literal["logic:if-else"] = "logic:if-else"
    conditions: List[Condition] = Field(default_factory=list)


class DelayData(BaseNodeData):
    type: Literal["logic:delay"] = "logic:delay"
    delay_value: float = Field(1, alias="delayValue", ge=0)
    delay_unit: Literal["seconds", "minutes", "hours", "days"] = Field("seconds", alias="delayUnit")


class TransformData(BaseNodeData):
    type: Literal["logic:transform"] = "logic:transform"
    mappings: List[VariableMapping] = Field(default_factory=list)


NodeData = Annotated[
    Union[
        ManualTriggerData,
        WebhookTriggerData,
        HttpActionData,
        EmailActionData,
        SmsActionData,
        IfElseData,
        DelayData,
        TransformData,
    ],
    Field(discriminator="type"),
]

NODE_DATA_MODELS = {
    NodeType.MANUAL_TRIGGER: ManualTriggerData,
    NodeType.WEBHOOK_TRIGGER: WebhookTriggerData,
    NodeType.HTTP_ACTION: HttpActionData,
    NodeType.EMAIL_ACTION: EmailActionData,
    NodeType.SMS_ACTION: SmsActionData,
    NodeType.IF_ELSE: IfElseData,
    NodeType.DELAY: DelayData,
    NodeType.TRANSFORM: TransformData,
}

DEFAULT_LABELS = {
    NodeType.MANUAL_TRIGGER: "Manual Trigger",
    NodeType.WEBHOOK_TRIGGER: "Webhook",
    NodeType.HTTP_ACTION: "HTTP Request",
    NodeType.EMAIL_ACTION: "Send Email",
    NodeType.SMS_ACTION: "Send SMS",
    NodeType.IF_ELSE: "If / Else",
    NodeType.DELAY: "Delay",
    NodeType.TRANSFORM: "Transform",
}

_node_data_adapter = TypeAdapter(NodeData)


def node_type_of(kind: Union[str, NodeType]) -> NodeType:
    """
    Coerce a kind string into NodeType.

    Raises:
        SchemaError: Kind is not part of the closed enumeration
    """
    try:
        return NodeType(kind)
    except ValueError:
        raise SchemaError(f"Unknown node kind: {kind}", kind=str(kind))


def parse_node_data(data: Union[Dict[str, Any], BaseNodeData]):
    """
    Parse a raw payload dict into its typed variant.

    Raises:
        SchemaError: Missing or unknown "type" tag
        ValidationError: Payload shape does not match its kind
    """
    if isinstance(data, BaseNodeData):
        return data
    if not isinstance(data, dict) or "type" not in data:
        raise SchemaError("Node data must be an object with a 'type' field")

    kind = node_type_of(data["type"])
    try:
        return _node_data_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid data for {kind.value} node: {e}", field="data")


def create_default_node_data(kind: Union[str, NodeType], **overrides):
    """Build the default payload for a newly added node of the given kind."""
    node_type = node_type_of(kind)
    model = NODE_DATA_MODELS[node_type]
    values = {"label": DEFAULT_LABELS[node_type]}
    values.update(overrides)
    return model(**values)


def merge_node_data(current: BaseNodeData, changes: Optional[Dict[str, Any]] = None):
    """
    Apply changes on top of an existing payload.

    Keys may be Python field names ("to_number") or their wire aliases
    ("toNumber"); both update the same field. The "type" tag is kept.

    Raises:
        ValidationError: Merged payload is invalid for the node's kind
    """
    fields = type(current).model_fields
    field_names = {info.alias: name for name, info in fields.items() if info.alias}

    merged = current.model_dump()
    for key, value in (changes or {}).items():
        merged[field_names.get(key, key)] = value
    merged["type"] = current.type
    return parse_node_data(merged)
