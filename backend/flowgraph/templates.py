# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Built-in workflow templates.

Templates are instantiated through WorkflowSession.add_node/add_connection,
so every edge passes the same connection rules as an interactive edit.
"""

from typing import Any, Callable, Dict, List, Optional

from .core.errors import NotFoundError, ValidationError
from .session import WorkflowSession
from .workflow_nodes import NodeType


def _connect(session: WorkflowSession, source: str, target: str, handle: Optional[str] = None) -> None:
    check = session.add_connection(source, target, handle)
    if not check.allowed:
        raise ValidationError(f"Template edge {source} -> {target} rejected: {check.reason}", field="edges")


def build_new_lead_workflow(session: WorkflowSession) -> WorkflowSession:
    """
    New Lead Welcome & Follow-up

    Webhook (new lead) → Welcome email → Delay (1 hour) → Add lead to CRM →
    If response.status == 200 → True: success SMS / False: support alert.
    A failed CRM call goes straight to the support alert.
    """
    x, y, dx, dy = 100, 300, 300, 150

    def lead(field: str) -> str:
        return "{{$node.webhook.data.lead." + field + "}}"

    session.add_node(NodeType.WEBHOOK_TRIGGER, {"x": x, "y": y}, node_id="webhook", data={
        "label": "New Lead Webhook",
        "webhookUrl": "https://api.example.com/webhooks/new-lead",
        "method": "POST",
    })
    session.add_node(NodeType.EMAIL_ACTION, {"x": x + dx, "y": y}, node_id="welcome_email", data={
        "label": "Send Welcome Email",
        "recipients": {"to": [lead("email")], "cc": [], "bcc": []},
        "subject": "Welcome! We're excited to have you",
        "body": "Hi " + lead("name") + ",\n\nWelcome to our platform! We're thrilled to have you on board.",
    })
    session.add_node(NodeType.DELAY, {"x": x + dx * 2, "y": y}, node_id="wait", data={
        "label": "Wait 1 Hour",
        "delayValue": 1,
        "delayUnit": "hours",
    })
    session.add_node(NodeType.HTTP_ACTION, {"x": x + dx * 3, "y": y}, node_id="crm", data={
        "label": "Add Lead to CRM",
        "url": "https://api.crm.example.com/leads",
        "method": "POST",
        "bodyType": "json",
        "body": (
            '{"name": "' + lead("name") + '", "email": "' + lead("email") + '", "source": "webhook"}'
        ),
        "timeout": 30,
    })
    session.add_node(NodeType.IF_ELSE, {"x": x + dx * 4, "y": y}, node_id="check_crm", data={
        "label": "Check CRM Response",
        "conditions": [
            {"field": "response.status", "operator": "equals", "valueType": "number", "value": "200"},
        ],
    })
    session.add_node(NodeType.SMS_ACTION, {"x": x + dx * 5, "y": y - dy}, node_id="sms_success", data={
        "label": "Send Success SMS",
        "fromNumber": "+1234567890",
        "toNumber": lead("phone"),
        "message": "Your lead has been successfully added to our CRM. We'll be in touch soon!",
    })
    session.add_node(NodeType.SMS_ACTION, {"x": x + dx * 5, "y": y + dy}, node_id="sms_alert", data={
        "label": "Alert Support (Error)",
        "fromNumber": "+1234567890",
        "toNumber": "+1987654321",
        "message": "ALERT: Failed to add lead " + lead("email") + " to CRM. Status: {{$node.crm.status}}",
    })

    _connect(session, "webhook", "welcome_email")
    _connect(session, "welcome_email", "wait")
    _connect(session, "wait", "crm")
    _connect(session, "crm", "check_crm", "success")
    _connect(session, "crm", "sms_alert", "error")
    _connect(session, "check_crm", "sms_success", "true")
    _connect(session, "check_crm", "sms_alert", "false")
    return session


TEMPLATES: Dict[str, Dict[str, Any]] = {
    "new-lead-welcome": {
        "name": "New Lead Welcome & Follow-up",
        "description": "Webhook trigger → Welcome email → Delay → Add to CRM → Conditional SMS notifications",
        "build": build_new_lead_workflow,
    },
}


def list_templates() -> List[Dict[str, str]]:
    return [
        {"id": template_id, "name": info["name"], "description": info["description"]}
        for template_id, info in TEMPLATES.items()
    ]


def instantiate_template(template_id: str, session: Optional[WorkflowSession] = None) -> WorkflowSession:
    """
    Build a template into a session (a fresh one unless given).

    Raises:
        NotFoundError: Unknown template id
    """
    info = TEMPLATES.get(template_id)
    if info is None:
        raise NotFoundError("Template", template_id)
    build: Callable[[WorkflowSession], WorkflowSession] = info["build"]
    return build(session or WorkflowSession())
