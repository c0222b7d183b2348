# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Mock executor used when a run is started in mock mode (no external I/O)."""

from datetime import datetime, timezone
from typing import Any, Dict

from ..workflow_nodes import (
    BaseNodeData,
    DelayData,
    EmailActionData,
    HttpActionData,
    SmsActionData,
    WebhookTriggerData,
)
from .base import NodeExecutor


class MockExecutor(NodeExecutor):
    """Returns canned outputs shaped like the real executor's."""

    async def execute(self, data: BaseNodeData) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()

        if isinstance(data, (HttpActionData, WebhookTriggerData)):
            return {
                "status": 200,
                "statusText": "OK",
                "headers": {},
                "data": {"mock": True},
                "duration": 0,
            }
        if isinstance(data, EmailActionData):
            recipients = data.recipients.to + data.recipients.cc + data.recipients.bcc
            return {"messageId": "mock-message", "accepted": recipients, "rejected": [], "timestamp": now}
        if isinstance(data, SmsActionData):
            return {
                "sid": "mock-sid",
                "status": "queued",
                "to": data.to_number,
                "from": data.from_number,
                "segments": 1,
                "timestamp": now,
            }
        if isinstance(data, DelayData):
            return {
                "delayed": True,
                "requestedDelay": f"{data.delay_value:g} {data.delay_unit}",
                "actualDelay": 0,
                "timestamp": now,
            }
        return {"mock": True, "timestamp": now}
