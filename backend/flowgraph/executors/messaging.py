# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Email and SMS executors.

Delivery is simulated: outputs have the shape a real provider integration
returns, with an optional artificial latency. Inputs are still validated so
misconfigured nodes fail the same way they would against a provider.
"""

import asyncio
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from ..workflow_nodes import EmailActionData, SmsActionData
from .base import ExecutorError, NodeExecutor


SMS_SEGMENT_LENGTH = 160

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class EmailExecutor(NodeExecutor):
    """
    Executes action:email nodes.

    Output:
        {"messageId", "accepted", "rejected", "from", "timestamp"}
    """

    def __init__(self, sender: str = "noreply@workflow.app", latency: float = 0.0):
        self.sender = sender
        self.latency = latency

    async def execute(self, data: EmailActionData) -> Dict[str, Any]:
        recipients = data.recipients.to + data.recipients.cc + data.recipients.bcc
        if not data.recipients.to:
            raise ExecutorError("Email requires at least one recipient")
        if not data.subject:
            raise ExecutorError("Email subject is required")

        accepted = [address for address in recipients if _EMAIL_PATTERN.match(address.strip())]
        rejected = [address for address in recipients if address not in accepted]
        if not accepted:
            raise ExecutorError(f"No valid recipient addresses: {', '.join(rejected)}")

        if self.latency:
            await asyncio.sleep(self.latency)

        return {
            "messageId": f"<{uuid.uuid4().hex}@workflow.app>",
            "accepted": accepted,
            "rejected": rejected,
            "from": self.sender,
            "timestamp": _timestamp(),
        }


class SmsExecutor(NodeExecutor):
    """
    Executes action:sms nodes.

    Output:
        {"sid", "status", "to", "from", "segments", "timestamp"}
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency

    async def execute(self, data: SmsActionData) -> Dict[str, Any]:
        if not data.to_number:
            raise ExecutorError("SMS recipient number is required")
        if not data.message:
            raise ExecutorError("SMS message is required")

        if self.latency:
            await asyncio.sleep(self.latency)

        return {
            "sid": f"SM{uuid.uuid4().hex}",
            "status": "queued",
            "to": data.to_number,
            "from": data.from_number,
            "segments": max(1, math.ceil(len(data.message) / SMS_SEGMENT_LENGTH)),
            "timestamp": _timestamp(),
        }
