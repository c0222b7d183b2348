# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.
"""
External node executors (HTTP, webhook, email, SMS, delay) and their registry.
"""

from typing import Optional

import httpx

from ..core.config import Config
from ..workflow_nodes import NodeType
from .base import ExecutorError, ExecutorRegistry, NodeExecutor
from .delay import DelayExecutor
from .http import HttpExecutor, WebhookExecutor
from .messaging import EmailExecutor, SmsExecutor
from .mock import MockExecutor

EXTERNAL_KINDS = (
    NodeType.WEBHOOK_TRIGGER,
    NodeType.HTTP_ACTION,
    NodeType.EMAIL_ACTION,
    NodeType.SMS_ACTION,
    NodeType.DELAY,
)


def build_default_registry(
    config: Optional[Config] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExecutorRegistry:
    """Registry with the built-in executor for every external node kind."""
    config = config or Config()
    http = HttpExecutor(default_timeout=config.http_timeout, transport=transport)

    registry = ExecutorRegistry()
    registry.register(NodeType.HTTP_ACTION, http)
    registry.register(NodeType.WEBHOOK_TRIGGER, WebhookExecutor(http))
    registry.register(NodeType.EMAIL_ACTION, EmailExecutor(config.email_from, config.simulated_latency))
    registry.register(NodeType.SMS_ACTION, SmsExecutor(config.simulated_latency))
    registry.register(NodeType.DELAY, DelayExecutor(config.max_preview_delay))
    return registry


def build_mock_registry() -> ExecutorRegistry:
    """Registry answering every external kind with MockExecutor."""
    registry = ExecutorRegistry()
    mock = MockExecutor()
    for kind in EXTERNAL_KINDS:
        registry.register(kind, mock)
    return registry


__all__ = [
    "EXTERNAL_KINDS",
    "DelayExecutor",
    "EmailExecutor",
    "ExecutorError",
    "ExecutorRegistry",
    "HttpExecutor",
    "MockExecutor",
    "NodeExecutor",
    "SmsExecutor",
    "WebhookExecutor",
    "build_default_registry",
    "build_mock_registry",
]
