# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Delay executor.

Waits out the configured delay, capped at max_preview_delay seconds so
preview runs of long waits (hours, days) finish promptly.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from ..workflow_nodes import DelayData
from .base import NodeExecutor


UNIT_SECONDS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
    "days": 86400,
}


def delay_seconds(value: float, unit: str) -> float:
    return float(value) * UNIT_SECONDS.get(unit, 1)


class DelayExecutor(NodeExecutor):
    """
    Executes logic:delay nodes.

    Output:
        {"delayed", "requestedDelay", "actualDelay", "timestamp"}
        actualDelay is in seconds
    """

    def __init__(self, max_preview_delay: float = 5.0):
        self.max_preview_delay = max_preview_delay

    async def execute(self, data: DelayData) -> Dict[str, Any]:
        requested = delay_seconds(data.delay_value, data.delay_unit)
        actual = min(requested, self.max_preview_delay)
        if actual > 0:
            await asyncio.sleep(actual)

        return {
            "delayed": True,
            "requestedDelay": f"{data.delay_value:g} {data.delay_unit}",
            "actualDelay": actual,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
