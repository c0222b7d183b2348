# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.
"""
Execution engine: context, run logging and the dependency-ordered executor.
"""

from .context import ExecutionContext
from .exceptions import (
    NodeExecutionException,
    NodeTimeoutException,
    TransformMappingError,
    WorkflowExecutionError,
)
from .executor import WorkflowExecutor

__all__ = [
    "ExecutionContext",
    "NodeExecutionException",
    "NodeTimeoutException",
    "TransformMappingError",
    "WorkflowExecutionError",
    "WorkflowExecutor",
]
