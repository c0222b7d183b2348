# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution engine exceptions.

Only WorkflowExecutionError crosses the public run API (the run could not
start). Node-level exceptions are caught by the engine and recorded in the
execution context.
"""


class EngineException(Exception):
    """Base exception for the execution engine"""
    pass


class WorkflowExecutionError(EngineException):
    """Run could not start (no start nodes, unknown start node, already running)"""
    pass


class NodeExecutionException(EngineException):
    """Node execution failed"""
    def __init__(self, node_id: str, kind: str, message: str, context: dict = None):
        self.node_id = node_id
        self.kind = kind
        self.reason = message
        self.context = context or {}
        super().__init__(message)


class NodeTimeoutException(NodeExecutionException):
    """Node execution exceeded the engine watchdog timeout"""
    def __init__(self, node_id: str, kind: str, timeout: float):
        super().__init__(
            node_id,
            kind,
            f"Execution exceeded timeout ({timeout:g}s)"
        )
        self.timeout = timeout


class TransformMappingError(NodeExecutionException):
    """A path mapping resolved to nothing; the whole transform fails"""
    def __init__(self, node_id: str, variable_name: str, path: str, message: str):
        super().__init__(node_id, "logic:transform", message)
        self.variable_name = variable_name
        self.path = path
