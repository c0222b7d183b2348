# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Node executor interface and registry.

Executors perform the side-effecting work of action and trigger kinds. The
engine hands each one the node's typed payload with placeholders already
resolved and awaits a dict output; failures are raised as ExecutorError with
a descriptive message.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from ..core.errors import SchemaError
from ..workflow_nodes import BaseNodeData, NodeType, node_type_of


class ExecutorError(Exception):
    """Executor failed. output carries partial results (e.g. an HTTP error response)."""

    def __init__(self, message: str, output: Optional[Dict[str, Any]] = None):
        self.message = message
        self.output = output
        super().__init__(message)


class NodeExecutor(ABC):
    """
    Executor interface

    One implementation per external node kind.
    """

    @abstractmethod
    async def execute(self, data: BaseNodeData) -> Dict[str, Any]:
        """
        Execute a node.

        Args:
            data: Typed node payload with placeholders resolved

        Returns:
            Node output

        Raises:
            ExecutorError: Execution failed
        """
        pass


class ExecutorRegistry:
    """
    Executor registry

    Maps node kinds to executor instances.
    """

    def __init__(self):
        self._executors: Dict[NodeType, NodeExecutor] = {}

    def register(self, node_type: Union[str, NodeType], executor: NodeExecutor) -> None:
        self._executors[node_type_of(node_type)] = executor

    def get(self, node_type: Union[str, NodeType]) -> NodeExecutor:
        """
        Get the executor for a kind.

        Raises:
            SchemaError: No executor registered for the kind
        """
        kind = node_type_of(node_type)
        executor = self._executors.get(kind)
        if executor is None:
            raise SchemaError(f"No executor registered for node kind: {kind.value}", kind=kind.value)
        return executor

    def has(self, node_type: Union[str, NodeType]) -> bool:
        return node_type_of(node_type) in self._executors

    @property
    def kinds(self) -> List[NodeType]:
        return list(self._executors)
