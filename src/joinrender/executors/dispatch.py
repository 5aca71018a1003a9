"""
Dispatching executor - Routes node kinds to local handlers or delegates.

Lookup order for a kind:
1. A local handler registered for exactly that kind
2. The first delegate whose ``handles(kind)`` is true
3. The fallback executor, if any

A kind nothing can run raises CapabilityNotFoundError, which the engine
records as a failure of that node.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from joinrender.core.execution import CapabilityExecutor, ExecutionContext
from joinrender.executors.base import CapabilityNotFoundError
from joinrender.nodes.base import NodeHandler

logger = logging.getLogger(__name__)


class DelegateExecutor(CapabilityExecutor, Protocol):
    """An executor that runs a subset of kinds."""

    def handles(self, node_kind: str) -> bool:
        ...


class DispatchExecutor:
    """Capability executor built from local handlers and delegates."""

    def __init__(
        self,
        handlers: Mapping[str, NodeHandler] | None = None,
        delegates: Iterable[DelegateExecutor] = (),
        fallback: CapabilityExecutor | None = None,
    ):
        self._handlers: dict[str, NodeHandler] = dict(handlers or {})
        self._delegates: list[DelegateExecutor] = list(delegates)
        self.fallback = fallback

    def register_handler(self, node_kind: str, handler: NodeHandler) -> None:
        self._handlers[node_kind] = handler

    def add_delegate(self, delegate: DelegateExecutor) -> None:
        self._delegates.append(delegate)

    def can_run(self, node_kind: str) -> bool:
        if node_kind in self._handlers or self.fallback is not None:
            return True
        return any(d.handles(node_kind) for d in self._delegates)

    async def invoke(
        self,
        node_kind: str,
        inputs: dict[str, Any],
        context: ExecutionContext,
    ) -> dict[str, Any]:
        handler = self._handlers.get(node_kind)
        if handler is not None:
            return await handler(inputs, context)

        for delegate in self._delegates:
            if delegate.handles(node_kind):
                return await delegate.invoke(node_kind, inputs, context)

        if self.fallback is not None:
            logger.debug("Routing %s to fallback executor", node_kind)
            return await self.fallback.invoke(node_kind, inputs, context)

        raise CapabilityNotFoundError(node_kind)
