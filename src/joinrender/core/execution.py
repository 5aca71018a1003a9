"""
Execution Engine - Async workflow execution.

This module runs node graphs one node at a time in topological order:
- Ordering with Kahn's algorithm (cyclic subgraphs are skipped)
- Input resolution from literal data and upstream outputs
- Dispatch to an injected capability executor
- Per-node progress, completion and error reporting

A failing node does not stop the run. Nodes downstream of it receive
None for the inputs it would have fed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Protocol, runtime_checkable

from joinrender.core.errors import CycleError
from joinrender.core.graph import Node, NodeGraph, NodeId

logger = logging.getLogger(__name__)


class NodeStatus(Enum):
    """Status of a single node within a run."""
    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()


class RunStatus(Enum):
    """Status of the engine."""
    IDLE = auto()
    RUNNING = auto()


class CyclePolicy(Enum):
    """What a run does when the graph contains a cycle."""
    SKIP = "skip"  # cyclic nodes are left out of the order
    FAIL = "fail"  # the run raises CycleError before dispatching anything


class ThreadingMode(Enum):
    """How an upstream output map is matched to a connected input."""
    POSITIONAL = "positional"  # value at the source port's ordinal
    BY_NAME = "by_name"  # value under the source port's name, else positional


ProgressCallback = Callable[[NodeId, int, str], None]
CompleteCallback = Callable[[NodeId, dict[str, Any]], None]
ErrorCallback = Callable[[NodeId, str], None]


@dataclass
class NodeExecutionState:
    """Progress information for one node."""
    node_id: NodeId
    status: NodeStatus = NodeStatus.PENDING
    progress: int = 0
    message: str = ""
    error: str | None = None
    result: dict[str, Any] | None = None
    started_at: float | None = None
    completed_at: float | None = None

    @property
    def execution_time(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return self.completed_at - self.started_at


@dataclass
class ExecutionCallbacks:
    """Listeners for a single run."""
    on_progress: ProgressCallback | None = None
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None


class ExecutionContext:
    """
    Context passed to the capability executor for one node call.

    Provides progress reporting bound to the running node and read access
    to its literal data.
    """

    def __init__(
        self,
        node: Node,
        run_id: int,
        on_progress: Callable[[NodeId, int, str], None] | None = None,
    ):
        self.node_id = node.id
        self.node_kind = node.kind
        self.data = dict(node.data)
        self.run_id = run_id
        self._on_progress = on_progress

    def report_progress(self, percent: int, message: str = "") -> None:
        """Report intermediate progress for the running node."""
        if self._on_progress:
            self._on_progress(self.node_id, percent, message)


@runtime_checkable
class CapabilityExecutor(Protocol):
    """The collaborator that performs the actual work of a node."""

    async def invoke(
        self,
        node_kind: str,
        inputs: dict[str, Any],
        context: ExecutionContext,
    ) -> dict[str, Any]:
        """
        Execute one node.

        Args:
            node_kind: Kind of the node being run
            inputs: Resolved input values by port name (plus literal data)
            context: Progress reporting for this call

        Returns:
            Dictionary of output values. Insertion order must follow the
            node's output port order for positional threading.
        """
        ...


def get_execution_order(graph: NodeGraph) -> list[NodeId]:
    """
    Get nodes in topological order for execution.

    Kahn's algorithm with a FIFO queue seeded in graph insertion order.
    Nodes on a cycle, or downstream of one, never reach in-degree zero and
    are left out of the result. No error is raised for them.
    """
    nodes = graph.nodes
    in_degree: dict[NodeId, int] = {node_id: 0 for node_id in nodes}
    adjacency: dict[NodeId, list[NodeId]] = {node_id: [] for node_id in nodes}

    for conn in graph.connections:
        if conn.source_node_id not in nodes or conn.target_node_id not in nodes:
            continue
        adjacency[conn.source_node_id].append(conn.target_node_id)
        in_degree[conn.target_node_id] += 1

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    result: list[NodeId] = []

    while queue:
        node_id = queue.popleft()
        result.append(node_id)
        for target_id in adjacency[node_id]:
            in_degree[target_id] -= 1
            if in_degree[target_id] == 0:
                queue.append(target_id)

    return result


def get_unscheduled_nodes(graph: NodeGraph) -> list[NodeId]:
    """Nodes excluded from the execution order because of a cycle."""
    ordered = set(get_execution_order(graph))
    return [node_id for node_id in graph.nodes if node_id not in ordered]


def resolve_inputs(
    graph: NodeGraph,
    node: Node,
    outputs: Mapping[NodeId, Mapping[str, Any]],
    mode: ThreadingMode = ThreadingMode.POSITIONAL,
) -> dict[str, Any]:
    """
    Build the input map for a node about to run.

    Starts from the node's literal data. Every connected input is then
    overwritten with the upstream value, or None when the upstream node
    produced nothing or has no value at that position.
    """
    inputs: dict[str, Any] = dict(node.data)

    for port in node.inputs:
        conn = graph.get_input_connection(node.id, port.id)
        if conn is None:
            continue

        value = None
        source = graph.get_node(conn.source_node_id)
        produced = outputs.get(conn.source_node_id)
        if source is not None and produced is not None:
            source_port = source.get_output(conn.source_port_id)
            if (
                mode == ThreadingMode.BY_NAME
                and source_port is not None
                and source_port.name in produced
            ):
                value = produced[source_port.name]
            else:
                slot = source.output_index(conn.source_port_id)
                values = list(produced.values())
                if 0 <= slot < len(values):
                    value = values[slot]

        inputs[port.name] = value

    return inputs


class ExecutionEngine:
    """
    Async execution engine for node graphs.

    Features:
    - Strictly sequential execution in topological order
    - Partial-failure tolerance
    - Per-node progress reporting
    - Restart semantics: every run clears the previous run's state

    Starting a new run supersedes a run in progress. The older run lets its
    in-flight executor call finish, then stops without dispatching more.
    """

    def __init__(
        self,
        executor: CapabilityExecutor,
        cycle_policy: CyclePolicy = CyclePolicy.SKIP,
        threading_mode: ThreadingMode = ThreadingMode.POSITIONAL,
    ):
        self.executor = executor
        self.cycle_policy = cycle_policy
        self.threading_mode = threading_mode

        self._status = RunStatus.IDLE
        self._generation = 0
        self._states: dict[NodeId, NodeExecutionState] = {}
        self._outputs: dict[NodeId, dict[str, Any]] = {}

        # Callbacks
        self._on_progress: ProgressCallback | None = None
        self._on_complete: CompleteCallback | None = None
        self._on_error: ErrorCallback | None = None

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set the progress callback."""
        self._on_progress = callback

    def set_completion_callback(self, callback: CompleteCallback) -> None:
        """Set the node completion callback."""
        self._on_complete = callback

    def set_error_callback(self, callback: ErrorCallback) -> None:
        """Set the node error callback."""
        self._on_error = callback

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status == RunStatus.RUNNING

    @property
    def node_states(self) -> dict[NodeId, NodeExecutionState]:
        """Get per-node states of the latest run (read-only copy)."""
        return self._states.copy()

    def get_state(self, node_id: NodeId) -> NodeExecutionState | None:
        return self._states.get(node_id)

    @property
    def outputs(self) -> dict[NodeId, dict[str, Any]]:
        """Get outputs produced by the latest run (read-only copy)."""
        return self._outputs.copy()

    def get_output(self, node_id: NodeId) -> dict[str, Any] | None:
        return self._outputs.get(node_id)

    def reset(self) -> None:
        """Forget all progress and outputs."""
        self._states.clear()
        self._outputs = {}

    async def run(
        self,
        graph: NodeGraph,
        callbacks: ExecutionCallbacks | None = None,
    ) -> dict[NodeId, dict[str, Any]]:
        """
        Run the whole graph.

        Args:
            graph: The graph to execute. It must not be mutated while the
                run is in progress.
            callbacks: Listeners for this run, in addition to the engine's

        Returns:
            Map from node id to its output map. Failed and skipped nodes are
            absent.

        Raises:
            CycleError: If the graph has a cycle and the policy is FAIL
        """
        order = get_execution_order(graph)
        if self.cycle_policy == CyclePolicy.FAIL and len(order) != len(graph):
            excluded = [node_id for node_id in graph.nodes if node_id not in set(order)]
            raise CycleError(excluded)

        self._generation += 1
        generation = self._generation
        outputs: dict[NodeId, dict[str, Any]] = {}
        self._states = {node_id: NodeExecutionState(node_id) for node_id in order}
        self._outputs = outputs
        self._status = RunStatus.RUNNING
        callbacks = callbacks or ExecutionCallbacks()

        skipped = len(graph) - len(order)
        if skipped:
            logger.info("Skipping %d node(s) on a cycle", skipped)

        def is_current() -> bool:
            return generation == self._generation

        def emit_progress(node_id: NodeId, percent: int, message: str) -> None:
            if not is_current():
                return
            state = self._states.get(node_id)
            if state:
                state.progress = percent
                state.message = message
            if self._on_progress:
                self._on_progress(node_id, percent, message)
            if callbacks.on_progress:
                callbacks.on_progress(node_id, percent, message)

        try:
            for node_id in order:
                if not is_current():
                    logger.info("Run %d superseded, stopping", generation)
                    break

                node = graph.get_node(node_id)
                if node is None:
                    continue

                state = self._states[node_id]
                state.status = NodeStatus.RUNNING
                state.started_at = time.time()
                emit_progress(node_id, 10, "preparing")

                inputs = resolve_inputs(graph, node, outputs, self.threading_mode)
                context = ExecutionContext(node, generation, emit_progress)

                try:
                    result = await self.executor.invoke(node.kind, inputs, context)
                    result = _as_output_map(result)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if not is_current():
                        break
                    message = str(e) or type(e).__name__
                    logger.warning("Node %s (%s) failed: %s", node_id, node.kind, message)
                    state.status = NodeStatus.FAILED
                    state.error = message
                    state.progress = 0
                    state.completed_at = time.time()
                    if self._on_error:
                        self._on_error(node_id, message)
                    if callbacks.on_error:
                        callbacks.on_error(node_id, message)
                    continue

                if not is_current():
                    break

                outputs[node_id] = result
                state.result = result
                emit_progress(node_id, 100, "done")
                state.status = NodeStatus.COMPLETED
                state.completed_at = time.time()
                if self._on_complete:
                    self._on_complete(node_id, result)
                if callbacks.on_complete:
                    callbacks.on_complete(node_id, result)
        finally:
            if is_current():
                self._status = RunStatus.IDLE

        return outputs


def _as_output_map(result: Any) -> dict[str, Any]:
    if result is None:
        return {}
    if not isinstance(result, Mapping):
        raise TypeError(f"Executor returned {type(result).__name__}, expected a mapping")
    return dict(result)
