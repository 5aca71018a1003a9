"""
Core module - Graph model, scheduler and validation.

This module provides the fundamental building blocks for JoinRender:
- Graph: Nodes, ports and connections
- Data Types: Port types and literal widgets
- Node Types: Node definitions and registry
- Execution: Ordering, input threading and the async engine
- Validation: Structural checks before a run

Snapshots (workflow_io), settings and the session live in their own
modules and are imported from there.
"""

from joinrender.core.data_types import (
    ComboWidget,
    LiteralValue,
    NumberWidget,
    PortType,
    SliderWidget,
    TextWidget,
    ToggleWidget,
    Widget,
)

from joinrender.core.errors import (
    CycleError,
    TranslationError,
    UnknownNodeKindError,
    UnknownTemplateError,
    UnrecognizedFormatError,
    WorkflowError,
)

from joinrender.core.execution import (
    CapabilityExecutor,
    CyclePolicy,
    ExecutionCallbacks,
    ExecutionContext,
    ExecutionEngine,
    NodeExecutionState,
    NodeStatus,
    RunStatus,
    ThreadingMode,
    get_execution_order,
    resolve_inputs,
)

from joinrender.core.graph import (
    Connection,
    ConnectionId,
    Node,
    NodeGraph,
    NodeId,
    Point2D,
    Port,
    Size2D,
    new_connection_id,
    new_node_id,
)

from joinrender.core.node_types import (
    NodeCategory,
    NodeDefinition,
    NodeRegistry,
    PortSpec,
)

from joinrender.core.validation import (
    IssueCode,
    ValidationIssue,
    ValidationResult,
    validate_workflow,
)


__all__ = [
    # data_types.py
    "ComboWidget",
    "LiteralValue",
    "NumberWidget",
    "PortType",
    "SliderWidget",
    "TextWidget",
    "ToggleWidget",
    "Widget",
    # errors.py
    "CycleError",
    "TranslationError",
    "UnknownNodeKindError",
    "UnknownTemplateError",
    "UnrecognizedFormatError",
    "WorkflowError",
    # execution.py
    "CapabilityExecutor",
    "CyclePolicy",
    "ExecutionCallbacks",
    "ExecutionContext",
    "ExecutionEngine",
    "NodeExecutionState",
    "NodeStatus",
    "RunStatus",
    "ThreadingMode",
    "get_execution_order",
    "resolve_inputs",
    # graph.py
    "Connection",
    "ConnectionId",
    "Node",
    "NodeGraph",
    "NodeId",
    "Point2D",
    "Port",
    "Size2D",
    "new_connection_id",
    "new_node_id",
    # node_types.py
    "NodeCategory",
    "NodeDefinition",
    "NodeRegistry",
    "PortSpec",
    # validation.py
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_workflow",
]
