"""
Engine Errors - Exception hierarchy for the workflow core.

Most failure paths in the engine degrade instead of raising (a node or a
link goes missing). These exceptions cover the places where a caller has
to be told something went wrong.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base exception for workflow engine errors."""
    pass


class UnknownNodeKindError(WorkflowError):
    """A node kind is not registered."""

    def __init__(self, kind: str):
        super().__init__(f"Unknown node kind: {kind}")
        self.kind = kind


class CycleError(WorkflowError):
    """The graph contains a cycle and cannot be scheduled."""

    def __init__(self, node_ids: list[str] | None = None):
        super().__init__("Workflow contains a cycle")
        self.node_ids = node_ids or []


class UnrecognizedFormatError(WorkflowError):
    """A workflow document matches neither the native nor the interchange schema."""
    pass


class TranslationError(WorkflowError):
    """An interchange document could not be translated."""
    pass


class UnknownTemplateError(WorkflowError):
    """No workflow template has the requested id."""

    def __init__(self, template_id: str):
        super().__init__(f"Unknown template: {template_id}")
        self.template_id = template_id
