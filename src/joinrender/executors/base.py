"""
Executor Base - Shared errors and configuration for capability executors.

A capability executor performs the actual work of a node kind. The engine
only knows the ``invoke(node_kind, inputs, context)`` protocol; these
types are shared by the executors shipped in this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ExecutorConfig:
    """Configuration for executors."""
    api_keys: dict[str, str] = field(default_factory=dict)
    webhook_base_url: str = "http://localhost:8000"


class ExecutorError(Exception):
    """Base exception for executor errors."""
    pass


class CapabilityNotFoundError(ExecutorError):
    """No handler or delegate can run this node kind."""

    def __init__(self, node_kind: str):
        super().__init__(f"No executor available for node kind: {node_kind}")
        self.node_kind = node_kind


class HttpNodeError(ExecutorError):
    """A custom HTTP node request failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AuthenticationError(HttpNodeError):
    """Credentials were rejected."""
    pass


class RateLimitError(HttpNodeError):
    """Rate limit exceeded."""
    retry_after: float | None = None


def check_status(status: int, body: str, label: str = "HTTP request") -> None:
    """Raise the matching error for a failed HTTP status."""
    if status == 401 or status == 403:
        raise AuthenticationError(f"{label} rejected credentials ({status})", status)
    elif status == 429:
        error = RateLimitError(f"{label} rate limited", status)
        error.retry_after = 60
        raise error
    elif status >= 400:
        raise HttpNodeError(f"{label} failed: {status} {body}".rstrip(), status)
