"""
Capability Executors.

The engine hands every node to one injected executor. This package
provides:
- DispatchExecutor: routes kinds to local handlers and delegates
- HttpNodeExecutor: runs user-defined custom HTTP nodes over aiohttp

Usage:
    from joinrender.executors import DispatchExecutor, HttpNodeExecutor
    from joinrender.nodes import builtin_handlers

    executor = DispatchExecutor(
        handlers=builtin_handlers(),
        delegates=[HttpNodeExecutor(store)],
    )
"""

from joinrender.executors.base import (
    AuthenticationError,
    CapabilityNotFoundError,
    ExecutorConfig,
    ExecutorError,
    HttpNodeError,
    RateLimitError,
)
from joinrender.executors.dispatch import DelegateExecutor, DispatchExecutor
from joinrender.executors.http import HttpNodeExecutor, get_value_by_path

__all__ = [
    "AuthenticationError",
    "CapabilityNotFoundError",
    "DelegateExecutor",
    "DispatchExecutor",
    "ExecutorConfig",
    "ExecutorError",
    "HttpNodeError",
    "HttpNodeExecutor",
    "RateLimitError",
    "get_value_by_path",
]
