"""Utility helpers for SSH MCP tools.

- masking: safe value masking for logs
- types: shared TypedDict contracts for tool results
"""

from .masking import describe_credential, mask_value
from .types import (
    DisconnectResult,
    ErrorResult,
    ExecuteResult,
    SessionInfo,
    StatusResult,
)

__all__ = [
    "mask_value",
    "describe_credential",
    "SessionInfo",
    "StatusResult",
    "DisconnectResult",
    "ExecuteResult",
    "ErrorResult",
]
