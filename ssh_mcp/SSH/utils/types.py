"""Shared TypedDict contracts for SSH MCP tool results."""

from __future__ import annotations

from typing import TypedDict


class SessionInfo(TypedDict):
    id: str
    server_name: str
    connected: bool
    connected_at: str


class StatusResult(TypedDict):
    connections: list[SessionInfo]
    total: int


class DisconnectResult(TypedDict):
    disconnected: int


class ExecuteResult(TypedDict):
    stdout: str
    stderr: str
    exit_code: int | None
    duration: int


class ErrorResult(TypedDict):
    error: str
