"""
SSH connection management and MCP tools.

This package provides the paramiko transport (`remote_executor`), the
connection manager that reuses sessions per server (`connection_manager`) and
the MCP tools exposing them (`tools`, imported by `ssh_mcp.server`).
"""
