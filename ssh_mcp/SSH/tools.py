"""MCP tools that expose SSH connections and the server registry.

Every tool returns indented JSON text. Failures never propagate to the MCP
transport: they are logged and returned as an `isError` result whose text is
`{"error": "<message>"}`.

Tools provided:
- `ssh_connect(server_name?)`: open or reuse a session.
- `ssh_disconnect(connection_id?)`: close one session or all of them.
- `ssh_execute(server_name, command, timeout?)`: run a command and collect output.
- `ssh_get_status()`: list registered sessions.
- `ssh_list_servers(keyword?, include_system_info?)`: list configured servers.
- `ssh_add_server(...)`, `ssh_delete_server(name)`, `ssh_set_default(name)`:
  manage the server registry.
"""

# ruff: noqa: I001
import json
from typing import Annotated, Any

import weave
from loguru import logger
from mcp.types import CallToolResult, TextContent

from ssh_mcp.server import config_manager, connection_manager, mcp
from ssh_mcp.SSH.connection_manager import DEFAULT_COMMAND_TIMEOUT
from ssh_mcp.SSH.utils import ErrorResult


def text_payload(result: Any) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False)


def error_payload(tool_name: str, error: Exception) -> CallToolResult:
    """Log a tool failure and turn it into the uniform error result."""
    logger.error(f"{tool_name} failed: {error}")
    payload: ErrorResult = {"error": str(error) or error.__class__.__name__}
    return CallToolResult(content=[TextContent(type="text", text=text_payload(payload))], isError=True)


def _require(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{field}' is required")
    return value


@mcp.tool(
    name="ssh_connect",
    structured_output=False,
    description=(
        "Connect to a configured SSH server. Reuses an existing live connection to the same server.\n\n"
        "Parameters:\n"
        "- server_name (string, optional): server to connect to; the default server is used when omitted.\n"
        "Returns: { id, server_name, connected, connected_at }."
    ),
)
@weave.op()
async def ssh_connect(
    server_name: Annotated[str | None, "Server name; uses the default server if omitted"] = None,
) -> str | CallToolResult:
    try:
        session = await connection_manager.connect(server_name)
    except Exception as e:
        return error_payload("ssh_connect", e)
    return text_payload(session.to_dict())


@mcp.tool(
    name="ssh_disconnect",
    structured_output=False,
    description=(
        "Disconnect from SSH servers.\n\n"
        "Parameters:\n"
        "- connection_id (string, optional): connection to close; all connections are closed when omitted.\n"
        "Returns: { disconnected: number }. Unknown ids disconnect nothing and are not an error."
    ),
)
@weave.op()
async def ssh_disconnect(
    connection_id: Annotated[str | None, "Connection id; disconnects all if omitted"] = None,
) -> str | CallToolResult:
    try:
        result = connection_manager.disconnect(connection_id)
    except Exception as e:
        return error_payload("ssh_disconnect", e)
    return text_payload(result)


@mcp.tool(
    name="ssh_execute",
    structured_output=False,
    description=(
        "Execute a command on an SSH server as a single non-interactive process (no PTY).\n\n"
        "Parameters:\n"
        "- server_name (string): configured server name.\n"
        "- command (string): command to execute.\n"
        f"- timeout (number, optional): seconds before giving up, default {DEFAULT_COMMAND_TIMEOUT}; 0 disables it. "
        "The remote process is not killed on timeout.\n"
        "Returns: { stdout, stderr, exit_code, duration } with duration in milliseconds. "
        "exit_code is null if the server reported none."
    ),
)
@weave.op()
async def ssh_execute(
    server_name: Annotated[str, "Configured server name"],
    command: Annotated[str, "Command to execute"],
    timeout: Annotated[float | None, "Timeout in seconds; 0 disables it"] = None,
) -> str | CallToolResult:
    try:
        _require(server_name, "server_name")
        _require(command, "command")
        result = await connection_manager.execute_command(
            server_name,
            command,
            DEFAULT_COMMAND_TIMEOUT if timeout is None else timeout,
        )
    except Exception as e:
        return error_payload("ssh_execute", e)
    return text_payload(result.to_dict())


@mcp.tool(
    name="ssh_get_status",
    structured_output=False,
    description="Get SSH connection status. Returns { connections: [{ id, server_name, connected, connected_at }], total }.",
)
@weave.op()
async def ssh_get_status() -> str | CallToolResult:
    try:
        result = connection_manager.get_status()
    except Exception as e:
        return error_payload("ssh_get_status", e)
    return text_payload(result)


@mcp.tool(
    name="ssh_list_servers",
    structured_output=False,
    description=(
        "List configured SSH servers.\n\n"
        "Parameters:\n"
        "- keyword (string, optional): case-insensitive filter on name, host and description.\n"
        "- include_system_info (boolean, optional, default true): add a 'connected' flag per server.\n"
        "Returns: array of { name, host, port, username, description?, key_path?, proxy_command?, is_default }."
    ),
)
@weave.op()
async def ssh_list_servers(
    keyword: Annotated[str | None, "Optional keyword to filter servers"] = None,
    include_system_info: Annotated[bool, "Whether to include live connection info"] = True,
) -> str | CallToolResult:
    try:
        servers = config_manager.list_servers(keyword)
        if include_system_info:
            for server in servers:
                server["connected"] = connection_manager.get_connection(server["name"]) is not None
    except Exception as e:
        return error_payload("ssh_list_servers", e)
    return text_payload(servers)


@mcp.tool(
    name="ssh_add_server",
    structured_output=False,
    description=(
        "Add a new SSH server configuration. Fails if the name already exists.\n\n"
        "Authentication uses key_path when set, otherwise password. proxy_command is stored but only "
        "partially supported: connections go directly to host:port."
    ),
)
@weave.op()
async def ssh_add_server(
    name: Annotated[str, "Server name (unique identifier)"],
    host: Annotated[str, "Server address"],
    username: Annotated[str, "Username"],
    port: Annotated[int | None, "SSH port, default 22"] = None,
    password: Annotated[str | None, "Password (use key or password)"] = None,
    key_path: Annotated[str | None, "SSH private key path (use key or password)"] = None,
    description: Annotated[str | None, "Server description"] = None,
    proxy_command: Annotated[str | None, "SSH ProxyCommand (e.g., cloudflared access ssh --hostname %h)"] = None,
) -> str | CallToolResult:
    try:
        credential = config_manager.add_server(
            name=_require(name, "name"),
            host=_require(host, "host"),
            username=_require(username, "username"),
            port=port,
            password=password,
            key_path=key_path,
            description=description,
            proxy_command=proxy_command,
        )
    except Exception as e:
        return error_payload("ssh_add_server", e)
    return text_payload(credential.to_dict())


@mcp.tool(
    name="ssh_delete_server",
    structured_output=False,
    description="Delete an SSH server configuration. Clears the default server if it pointed at it.",
)
@weave.op()
async def ssh_delete_server(name: Annotated[str, "Server name to delete"]) -> str | CallToolResult:
    try:
        result = config_manager.delete_server(_require(name, "name"))
    except Exception as e:
        return error_payload("ssh_delete_server", e)
    return text_payload(result)


@mcp.tool(
    name="ssh_set_default",
    structured_output=False,
    description="Set the default SSH server used when ssh_connect is called without a name.",
)
@weave.op()
async def ssh_set_default(name: Annotated[str, "Server name to set as default"]) -> str | CallToolResult:
    try:
        result = config_manager.set_default_server(_require(name, "name"))
    except Exception as e:
        return error_payload("ssh_set_default", e)
    return text_payload(result)
