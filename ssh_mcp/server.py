"""MCP server bootstrap and global state.

Reads settings, configures logging and optional Weave tracing, creates the
FastMCP server, the credential store and the connection manager, then imports
the SSH tools package so its tools register. The globals `mcp`,
`config_manager` and `connection_manager` are imported by `main.py` and the
tool modules.
"""

import sys

import weave
from loguru import logger
from mcp.server.fastmcp import FastMCP

from ssh_mcp.config import ServerConfigManager, Settings
from ssh_mcp.SSH.connection_manager import SSHConnectionManager

settings: Settings = Settings.from_env()

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

if settings.weave_project:
    weave.init(settings.weave_project)

mcp: FastMCP = FastMCP("ssh-mcp-server", host=settings.host, port=settings.port)
config_manager: ServerConfigManager = ServerConfigManager(settings.config_path)
connection_manager: SSHConnectionManager = SSHConnectionManager(
    config_manager,
    connect_timeout=settings.connect_timeout,
    max_output_bytes=settings.max_output_bytes,
)

logger.info(
    f"SSH MCP server configured with {len(config_manager.get_all_servers())} server(s) "
    f"from {config_manager.config_path}"
)

# ruff: noqa: F401, E402
import ssh_mcp.SSH.tools
