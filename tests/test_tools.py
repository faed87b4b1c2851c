"""Tests for the MCP tool boundary: payload shapes and error wrapping."""

import json

import pytest
from mcp.shared.memory import create_connected_server_and_client_session
from mcp.types import CallToolResult

import ssh_mcp.SSH.tools as tools
from ssh_mcp.server import mcp


@pytest.fixture(autouse=True)
def patched(monkeypatch, config_manager, manager):
    monkeypatch.setattr(tools, "config_manager", config_manager)
    monkeypatch.setattr(tools, "connection_manager", manager)


def load(payload: str):
    return json.loads(payload)


def load_error(result: CallToolResult):
    assert isinstance(result, CallToolResult)
    assert result.isError is True
    return json.loads(result.content[0].text)


@pytest.mark.asyncio
async def test_tools_are_registered():
    names = {tool.name for tool in await mcp.list_tools()}
    assert names == {
        "ssh_connect",
        "ssh_disconnect",
        "ssh_execute",
        "ssh_get_status",
        "ssh_list_servers",
        "ssh_add_server",
        "ssh_delete_server",
        "ssh_set_default",
    }


@pytest.mark.asyncio
async def test_add_then_list():
    created = load(await tools.ssh_add_server(name="x", host="h", username="u"))
    assert created == {"name": "x", "host": "h", "username": "u", "port": 22}

    listed = load(await tools.ssh_list_servers(include_system_info=False))
    assert listed == [{"name": "x", "host": "h", "username": "u", "port": 22, "is_default": False}]


@pytest.mark.asyncio
async def test_list_with_connection_info():
    await tools.ssh_add_server(name="a", host="h", username="u")
    await tools.ssh_add_server(name="b", host="h", username="u")
    await tools.ssh_connect(server_name="a")

    listed = {s["name"]: s["connected"] for s in load(await tools.ssh_list_servers())}

    assert listed == {"a": True, "b": False}


@pytest.mark.asyncio
async def test_duplicate_add_is_error_result():
    await tools.ssh_add_server(name="x", host="h", username="u")

    assert load_error(await tools.ssh_add_server(name="x", host="h2", username="u")) == {
        "error": "Server 'x' already exists"
    }


@pytest.mark.asyncio
async def test_default_scenario():
    await tools.ssh_add_server(name="a", host="1.2.3.4", username="root", password="p")
    assert load(await tools.ssh_set_default(name="a")) is True

    session = load(await tools.ssh_connect())
    assert session["server_name"] == "a"
    assert session["connected"] is True

    assert load(await tools.ssh_delete_server(name="a")) is True
    assert tools.config_manager.get_default_server() is None


@pytest.mark.asyncio
async def test_connect_without_default():
    payload = load_error(await tools.ssh_connect())
    assert payload == {"error": "No server specified and no default server configured"}


@pytest.mark.asyncio
async def test_execute_payload(fake_ssh):
    fake_ssh.stdout = b"Linux\n"
    await tools.ssh_add_server(name="a", host="h", username="u")

    result = load(await tools.ssh_execute(server_name="a", command="uname"))

    assert result["stdout"] == "Linux\n"
    assert result["stderr"] == ""
    assert result["exit_code"] == 0
    assert isinstance(result["duration"], int)


@pytest.mark.asyncio
async def test_execute_timeout_result(fake_ssh):
    fake_ssh.run_delay = 5
    await tools.ssh_add_server(name="a", host="h", username="u")

    result = load_error(await tools.ssh_execute(server_name="a", command="sleep 9", timeout=0.1))

    assert result == {"error": "Command timeout after 0.1s"}


@pytest.mark.asyncio
async def test_execute_requires_command():
    assert load_error(await tools.ssh_execute(server_name="a", command=" ")) == {"error": "'command' is required"}


@pytest.mark.asyncio
async def test_status_and_disconnect():
    await tools.ssh_add_server(name="a", host="h", username="u")
    session = load(await tools.ssh_connect(server_name="a"))

    status = load(await tools.ssh_get_status())
    assert status["total"] == 1
    assert status["connections"][0]["id"] == session["id"]

    assert load(await tools.ssh_disconnect(connection_id="conn_unknown")) == {"disconnected": 0}
    assert load(await tools.ssh_disconnect()) == {"disconnected": 1}
    assert load(await tools.ssh_get_status()) == {"connections": [], "total": 0}


@pytest.mark.asyncio
async def test_delete_missing_is_error_result():
    assert load_error(await tools.ssh_delete_server(name="nope")) == {"error": "Server 'nope' not found"}


@pytest.mark.asyncio
class TestOverClientSession:
    async def test_failure_is_flagged_as_error(self):
        async with create_connected_server_and_client_session(mcp._mcp_server) as client:
            result = await client.call_tool("ssh_connect", {"server_name": "ghost"})

        assert result.isError is True
        assert json.loads(result.content[0].text) == {"error": "Server 'ghost' not found in configuration"}

    async def test_success_is_plain_json_text(self):
        async with create_connected_server_and_client_session(mcp._mcp_server) as client:
            result = await client.call_tool("ssh_add_server", {"name": "x", "host": "h", "username": "u"})

        assert result.isError is False
        assert result.structuredContent is None
        assert json.loads(result.content[0].text) == {"name": "x", "host": "h", "username": "u", "port": 22}
