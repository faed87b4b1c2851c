"""Pytest configuration and shared fixtures for SSH MCP tests."""

import os
import sys
import tempfile
import threading
import time
from pathlib import Path

import pytest
from loguru import logger

# The server module builds its store from the environment at import time.
os.environ["SSH_MCP_CONFIG"] = str(Path(tempfile.mkdtemp()) / "ssh_servers.json")
os.environ.pop("WEAVE_PROJECT", None)

from ssh_mcp.config import ServerConfigManager  # noqa: E402
from ssh_mcp.errors import ExecStartError, SSHConnectionError  # noqa: E402
from ssh_mcp.SSH.connection_manager import SSHConnectionManager  # noqa: E402

# Configure logging
logger.remove()
logger.add(sys.stderr, level="INFO")

pytest_plugins = ("pytest_asyncio",)


class FakeSSH:
    """Shared behaviour knobs for every FakeExecutor a test creates."""

    def __init__(self):
        self.connect_error: Exception | None = None
        self.start_error: Exception | None = None
        self.connect_delay = 0.0
        self.run_delay = 0.0
        self.stdout = b""
        self.stderr = b""
        self.exit_code: int | None = 0
        self.executors: list["FakeExecutor"] = []
        self.commands: list[str] = []


class FakeExecutor:
    """Stands in for RemoteExecutor without touching the network."""

    def __init__(self, credential, fake: FakeSSH):
        self.credential = credential
        self.fake = fake
        self.active = False
        self.closed = False
        self.aborted = False

    def connect(self):
        if self.fake.connect_delay:
            time.sleep(self.fake.connect_delay)
        if self.fake.connect_error is not None:
            raise self.fake.connect_error
        self.active = True

    def is_active(self):
        return self.active

    def close(self):
        self.active = False
        self.closed = True

    def start_command(self, command):
        if self.fake.start_error is not None:
            raise self.fake.start_error
        self.fake.commands.append(command)
        return object()

    def collect_output(self, channel, stop: threading.Event):
        if self.fake.run_delay and stop.wait(self.fake.run_delay):
            self.aborted = True
            return b"", b"", None
        return self.fake.stdout, self.fake.stderr, self.fake.exit_code


class FakeClock:
    """Returns preset instants in order, then keeps returning the last one."""

    def __init__(self, *instants: float):
        self._instants = list(instants)

    def __call__(self) -> float:
        if len(self._instants) > 1:
            return self._instants.pop(0)
        return self._instants[0]


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "ssh_servers.json"


@pytest.fixture
def config_manager(config_path):
    return ServerConfigManager(config_path)


@pytest.fixture
def fake_ssh():
    return FakeSSH()


@pytest.fixture
def make_manager(config_manager, fake_ssh):
    def factory(**kwargs):
        def build(credential):
            executor = FakeExecutor(credential, fake_ssh)
            fake_ssh.executors.append(executor)
            return executor

        return SSHConnectionManager(config_manager, build, **kwargs)

    return factory


@pytest.fixture
def manager(make_manager):
    return make_manager()


@pytest.fixture
def auth_failure():
    return SSHConnectionError("SSH authentication failed for root@1.2.3.4: Authentication failed.")


@pytest.fixture
def exec_refused():
    return ExecStartError("Failed to start command: channel request refused")


@pytest.fixture
def fake_clock():
    return FakeClock
