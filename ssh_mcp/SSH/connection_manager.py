"""Connection lifecycle for named SSH targets.

`SSHConnectionManager` keeps an in-memory registry of live sessions keyed by a
generated connection id. At most one live session exists per server name: the
find-or-create step in `connect` runs under a per-name asyncio lock. Blocking
paramiko calls are pushed to worker threads so concurrent tool calls interleave
on the event loop.

A session whose transport dies is not pruned in the background. The next
lookup for its server notices the dead transport, flips `connected` to False
and opens a fresh session; the stale entry stays visible in `get_status` until
`disconnect` removes it.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from loguru import logger

from ssh_mcp.config import ServerConfigManager, ServerCredential
from ssh_mcp.errors import (
    CommandTimeoutError,
    NoTargetError,
    SSHConnectionError,
    UnknownServerError,
)

from .remote_executor import RemoteExecutor
from .utils.types import DisconnectResult, ExecuteResult, SessionInfo, StatusResult

DEFAULT_COMMAND_TIMEOUT = 30


@dataclass
class Session:
    id: str
    server_name: str
    executor: Any = field(repr=False)
    connected: bool = False
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_alive(self) -> bool:
        return self.connected and self.executor.is_active()

    def to_dict(self) -> SessionInfo:
        return {
            "id": self.id,
            "server_name": self.server_name,
            "connected": self.connected,
            "connected_at": self.connected_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }


@dataclass
class ExecutionResult:
    stdout: str
    stderr: str
    exit_code: int | None
    duration: int  # milliseconds

    def to_dict(self) -> ExecuteResult:
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration": self.duration,
        }


class SSHConnectionManager:
    """Find-or-create SSH sessions and run commands on them.

    Args:
        config_manager: Credential store used to resolve server names.
        executor_factory: Builds the transport for a credential. Defaults to
            `RemoteExecutor` with the given connect timeout and output cap.
        connect_timeout: Seconds allowed for connect plus authentication.
        max_output_bytes: Optional cap on each captured stream.
        clock: Monotonic clock in seconds, used for durations and deadlines.
    """

    def __init__(
        self,
        config_manager: ServerConfigManager,
        executor_factory: Callable[[ServerCredential], Any] | None = None,
        *,
        connect_timeout: float = 30.0,
        max_output_bytes: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config_manager = config_manager
        self._executor_factory = executor_factory or (
            lambda cred: RemoteExecutor(
                cred, timeout=connect_timeout, max_output_bytes=max_output_bytes
            )
        )
        self._clock = clock
        self._connections: dict[str, Session] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._counter = itertools.count()

    def _generate_connection_id(self) -> str:
        return f"conn_{int(time.time() * 1000)}_{next(self._counter)}"

    def _resolve(self, server_name: str | None) -> ServerCredential:
        name = server_name or self.config_manager.get_default_server()
        if not name:
            raise NoTargetError("No server specified and no default server configured")
        credential = self.config_manager.get_server(name)
        if credential is None:
            raise UnknownServerError(f"Server '{name}' not found in configuration")
        return credential

    def get_connection(self, server_name: str) -> Session | None:
        """Return the first registered session for `server_name` that is marked connected."""
        for conn in self._connections.values():
            if conn.server_name == server_name and conn.connected:
                return conn
        return None

    async def connect(self, server_name: str | None = None) -> Session:
        """Return a live session for the target, opening one if needed.

        Raises:
            NoTargetError: No name given and no default configured.
            UnknownServerError: The name is not in the credential store.
            SSHConnectionError: Transport or authentication failure.
        """
        credential = self._resolve(server_name)
        name = credential.name

        async with self._locks[name]:
            existing = self.get_connection(name)
            while existing is not None and not existing.is_alive():
                logger.warning(f"Connection {existing.id} to {name} is no longer active")
                existing.connected = False
                existing = self.get_connection(name)
            if existing is not None:
                return existing

            if credential.proxy_command:
                logger.warning(
                    f"Proxy command for {name} is not supported and will be ignored; "
                    f"connecting directly to {credential.host}:{credential.port}"
                )

            executor = self._executor_factory(credential)
            try:
                await asyncio.to_thread(executor.connect)
            except SSHConnectionError as e:
                logger.error(f"Connection error to {name}: {e}")
                raise
            except Exception as e:
                logger.error(f"Connection error to {name}: {e}")
                raise SSHConnectionError(f"SSH connection failed to {name}: {e}") from e

            session = Session(
                id=self._generate_connection_id(),
                server_name=name,
                executor=executor,
                connected=True,
            )
            self._connections[session.id] = session
            logger.info(f"Connected to {name} ({session.id})")
            return session

    def disconnect(self, connection_id: str | None = None) -> DisconnectResult:
        """Close one session by id, or every session when no id is given."""
        if connection_id:
            conn = self._connections.pop(connection_id, None)
            if conn is None:
                return {"disconnected": 0}
            self._close(conn)
            return {"disconnected": 1}

        count = 0
        for conn_id in list(self._connections):
            self._close(self._connections.pop(conn_id))
            count += 1
        return {"disconnected": count}

    def _close(self, conn: Session) -> None:
        conn.connected = False
        try:
            conn.executor.close()
        except Exception as e:
            logger.warning(f"Error while closing {conn.id} to {conn.server_name}: {e}")
        logger.info(f"Disconnected {conn.id} from {conn.server_name}")

    async def execute_command(
        self,
        server_name: str,
        command: str,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> ExecutionResult:
        """Run `command` on the target and collect its output.

        The timeout covers the whole call, connect or reuse included. A value of
        0 disables it. If connecting used up the budget the command is never
        started. On a later timeout the local wait is abandoned; the remote
        process may keep running.

        Raises:
            CommandTimeoutError: The command did not finish within `timeout`.
            ExecStartError: The exec request failed.
            Any error raised by `connect`.
        """
        if not server_name:
            raise ValueError("server_name is required")
        if not command:
            raise ValueError("command is required")
        if timeout is None:
            timeout = DEFAULT_COMMAND_TIMEOUT
        if timeout < 0:
            raise ValueError("timeout must be >= 0")

        start = self._clock()
        session = await self.connect(server_name)
        executor = session.executor

        remaining = None
        if timeout > 0:
            remaining = timeout - (self._clock() - start)
            if remaining <= 0:
                logger.warning(f"Connecting to {session.server_name} used the whole {timeout}s budget")
                raise CommandTimeoutError(f"Command timeout after {timeout}s")

        stop = threading.Event()

        def run() -> tuple[bytes, bytes, int | None]:
            # start and drain in one worker so a late start still sees `stop`
            channel = executor.start_command(command)
            return executor.collect_output(channel, stop)

        try:
            if remaining is None:
                stdout, stderr, exit_code = await asyncio.to_thread(run)
            else:
                try:
                    stdout, stderr, exit_code = await asyncio.wait_for(asyncio.to_thread(run), remaining)
                except asyncio.TimeoutError:
                    logger.warning(f"Command on {session.server_name} timed out after {timeout}s")
                    raise CommandTimeoutError(f"Command timeout after {timeout}s") from None
        finally:
            stop.set()

        return ExecutionResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=exit_code,
            duration=int(round((self._clock() - start) * 1000)),
        )

    def get_status(self) -> StatusResult:
        return {
            "connections": [conn.to_dict() for conn in self._connections.values()],
            "total": len(self._connections),
        }

    def close_all(self) -> None:
        closed = self.disconnect()["disconnected"]
        if closed:
            logger.info(f"Closed {closed} SSH connection(s)")
