"""JSON-file backed store of SSH server credentials.

Holds every configured server keyed by name plus an optional default server.
Each mutation rewrites the whole document; a missing or unreadable file is
treated as an empty store.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from loguru import logger

from ssh_mcp.errors import DuplicateServerError, PersistenceError, ServerNotFoundError

from .credentials import ServerCredential
from .schema import validate_config_schema
from .settings import DEFAULT_CONFIG_PATH


class ServerConfigManager:
    """Manage the server credentials persisted in a JSON document.

    Args:
        config_path: Path to the JSON document. Defaults to `~/.ssh_servers.json`.
    """

    def __init__(self, config_path: Union[str, Path, None] = None):
        self.config_path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
        self._servers: dict[str, ServerCredential] = {}
        self._default_server: str | None = None
        self._load_config()

    def _load_config(self) -> None:
        """Load the document from disk, falling back to an empty store."""
        if not self.config_path.exists():
            return
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            validate_config_schema(data)
        except (OSError, ValueError) as e:
            # ValueError covers bad UTF-8, bad JSON and SchemaError
            logger.warning(f"Ignoring unreadable server config {self.config_path}: {e}")
            return
        self._servers = {
            name: ServerCredential.from_dict({**entry, "name": name})
            for name, entry in data["servers"].items()
        }
        default = data.get("default_server")
        if default is not None and default not in self._servers:
            logger.warning(f"Default server '{default}' is not configured; clearing it")
            default = None
        self._default_server = default

    def _document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        if self._default_server is not None:
            doc["default_server"] = self._default_server
        doc["servers"] = {name: cred.to_dict() for name, cred in self._servers.items()}
        return doc

    def _save_config(self) -> None:
        """Atomically overwrite the document on disk.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        payload = json.dumps(self._document(), indent=2)
        tmp_path = None
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.config_path.name}.", dir=self.config_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.config_path)
        except OSError as e:
            logger.error(f"Failed to save server config {self.config_path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Failed to save server config: {e}") from e

    def add_server(
        self,
        name: str,
        host: str,
        username: str,
        port: int | None = None,
        password: str | None = None,
        key_path: str | None = None,
        description: str | None = None,
        proxy_command: str | None = None,
    ) -> ServerCredential:
        """Register a new server and persist it.

        Raises:
            DuplicateServerError: If a server with that name already exists.
            PersistenceError: If saving fails; the store is left unchanged.
        """
        if name in self._servers:
            raise DuplicateServerError(f"Server '{name}' already exists")
        credential = ServerCredential.from_dict(
            {
                "name": name,
                "host": host,
                "username": username,
                "port": port,
                "password": password,
                "key_path": key_path,
                "description": description,
                "proxy_command": proxy_command,
            }
        )
        self._servers[name] = credential
        try:
            self._save_config()
        except PersistenceError:
            del self._servers[name]
            raise
        return credential

    def delete_server(self, name: str) -> bool:
        """Remove a server; clears the default pointer if it referenced it.

        Raises:
            ServerNotFoundError: If the name is not configured.
        """
        if name not in self._servers:
            raise ServerNotFoundError(f"Server '{name}' not found")
        removed = self._servers.pop(name)
        previous_default = self._default_server
        if previous_default == name:
            self._default_server = None
        try:
            self._save_config()
        except PersistenceError:
            self._servers[name] = removed
            self._default_server = previous_default
            raise
        return True

    def get_server(self, name: str) -> ServerCredential | None:
        return self._servers.get(name)

    def list_servers(self, keyword: str | None = None) -> list[dict[str, Any]]:
        """Return servers as dicts annotated with `is_default`.

        Args:
            keyword: Optional case-insensitive filter on name, host and description.
        """
        servers = list(self._servers.values())
        if keyword:
            needle = keyword.lower()
            servers = [
                s
                for s in servers
                if needle in s.name.lower()
                or needle in s.host.lower()
                or (s.description and needle in s.description.lower())
            ]
        return [{**s.to_dict(), "is_default": s.name == self._default_server} for s in servers]

    def get_default_server(self) -> str | None:
        return self._default_server

    def set_default_server(self, name: str) -> bool:
        """Point the default at an existing server and persist.

        Raises:
            ServerNotFoundError: If the name is not configured.
        """
        if name not in self._servers:
            raise ServerNotFoundError(f"Server '{name}' not found")
        previous_default = self._default_server
        self._default_server = name
        try:
            self._save_config()
        except PersistenceError:
            self._default_server = previous_default
            raise
        return True

    def get_all_servers(self) -> dict[str, ServerCredential]:
        return dict(self._servers)
