"""Structural validation for the persisted server document.

The document looks like::

    {
      "default_server": "<name>",        # optional
      "servers": {
        "<name>": {"name": "<name>", "host": "...", "port": 22,
                   "username": "...", "password": "...", "key_path": "...",
                   "description": "...", "proxy_command": "..."}
      }
    }
"""

from __future__ import annotations

from typing import Any


class SchemaError(ValueError):
    """Raised when the persisted document structure is invalid."""


_REQUIRED = ("host", "username")
_OPTIONAL_STR = ("password", "key_path", "description", "proxy_command")


def validate_config_schema(data: Any) -> None:
    """Validate the server document.

    Checks:
    - top level is an object with a `servers` object
    - each server entry has string `host` and `username`, an integer `port` if
      provided, and string (or null) optional fields
    - an entry's `name`, when present, matches its key
    - `default_server`, when set, is a string

    Raises:
        SchemaError: on structural issues; the message names the offending entry.
    """
    if not isinstance(data, dict):
        raise SchemaError("Top-level document must be an object")

    servers = data.get("servers")
    if not isinstance(servers, dict):
        raise SchemaError("'servers' must be an object")

    for key, entry in servers.items():
        if not isinstance(entry, dict):
            raise SchemaError(f"servers[{key!r}] must be an object")
        name = entry.get("name", key)
        if name != key:
            raise SchemaError(f"servers[{key!r}].name does not match its key")
        for req in _REQUIRED:
            value = entry.get(req)
            if not isinstance(value, str) or not value.strip():
                raise SchemaError(f"servers[{key!r}] is missing required field '{req}'")
        port = entry.get("port")
        if port is not None and (isinstance(port, bool) or not isinstance(port, int)):
            raise SchemaError(f"servers[{key!r}].port must be an integer if provided")
        for opt in _OPTIONAL_STR:
            if entry.get(opt) is not None and not isinstance(entry[opt], str):
                raise SchemaError(f"servers[{key!r}].{opt} must be a string if provided")

    default = data.get("default_server")
    if default is not None and not isinstance(default, str):
        raise SchemaError("default_server must be a string if provided")
