from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

DEFAULT_SSH_PORT = 22


@dataclass(frozen=True)
class ServerCredential:
    name: str
    host: str
    username: str
    port: int = DEFAULT_SSH_PORT
    password: str | None = None
    key_path: str | None = None
    description: str | None = None
    proxy_command: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerCredential":
        """Build a credential from a stored or user-supplied mapping.

        A missing or zero port falls back to 22.
        """
        return cls(
            name=str(data["name"]),
            host=str(data["host"]),
            username=str(data["username"]),
            port=int(data.get("port") or DEFAULT_SSH_PORT),
            password=data.get("password"),
            key_path=data.get("key_path"),
            description=data.get("description"),
            proxy_command=data.get("proxy_command"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; unset optional fields are omitted."""
        return {k: v for k, v in asdict(self).items() if v is not None}
