"""Process settings read from the environment.

`main.py` calls `load_dotenv()` first, so values may also come from a `.env`
file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_PATH = Path.home() / ".ssh_servers.json"
DEFAULT_CONNECT_TIMEOUT = 30.0


def _optional_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass(frozen=True)
class Settings:
    config_path: Path = DEFAULT_CONFIG_PATH
    transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    weave_project: str | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    max_output_bytes: int | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        config_path = os.getenv("SSH_MCP_CONFIG")
        return cls(
            config_path=Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH,
            transport=os.getenv("MCP_TRANSPORT", "stdio"),
            host=os.getenv("MCP_HOST", "0.0.0.0"),
            port=int(os.getenv("MCP_PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            weave_project=os.getenv("WEAVE_PROJECT") or None,
            connect_timeout=float(os.getenv("SSH_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT)),
            max_output_bytes=_optional_int(os.getenv("SSH_MCP_MAX_OUTPUT_BYTES")),
        )
