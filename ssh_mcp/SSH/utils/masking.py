"""Masking helpers for safe logging/debugging.

These utilities keep hosts, usernames and key paths out of logs in clear text.
"""

from __future__ import annotations

from ssh_mcp.config import ServerCredential


def mask_value(value: str | None) -> str:
    """Mask a value by replacing every other character with "*".

    Returns an empty string if value is falsy.
    """
    if not value:
        return ""
    return "".join("*" if i % 2 else c for i, c in enumerate(value))


def describe_credential(credential: ServerCredential) -> str:
    """One-line masked summary of a credential for debug logs."""
    auth = "key" if credential.key_path else "password" if credential.password else "none"
    return (
        f"HOST={mask_value(credential.host)}, USERNAME={mask_value(credential.username)}, "
        f"PORT={credential.port}, KEY_PATH={mask_value(credential.key_path)}, AUTH={auth}"
    )
