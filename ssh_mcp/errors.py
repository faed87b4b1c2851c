"""Exceptions raised by the credential store and the connection manager.

Every error derives from `SSHMCPError`, a `ValueError`, so tool code can treat
them the same way it treats argument validation failures.
"""


class SSHMCPError(ValueError):
    """Base class for all domain errors."""


class NoTargetError(SSHMCPError):
    """No server name given and no default server configured."""


class UnknownServerError(SSHMCPError):
    """The requested server name has no stored credentials."""


class SSHConnectionError(SSHMCPError):
    """Transport or authentication failure while connecting."""


class CommandTimeoutError(SSHMCPError):
    """The remote command did not complete within its timeout."""


class ExecStartError(SSHMCPError):
    """The remote side refused or failed to start the command."""


class DuplicateServerError(SSHMCPError):
    """A server with the same name already exists."""


class ServerNotFoundError(SSHMCPError):
    """Delete or set-default targeted a name that does not exist."""


class PersistenceError(SSHMCPError):
    """Writing the credential store to disk failed."""
