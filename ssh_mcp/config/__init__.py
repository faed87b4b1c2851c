from .credentials import ServerCredential
from .manager import ServerConfigManager
from .settings import Settings

__all__ = ["ServerCredential", "ServerConfigManager", "Settings"]
