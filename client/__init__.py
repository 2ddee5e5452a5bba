from client.auth import AuthClient
from client.coordinator import RefreshCoordinator
from client.errors import RefreshFailed
from client.token_store import TokenStore

__all__ = ["AuthClient", "RefreshCoordinator", "RefreshFailed", "TokenStore"]
