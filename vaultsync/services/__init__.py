"""Services for vaultsync module."""
from .api_client import APIError, AuthenticationError, VaultAPIClient
from .gateway import TransferGateway
from .workspace import StorageUsage, WorkspaceListing, WorkspaceService

__all__ = [
    "APIError",
    "AuthenticationError",
    "VaultAPIClient",
    "TransferGateway",
    "StorageUsage",
    "WorkspaceListing",
    "WorkspaceService",
]
