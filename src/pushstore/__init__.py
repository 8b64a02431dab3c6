"""Persistence layer for accounts, apps, deployments and release history."""

from .config import StorageConfig
from .errors import ErrorCode, StorageError
from .models import (
    AccessKey,
    Account,
    App,
    AppPointer,
    CollaboratorProperties,
    Deployment,
    DeploymentInfo,
    Package,
    Permission,
)
from .packages import MAX_PACKAGE_HISTORY_LENGTH
from .storage import Storage, create_storage

__all__ = [
    "AccessKey",
    "Account",
    "App",
    "AppPointer",
    "CollaboratorProperties",
    "Deployment",
    "DeploymentInfo",
    "ErrorCode",
    "MAX_PACKAGE_HISTORY_LENGTH",
    "Package",
    "Permission",
    "Storage",
    "StorageConfig",
    "StorageError",
    "create_storage",
]
