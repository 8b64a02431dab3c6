"""Public storage contract combining all repositories."""

import logging
from typing import Any, BinaryIO, Dict, List, Optional

from .access_keys import AccessKeyRepository
from .accounts import AccountRepository
from .apps import AppRepository
from .backends.base import BlobStore, DocumentStore
from .backends.firestore import FirestoreDocumentStore
from .backends.gcs import GcsBlobStore
from .blobs import BlobRepository
from .bootstrap import Backend
from .config import StorageConfig
from .deployments import DeploymentRepository
from .health import HealthChecker
from .models import (
    AccessKey,
    Account,
    App,
    CollaboratorMap,
    Deployment,
    DeploymentInfo,
    Package,
)
from .packages import PackageHistoryStore

logger = logging.getLogger(__name__)


class Storage:
    """Storage facade; every repository shares one backend and setup handle."""

    def __init__(self, documents: DocumentStore, blobs: BlobStore):
        self.backend = Backend(documents=documents, blobs=blobs)
        self.accounts = AccountRepository(self.backend)
        self.access_keys = AccessKeyRepository(self.backend)
        self.apps = AppRepository(self.backend, self.accounts)
        self.deployments = DeploymentRepository(self.backend, self.apps)
        self.packages = PackageHistoryStore(self.backend, self.accounts, self.deployments)
        self.blobs = BlobRepository(self.backend)
        self.health = HealthChecker(self.backend)

    async def setup(self) -> None:
        """Provision the backends now instead of on first use."""
        await self.backend.ready.wait()

    async def check_health(self) -> None:
        await self.health.check_health()

    # Accounts

    async def add_account(self, account: Account) -> str:
        return await self.accounts.add_account(account)

    async def get_account(self, account_id: str) -> Account:
        return await self.accounts.get_account(account_id)

    async def get_account_by_email(self, email: str) -> Account:
        return await self.accounts.get_account_by_email(email)

    async def update_account(self, email: str, updates: Dict[str, Any]) -> None:
        await self.accounts.update_account(email, updates)

    # Access keys

    async def add_access_key(self, account_id: str, access_key: AccessKey) -> str:
        return await self.access_keys.add_access_key(account_id, access_key)

    async def get_access_key(self, account_id: str, access_key_id: str) -> AccessKey:
        return await self.access_keys.get_access_key(account_id, access_key_id)

    async def get_access_keys(self, account_id: str) -> List[AccessKey]:
        return await self.access_keys.get_access_keys(account_id)

    async def get_account_id_from_access_key(self, access_key_name: str) -> str:
        return await self.access_keys.get_account_id_from_access_key(access_key_name)

    async def remove_access_key(self, account_id: str, access_key_id: str) -> None:
        await self.access_keys.remove_access_key(account_id, access_key_id)

    async def update_access_key(self, account_id: str, access_key: AccessKey) -> None:
        await self.access_keys.update_access_key(account_id, access_key)

    # Apps and collaborators

    async def add_app(self, account_id: str, app: App) -> App:
        return await self.apps.add_app(account_id, app)

    async def get_app(self, account_id: str, app_id: str) -> App:
        return await self.apps.get_app(account_id, app_id)

    async def get_apps(self, account_id: str) -> List[App]:
        return await self.apps.get_apps(account_id)

    async def update_app(self, account_id: str, app: App) -> None:
        await self.apps.update_app(account_id, app)

    async def remove_app(self, account_id: str, app_id: str) -> None:
        """Remove every deployment of the app, then the app and its pointers."""
        await self.deployments.remove_app_deployments(account_id, app_id)
        await self.apps.remove_app(account_id, app_id)

    async def transfer_app(self, account_id: str, app_id: str, email: str) -> None:
        await self.apps.transfer_app(account_id, app_id, email)

    async def add_collaborator(self, account_id: str, app_id: str, email: str) -> None:
        await self.apps.add_collaborator(account_id, app_id, email)

    async def get_collaborators(self, account_id: str, app_id: str) -> CollaboratorMap:
        return await self.apps.get_collaborators(account_id, app_id)

    async def remove_collaborator(self, account_id: str, app_id: str, email: str) -> None:
        await self.apps.remove_collaborator(account_id, app_id, email)

    # Deployments

    async def add_deployment(self, account_id: str, app_id: str, deployment: Deployment) -> str:
        return await self.deployments.add_deployment(account_id, app_id, deployment)

    async def get_deployment(self, account_id: str, app_id: str, deployment_id: str) -> Deployment:
        return await self.deployments.get_deployment(account_id, app_id, deployment_id)

    async def get_deployment_info(self, deployment_key: str) -> DeploymentInfo:
        return await self.deployments.get_deployment_info(deployment_key)

    async def get_deployments(self, account_id: str, app_id: str) -> List[Deployment]:
        return await self.deployments.get_deployments(account_id, app_id)

    async def update_deployment(self, account_id: str, app_id: str, deployment: Deployment) -> None:
        await self.deployments.update_deployment(account_id, app_id, deployment)

    async def remove_deployment(self, account_id: str, app_id: str, deployment_id: str) -> None:
        await self.deployments.remove_deployment(account_id, app_id, deployment_id)

    # Package history

    async def commit_package(
        self, account_id: str, app_id: str, deployment_id: str, pkg: Package
    ) -> Package:
        return await self.packages.commit_package(account_id, app_id, deployment_id, pkg)

    async def get_package_history(
        self, account_id: str, app_id: str, deployment_id: str
    ) -> List[Package]:
        return await self.packages.get_package_history(account_id, app_id, deployment_id)

    async def get_package_history_from_deployment_key(self, deployment_key: str) -> List[Package]:
        return await self.packages.get_package_history_from_deployment_key(deployment_key)

    async def clear_package_history(self, account_id: str, app_id: str, deployment_id: str) -> None:
        await self.packages.clear_package_history(account_id, app_id, deployment_id)

    async def update_package_history(
        self, account_id: str, app_id: str, deployment_id: str, history: List[Package]
    ) -> None:
        await self.packages.update_package_history(account_id, app_id, deployment_id, history)

    # Blobs

    async def add_blob(self, blob_id: str, stream: BinaryIO, stream_length: Optional[int] = None) -> str:
        return await self.blobs.add_blob(blob_id, stream, stream_length)

    async def get_blob_url(self, blob_id: str) -> str:
        return await self.blobs.get_blob_url(blob_id)

    async def remove_blob(self, blob_id: str) -> None:
        await self.blobs.remove_blob(blob_id)


def create_storage(config: Optional[StorageConfig] = None) -> Storage:
    """Build a Storage over Firestore and Cloud Storage."""
    config = config or StorageConfig.from_env()
    logger.info(
        f"Creating storage for project {config.project_id}",
        extra={"project_id": config.project_id, "bucket": config.bucket_name},
    )
    return Storage(
        documents=FirestoreDocumentStore.from_config(config),
        blobs=GcsBlobStore.from_config(config),
    )
