"""Deployments and the DeploymentInfo key index.

Deployment keys are global: the deploymentInfo collection is keyed by the
deployment key and records the owning app, which lets key-addressed clients
find a deployment without knowing its app and enforces key uniqueness.
"""

import logging
import secrets
from typing import List

from .apps import AppRepository
from .bootstrap import Backend
from .errors import ErrorCode, already_exists, invalid, not_found, translate_error
from .models import Deployment, DeploymentInfo
from .repository import (
    DEPLOYMENT,
    DEPLOYMENT_INFO,
    Repository,
    new_id,
    now_ms,
    storage_operation,
)

logger = logging.getLogger(__name__)

EMPTY_HISTORY = b"[]"


def generate_deployment_key() -> str:
    return secrets.token_urlsafe(32)


class DeploymentRepository(Repository):
    def __init__(self, backend: Backend, apps: AppRepository):
        super().__init__(backend)
        self._apps = apps

    @storage_operation
    async def add_deployment(self, account_id: str, app_id: str, deployment: Deployment) -> str:
        """Create a deployment, its key index entry and an empty history blob.

        The three writes are sequential; a failure leaves the earlier ones in
        place and is reported to the caller.
        """
        deployment = deployment.clone()
        deployment.id = new_id()
        deployment.key = deployment.key or generate_deployment_key()
        if deployment.created_time is None:
            deployment.created_time = now_ms()

        await self._apps.get_app(account_id, app_id)

        taken = await self._documents.get(DEPLOYMENT_INFO, deployment.key)
        if taken.exists:
            raise already_exists("The deployment key is already in use.")

        await self._documents.set(DEPLOYMENT, deployment.id, deployment.to_dict())
        info = DeploymentInfo(app_id=app_id, deployment_id=deployment.id)
        await self._documents.create(DEPLOYMENT_INFO, deployment.key, info.to_dict())
        await self._blobs.put(deployment.id, EMPTY_HISTORY)

        logger.info(
            f"Added deployment {deployment.id}",
            extra={"account_id": account_id, "app_id": app_id, "deployment_id": deployment.id},
        )
        return deployment.id

    @storage_operation
    async def get_deployment(self, account_id: str, app_id: str, deployment_id: str) -> Deployment:
        """Fetch a deployment of an app visible to `account_id`.

        The key index must agree that the deployment belongs to `app_id`.
        """
        await self._apps.get_app(account_id, app_id)

        doc = await self._documents.get(DEPLOYMENT, deployment_id)
        if not doc.exists:
            raise not_found()
        deployment = Deployment.from_dict(doc.to_dict())

        if not deployment.key:
            raise not_found()
        info_doc = await self._documents.get(DEPLOYMENT_INFO, deployment.key)
        if not info_doc.exists:
            raise not_found()
        info = DeploymentInfo.from_dict(info_doc.to_dict())
        if info.app_id != app_id or info.deployment_id != deployment_id:
            raise not_found()

        return deployment

    @storage_operation
    async def get_deployment_info(self, deployment_key: str) -> DeploymentInfo:
        doc = await self._documents.get(DEPLOYMENT_INFO, deployment_key)
        if not doc.exists:
            raise not_found()
        return DeploymentInfo.from_dict(doc.to_dict())

    @storage_operation
    async def get_deployments(self, account_id: str, app_id: str) -> List[Deployment]:
        await self._apps.get_app(account_id, app_id)

        infos = await self._documents.query(DEPLOYMENT_INFO, "appId", "==", app_id)
        deployment_ids = [DeploymentInfo.from_dict(doc.to_dict()).deployment_id for doc in infos]

        deployments = []
        for doc in await self._documents.get_all(DEPLOYMENT, deployment_ids):
            if not doc.exists:
                logger.warning(
                    f"Skipping key index entry for missing deployment {doc.id}",
                    extra={"app_id": app_id, "deployment_id": doc.id},
                )
                continue
            deployments.append(Deployment.from_dict(doc.to_dict()))
        return deployments

    @storage_operation
    async def update_deployment(self, account_id: str, app_id: str, deployment: Deployment) -> None:
        """Overwrite a deployment. Its key cannot change."""
        if not deployment.id:
            raise invalid("No deployment id")

        stored = await self.get_deployment(account_id, app_id, deployment.id)
        deployment = deployment.clone()
        if deployment.key is None:
            deployment.key = stored.key
        elif deployment.key != stored.key:
            raise invalid("The deployment key cannot be changed")

        await self._documents.set(DEPLOYMENT, deployment.id, deployment.to_dict())

    @storage_operation
    async def remove_deployment(self, account_id: str, app_id: str, deployment_id: str) -> None:
        """Delete history blob, key index entry and deployment, in that order."""
        deployment = await self.get_deployment(account_id, app_id, deployment_id)
        await self._delete(deployment)
        logger.info(
            f"Removed deployment {deployment_id}",
            extra={"account_id": account_id, "app_id": app_id, "deployment_id": deployment_id},
        )

    @storage_operation
    async def remove_app_deployments(self, account_id: str, app_id: str) -> None:
        for deployment in await self.get_deployments(account_id, app_id):
            await self._delete(deployment)

    async def _delete(self, deployment: Deployment) -> None:
        try:
            await self._blobs.delete(deployment.id)
        except Exception as e:
            if translate_error(e).code != ErrorCode.NOT_FOUND:
                raise
        await self._documents.delete(DEPLOYMENT_INFO, deployment.key)
        await self._documents.delete(DEPLOYMENT, deployment.id)
