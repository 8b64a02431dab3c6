"""Per-deployment package release history.

History is one JSON array blob per deployment (blob name = deployment id),
oldest release first, read and rewritten whole on every change. The latest
release is also copied onto the deployment document as `package`.
"""

import json
import logging
import re
from typing import List

from .accounts import AccountRepository
from .bootstrap import Backend
from .deployments import EMPTY_HISTORY, DeploymentRepository
from .errors import invalid
from .models import Deployment, Package, packages_from_json, packages_to_json
from .repository import DEPLOYMENT, Repository, storage_operation

logger = logging.getLogger(__name__)

MAX_PACKAGE_HISTORY_LENGTH = 50
_LABEL_PATTERN = re.compile(r"^v(\d+)$")


def next_label(history: List[Package]) -> str:
    """Label following the highest "v<N>" release.

    Histories replaced in bulk may carry other labels; with no "v<N>" label
    at all the position after the last release is used.
    """
    versions = [
        int(match.group(1))
        for match in (_LABEL_PATTERN.match(pkg.label or "") for pkg in history)
        if match
    ]
    if not versions:
        return f"v{len(history) + 1}"
    return f"v{max(versions) + 1}"


def append_release(history: List[Package], pkg: Package) -> List[Package]:
    """Append `pkg`, clear the previous tail's rollout and trim oldest first."""
    if history:
        history[-1].rollout = None
    history.append(pkg)
    if len(history) > MAX_PACKAGE_HISTORY_LENGTH:
        del history[: len(history) - MAX_PACKAGE_HISTORY_LENGTH]
    return history


def _decode(content: bytes) -> List[Package]:
    return packages_from_json(json.loads(content.decode("utf-8")))


def _encode(history: List[Package]) -> bytes:
    return json.dumps(packages_to_json(history)).encode("utf-8")


class PackageHistoryStore(Repository):
    def __init__(
        self,
        backend: Backend,
        accounts: AccountRepository,
        deployments: DeploymentRepository,
    ):
        super().__init__(backend)
        self._accounts = accounts
        self._deployments = deployments

    async def _write(self, deployment: Deployment, history: List[Package]) -> None:
        await self._blobs.put(deployment.id, _encode(history))
        deployment.package = history[-1] if history else None
        await self._documents.set(DEPLOYMENT, deployment.id, deployment.to_dict())

    @storage_operation
    async def commit_package(
        self, account_id: str, app_id: str, deployment_id: str, pkg: Package
    ) -> Package:
        """Append a release, labelling it and stamping the releasing account."""
        if not deployment_id:
            raise invalid("No deployment id")
        if pkg is None:
            raise invalid("No package specified")

        pkg = pkg.clone()
        deployment = await self._deployments.get_deployment(account_id, app_id, deployment_id)
        history = _decode(await self._blobs.get(deployment_id))
        pkg.label = next_label(history)

        account = await self._accounts.get_account(account_id)
        pkg.released_by = account.email

        await self._write(deployment, append_release(history, pkg))
        logger.info(
            f"Committed {pkg.label} to deployment {deployment_id}",
            extra={"account_id": account_id, "app_id": app_id, "deployment_id": deployment_id},
        )
        return pkg

    @storage_operation
    async def get_package_history(
        self, account_id: str, app_id: str, deployment_id: str
    ) -> List[Package]:
        await self._deployments.get_deployment(account_id, app_id, deployment_id)
        return _decode(await self._blobs.get(deployment_id))

    @storage_operation
    async def get_package_history_from_deployment_key(self, deployment_key: str) -> List[Package]:
        """History addressed by deployment key alone; no app authorization."""
        info = await self._deployments.get_deployment_info(deployment_key)
        return _decode(await self._blobs.get(info.deployment_id))

    @storage_operation
    async def clear_package_history(self, account_id: str, app_id: str, deployment_id: str) -> None:
        deployment = await self._deployments.get_deployment(account_id, app_id, deployment_id)
        deployment.package = None
        await self._documents.set(DEPLOYMENT, deployment_id, deployment.to_dict())
        await self._blobs.put(deployment_id, EMPTY_HISTORY)
        logger.info(
            f"Cleared history of deployment {deployment_id}",
            extra={"account_id": account_id, "app_id": app_id, "deployment_id": deployment_id},
        )

    @storage_operation
    async def update_package_history(
        self, account_id: str, app_id: str, deployment_id: str, history: List[Package]
    ) -> None:
        """Replace the whole history.

        Labels and rollouts are written as given. Use clear_package_history to
        empty a history.
        """
        if not history:
            raise invalid("Cannot clear package history from an update operation")

        deployment = await self._deployments.get_deployment(account_id, app_id, deployment_id)
        await self._write(deployment, [pkg.clone() for pkg in history])
