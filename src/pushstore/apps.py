"""Apps, their collaborator maps and the AppPointer reverse index.

Firestore cannot query "apps whose embedded collaborator map mentions account
X", so every (account, app) membership is mirrored by an appPointer document
keyed "{accountId}:{appId}". App and pointer writes are separate, non-atomic
steps; readers re-check membership against the app document, so a stale or
missing pointer only affects listings.
"""

import asyncio
import logging
from typing import Iterable, List

from .accounts import AccountRepository
from .bootstrap import Backend
from .errors import ErrorCode, StorageError, already_exists, invalid, not_found
from .models import (
    App,
    AppPointer,
    CollaboratorMap,
    CollaboratorProperties,
    Permission,
    pointer_key,
)
from .repository import APP, APP_POINTER, Repository, new_id, now_ms, storage_operation

logger = logging.getLogger(__name__)


def annotate_for_account(app: App, account_id: str) -> App:
    """Flag the caller's collaborator entry on a freshly read app.

    Raises NotFound when the account is not a collaborator, so lookups double
    as authorization checks.
    """
    collaborator = app.find_collaborator(account_id)
    if collaborator is None:
        raise not_found()
    collaborator.is_current_account = True
    return app


def is_duplicate_app_name(apps: Iterable[App], name: str) -> bool:
    """True if one of the caller's own apps (as annotated) already uses `name`."""
    for app in apps:
        if app.name != name:
            continue
        for props in app.collaborators.values():
            if props.is_current_account and props.permission == Permission.OWNER:
                return True
    return False


class AppRepository(Repository):
    def __init__(self, backend: Backend, accounts: AccountRepository):
        super().__init__(backend)
        self._accounts = accounts

    async def _add_pointer(self, account_id: str, app_id: str) -> None:
        pointer = AppPointer(app_id=app_id, account_id=account_id)
        await self._documents.set(APP_POINTER, pointer.key, pointer.to_dict())

    async def _remove_pointer(self, account_id: str, app_id: str) -> None:
        await self._documents.delete(APP_POINTER, pointer_key(account_id, app_id))

    async def _save(self, app: App) -> None:
        await self._documents.set(APP, app.id, app.to_dict())

    @storage_operation
    async def add_app(self, account_id: str, app: App) -> App:
        """Create an app owned by `account_id`, then its pointer."""
        app = app.clone()
        app.id = new_id()
        if app.created_time is None:
            app.created_time = now_ms()

        account = await self._accounts.get_account(account_id)
        app.collaborators = {
            account.email: CollaboratorProperties(
                account_id=account_id, permission=Permission.OWNER
            )
        }

        await self._save(app)
        await self._add_pointer(account_id, app.id)
        logger.info(
            f"Added app {app.id}",
            extra={"account_id": account_id, "app_id": app.id},
        )
        return app

    @storage_operation
    async def get_app(self, account_id: str, app_id: str) -> App:
        doc = await self._documents.get(APP, app_id)
        if not doc.exists:
            raise not_found()
        return annotate_for_account(App.from_dict(doc.to_dict()), account_id)

    @storage_operation
    async def get_apps(self, account_id: str) -> List[App]:
        pointers = await self._documents.query(APP_POINTER, "accountId", "==", account_id)
        if not pointers:
            return []

        app_ids = [AppPointer.from_dict(doc.to_dict()).app_id for doc in pointers]
        apps = []
        for doc in await self._documents.get_all(APP, app_ids):
            if not doc.exists:
                logger.warning(
                    f"Skipping pointer to missing app {doc.id}",
                    extra={"account_id": account_id, "app_id": doc.id},
                )
                continue
            app = App.from_dict(doc.to_dict())
            if app.find_collaborator(account_id) is None:
                logger.warning(
                    f"Skipping app {doc.id}: account is no longer a collaborator",
                    extra={"account_id": account_id, "app_id": doc.id},
                )
                continue
            apps.append(annotate_for_account(app, account_id))
        return apps

    @storage_operation
    async def update_app(self, account_id: str, app: App) -> None:
        """Overwrite an app visible to `account_id`.

        The collaborator map is kept as stored; membership changes go through
        the collaborator operations so pointers stay in step.
        """
        if not app.id:
            raise invalid("No app id")

        stored = await self.get_app(account_id, app.id)
        app = app.clone()
        app.collaborators = stored.collaborators
        await self._save(app)

    @storage_operation
    async def transfer_app(self, account_id: str, app_id: str, email: str) -> None:
        app, target = await asyncio.gather(
            self.get_app(account_id, app_id),
            self._accounts.get_account_by_email(email),
        )

        existing = app.collaborators.get(email)
        if existing is not None and existing.permission == Permission.OWNER:
            raise already_exists("The given account already owns the app.")

        target_apps = await self.get_apps(target.id)
        if is_duplicate_app_name(target_apps, app.name):
            raise already_exists(
                f'Cannot transfer ownership. An app with name "{app.name}" '
                "already exists for the given collaborator."
            )

        owner_email = app.owner_email()
        if owner_email is None:
            raise StorageError(ErrorCode.OTHER, f"App {app_id} has no owner")
        app.collaborators[owner_email].permission = Permission.COLLABORATOR

        target_was_collaborator = existing is not None
        if target_was_collaborator:
            existing.permission = Permission.OWNER
        else:
            app.collaborators[email] = CollaboratorProperties(
                account_id=target.id, permission=Permission.OWNER
            )

        await self._save(app)
        if not target_was_collaborator:
            await self._add_pointer(target.id, app.id)
        logger.info(
            f"Transferred app {app_id} to {target.id}",
            extra={"account_id": account_id, "app_id": app_id, "target_account_id": target.id},
        )

    @storage_operation
    async def add_collaborator(self, account_id: str, app_id: str, email: str) -> None:
        app, collaborator = await asyncio.gather(
            self.get_app(account_id, app_id),
            self._accounts.get_account_by_email(email),
        )

        if email in app.collaborators:
            raise already_exists("The given account is already a collaborator for this app.")

        app.collaborators[email] = CollaboratorProperties(
            account_id=collaborator.id, permission=Permission.COLLABORATOR
        )
        await asyncio.gather(self._save(app), self._add_pointer(collaborator.id, app.id))
        logger.info(
            f"Added collaborator {collaborator.id} to app {app_id}",
            extra={"account_id": account_id, "app_id": app_id},
        )

    @storage_operation
    async def get_collaborators(self, account_id: str, app_id: str) -> CollaboratorMap:
        app = await self.get_app(account_id, app_id)
        return app.collaborators

    @storage_operation
    async def remove_collaborator(self, account_id: str, app_id: str, email: str) -> None:
        app = await self.get_app(account_id, app_id)

        collaborator = app.collaborators.get(email)
        if collaborator is None:
            raise not_found("The given email is not a collaborator for this app.")
        if collaborator.permission == Permission.OWNER:
            raise invalid("Cannot remove the owner of the app from collaborator list.")

        del app.collaborators[email]
        await self._save(app)
        await self._remove_pointer(collaborator.account_id, app_id)
        logger.info(
            f"Removed collaborator {collaborator.account_id} from app {app_id}",
            extra={"account_id": account_id, "app_id": app_id},
        )

    @storage_operation
    async def remove_app(self, account_id: str, app_id: str) -> None:
        """Delete the app document, then every collaborator's pointer.

        Deployments must be removed first (see DeploymentRepository). If a
        pointer delete fails the remaining pointers dangle; get_apps skips them.
        """
        app = await self.get_app(account_id, app_id)
        await self._documents.delete(APP, app_id)
        for props in app.collaborators.values():
            await self._remove_pointer(props.account_id, app_id)
        logger.info(
            f"Removed app {app_id}",
            extra={"account_id": account_id, "app_id": app_id},
        )
