"""Account records."""

import logging
from typing import Any, Dict

from .errors import already_exists, invalid, not_found
from .models import Account
from .repository import ACCOUNT, Repository, new_id, now_ms, storage_operation

logger = logging.getLogger(__name__)

# Identity fields; collaborator maps are keyed by email so these never change.
_IMMUTABLE_FIELDS = ("id", "email")


class AccountRepository(Repository):
    @storage_operation
    async def add_account(self, account: Account) -> str:
        """Persist a new account under a fresh id and return the id.

        Fails with AlreadyExists when the email is already registered.
        """
        account = account.clone()
        account.id = new_id()
        if account.created_time is None:
            account.created_time = now_ms()

        existing = await self._documents.query(ACCOUNT, "email", "==", account.email)
        if existing:
            raise already_exists("An account with this e-mail address already exists")

        await self._documents.create(ACCOUNT, account.id, account.to_dict())
        logger.info(f"Added account {account.id}", extra={"account_id": account.id})
        return account.id

    @storage_operation
    async def get_account(self, account_id: str) -> Account:
        doc = await self._documents.get(ACCOUNT, account_id)
        if not doc.exists:
            raise not_found()
        return Account.from_dict(doc.to_dict())

    @storage_operation
    async def get_account_by_email(self, email: str) -> Account:
        docs = await self._documents.query(ACCOUNT, "email", "==", email)
        if not docs:
            raise not_found("The specified e-mail address doesn't represent a registered user")
        return Account.from_dict(docs[0].to_dict())

    @storage_operation
    async def update_account(self, email: str, updates: Dict[str, Any]) -> None:
        """Patch profile fields of the account registered under `email`.

        `updates` uses stored field names (e.g. "gitHubId"). Identity fields
        cannot be changed.
        """
        docs = await self._documents.query(ACCOUNT, "email", "==", email)
        if not docs:
            raise not_found()

        stored = docs[0].to_dict()
        for name in _IMMUTABLE_FIELDS:
            if name in updates and updates[name] != stored.get(name):
                raise invalid(f"The account {name} cannot be changed")

        patch = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
        if not patch:
            return
        await self._documents.update(ACCOUNT, docs[0].id, patch)
        logger.info(f"Updated account {docs[0].id}", extra={"account_id": docs[0].id})
