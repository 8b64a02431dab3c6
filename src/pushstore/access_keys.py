"""API access keys."""

import logging
from typing import List

from .errors import ErrorCode, StorageError, invalid, not_found
from .models import AccessKey
from .repository import ACCESS_KEY, Repository, new_id, now_ms, storage_operation

logger = logging.getLogger(__name__)

# Fields fixed at issue time.
_FIXED_FIELDS = ("id", "createdBy", "createdTime")


class AccessKeyRepository(Repository):
    async def _get_owned(self, account_id: str, access_key_id: str) -> AccessKey:
        doc = await self._documents.get(ACCESS_KEY, access_key_id)
        if not doc.exists or doc.to_dict().get("createdBy") != account_id:
            raise not_found()
        return AccessKey.from_dict(doc.to_dict())

    @storage_operation
    async def add_access_key(self, account_id: str, access_key: AccessKey) -> str:
        access_key = access_key.clone()
        access_key.id = new_id()
        access_key.created_by = account_id
        access_key.created_time = now_ms()

        await self._documents.set(ACCESS_KEY, access_key.id, access_key.to_dict())
        logger.info(
            f"Added access key {access_key.id}",
            extra={"account_id": account_id, "access_key_id": access_key.id},
        )
        return access_key.id

    @storage_operation
    async def get_access_key(self, account_id: str, access_key_id: str) -> AccessKey:
        return await self._get_owned(account_id, access_key_id)

    @storage_operation
    async def get_access_keys(self, account_id: str) -> List[AccessKey]:
        docs = await self._documents.query(ACCESS_KEY, "createdBy", "==", account_id)
        return [AccessKey.from_dict(doc.to_dict()) for doc in docs]

    @storage_operation
    async def get_account_id_from_access_key(self, access_key_name: str) -> str:
        """Resolve an access key name to the account that created it.

        Expiry is checked against the current time on every lookup.
        """
        docs = await self._documents.query(ACCESS_KEY, "name", "==", access_key_name)
        if not docs:
            raise not_found()

        access_key = AccessKey.from_dict(docs[0].to_dict())
        if access_key.expires is not None and now_ms() >= access_key.expires:
            raise StorageError(ErrorCode.EXPIRED, "The access key has expired.")
        return access_key.created_by

    @storage_operation
    async def remove_access_key(self, account_id: str, access_key_id: str) -> None:
        await self._get_owned(account_id, access_key_id)
        await self._documents.delete(ACCESS_KEY, access_key_id)
        logger.info(
            f"Removed access key {access_key_id}",
            extra={"account_id": account_id, "access_key_id": access_key_id},
        )

    @storage_operation
    async def update_access_key(self, account_id: str, access_key: AccessKey) -> None:
        """Patch an owned access key; unset fields are left as stored."""
        if not access_key.id:
            raise invalid("No access key id")
        await self._get_owned(account_id, access_key.id)
        patch = {k: v for k, v in access_key.to_dict().items() if k not in _FIXED_FIELDS}
        if patch:
            await self._documents.update(ACCESS_KEY, access_key.id, patch)
