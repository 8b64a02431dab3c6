"""Shared plumbing for the storage repositories."""

import functools
import time
import uuid

from .bootstrap import Backend
from .errors import StorageError, translate_error

ACCOUNT = "account"
APP = "app"
APP_POINTER = "appPointer"
DEPLOYMENT = "deployment"
DEPLOYMENT_INFO = "deploymentInfo"
ACCESS_KEY = "accessKey"


def storage_operation(func):
    """Await backend setup, then run the operation with errors translated.

    Errors already carrying a storage code pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            await self._backend.ready.wait()
            return await func(self, *args, **kwargs)
        except StorageError:
            raise
        except Exception as e:
            raise translate_error(e) from e

    return wrapper


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


class Repository:
    def __init__(self, backend: Backend):
        self._backend = backend

    @property
    def _documents(self):
        return self._backend.documents

    @property
    def _blobs(self):
        return self._backend.blobs
