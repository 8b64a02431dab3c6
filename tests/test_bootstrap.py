"""Tests for one-time provisioning and the health check."""

import asyncio

import pytest
from google.api_core import exceptions as google_exceptions

from pushstore import ErrorCode, Storage, StorageError
from pushstore.bootstrap import SetupHandle, provision


class TestSetupHandle:
    """Test the single-flight setup handle."""

    @pytest.mark.asyncio
    async def test_runs_once_for_concurrent_callers(self):
        """Test concurrent waiters share one setup run."""
        runs = []

        async def setup():
            runs.append(1)
            await asyncio.sleep(0.01)

        handle = SetupHandle(setup)
        await asyncio.gather(*(handle.wait() for _ in range(10)))
        await handle.wait()
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_failure_is_memoized(self):
        """Test every caller sees the same setup failure without a rerun."""
        runs = []

        async def setup():
            runs.append(1)
            raise RuntimeError("no backend")

        handle = SetupHandle(setup)
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await handle.wait()
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_lazy(self):
        """Test nothing runs until the first wait."""
        handle = SetupHandle(lambda: asyncio.sleep(0))
        assert not handle.started
        await handle.wait()
        assert handle.started

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_setup(self):
        """Test cancelling one waiter leaves setup running for others."""
        release = asyncio.Event()
        finished = []

        async def setup():
            await release.wait()
            finished.append(1)

        handle = SetupHandle(setup)
        first = asyncio.ensure_future(handle.wait())
        await asyncio.sleep(0)
        first.cancel()
        release.set()
        await handle.wait()
        assert finished == [1]


class TestProvision:
    """Test backend provisioning."""

    @pytest.mark.asyncio
    async def test_writes_sentinels(self, documents, blobs):
        """Test the health document, bucket and health blob are created."""
        await provision(documents, blobs)
        assert documents.collections["health"]["health"] == {"status": "healthy"}
        assert blobs.bucket_created
        assert blobs.blobs["health"] == b"health"

    @pytest.mark.asyncio
    async def test_existing_bucket_ignored(self, documents, blobs):
        """Test provisioning twice ignores the bucket conflict."""
        await provision(documents, blobs)
        await provision(documents, blobs)
        assert blobs.blobs["health"] == b"health"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, documents, blobs):
        """Test a real backend failure is not swallowed."""
        blobs.fail_on["ensure_bucket"] = google_exceptions.Forbidden("no permission")
        with pytest.raises(google_exceptions.Forbidden):
            await provision(documents, blobs)

    @pytest.mark.asyncio
    async def test_first_operation_provisions(self, storage, documents, blobs):
        """Test the first storage call triggers provisioning exactly once."""
        await storage.get_apps("anyone")
        await storage.get_apps("anyone")
        assert blobs.bucket_created
        assert documents.calls.count(("set", "health")) == 1

    @pytest.mark.asyncio
    async def test_setup_failure_translated(self, documents, blobs):
        """Test operations report a failed setup with a storage code."""
        blobs.fail_on["ensure_bucket"] = google_exceptions.ServiceUnavailable("down")
        storage = Storage(documents=documents, blobs=blobs)
        with pytest.raises(StorageError) as exc_info:
            await storage.get_account("x")
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED


class TestHealthCheck:
    """Test the two-phase health check."""

    @pytest.mark.asyncio
    async def test_healthy(self, storage):
        """Test a provisioned backend is healthy."""
        await storage.check_health()

    @pytest.mark.asyncio
    async def test_missing_document(self, storage, documents):
        """Test a missing health document fails."""
        await storage.setup()
        del documents.collections["health"]["health"]
        with pytest.raises(StorageError) as exc_info:
            await storage.check_health()
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_wrong_blob_content(self, storage, blobs):
        """Test a health blob with unexpected content fails."""
        await storage.setup()
        blobs.blobs["health"] = b"sick"
        with pytest.raises(StorageError) as exc_info:
            await storage.check_health()
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_blob_backend_error(self, storage, blobs):
        """Test any blob read error counts as a connection failure."""
        await storage.setup()
        blobs.fail_on["get"] = google_exceptions.Forbidden("denied")
        with pytest.raises(StorageError) as exc_info:
            await storage.check_health()
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
