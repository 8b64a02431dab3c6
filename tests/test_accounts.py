"""Tests for account storage."""

import pytest

from pushstore import Account, ErrorCode, StorageError


class TestAddAccount:
    """Test account creation."""

    @pytest.mark.asyncio
    async def test_assigns_id(self, storage, documents):
        """Test a fresh id is assigned and the account persisted under it."""
        account_id = await storage.add_account(Account(email="a@example.com", name="A"))
        assert account_id
        stored = documents.collections["account"][account_id]
        assert stored["email"] == "a@example.com"
        assert stored["id"] == account_id
        assert "createdTime" in stored

    @pytest.mark.asyncio
    async def test_caller_object_untouched(self, storage):
        """Test the caller's account is not mutated."""
        account = Account(email="a@example.com")
        await storage.add_account(account)
        assert account.id is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, storage):
        """Test registering the same e-mail twice fails."""
        await storage.add_account(Account(email="a@example.com"))
        with pytest.raises(StorageError) as exc_info:
            await storage.add_account(Account(email="a@example.com"))
        assert exc_info.value.code == ErrorCode.ALREADY_EXISTS


class TestGetAccount:
    """Test account lookups."""

    @pytest.mark.asyncio
    async def test_by_id(self, storage, owner_id):
        """Test lookup by id."""
        account = await storage.get_account(owner_id)
        assert account.email == "alice@example.com"
        assert account.name == "Alice"

    @pytest.mark.asyncio
    async def test_by_email(self, storage, owner_id):
        """Test lookup by e-mail."""
        account = await storage.get_account_by_email("alice@example.com")
        assert account.id == owner_id

    @pytest.mark.asyncio
    async def test_missing_id(self, storage):
        """Test unknown id raises NotFound."""
        with pytest.raises(StorageError) as exc_info:
            await storage.get_account("nope")
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_missing_email(self, storage):
        """Test unknown e-mail raises NotFound."""
        with pytest.raises(StorageError) as exc_info:
            await storage.get_account_by_email("nobody@example.com")
        assert exc_info.value.code == ErrorCode.NOT_FOUND


class TestUpdateAccount:
    """Test profile updates."""

    @pytest.mark.asyncio
    async def test_profile_field(self, storage, owner_id):
        """Test a profile field is patched."""
        await storage.update_account("alice@example.com", {"gitHubId": "alice-gh"})
        account = await storage.get_account(owner_id)
        assert account.github_id == "alice-gh"
        assert account.name == "Alice"

    @pytest.mark.asyncio
    async def test_email_change_rejected(self, storage, owner_id):
        """Test the e-mail cannot be changed."""
        with pytest.raises(StorageError) as exc_info:
            await storage.update_account("alice@example.com", {"email": "new@example.com"})
        assert exc_info.value.code == ErrorCode.INVALID
        assert (await storage.get_account(owner_id)).email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_unknown_email(self, storage):
        """Test updating an unregistered e-mail raises NotFound."""
        with pytest.raises(StorageError) as exc_info:
            await storage.update_account("nobody@example.com", {"name": "X"})
        assert exc_info.value.code == ErrorCode.NOT_FOUND
