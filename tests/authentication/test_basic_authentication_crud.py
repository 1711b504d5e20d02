"""Unit tests for src/authentication/basic_authentication_crud.py"""

from typing import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from src.authentication.basic_authentication_crud import CredentialStore
from src.db import create_session_factory

pytestmark = pytest.mark.anyio


@pytest.fixture
async def credential_store(anyio_backend, test_engine: AsyncEngine) -> AsyncIterator[CredentialStore]:
    await CredentialStore.create_table(test_engine)
    try:
        yield CredentialStore(create_session_factory(test_engine))
    finally:
        await test_engine.dispose()


async def test_find_unknown_user(credential_store: CredentialStore) -> None:
    assert await credential_store.find_by_identity("nobody") is None


async def test_create_and_find_user(credential_store: CredentialStore) -> None:
    assert await credential_store.create("alice", "hash", "salt") is True

    user = await credential_store.find_by_identity("alice")
    assert user is not None
    assert (user.username, user.hash_password, user.salt) == ("alice", "hash", "salt")


async def test_create_duplicate_user(credential_store: CredentialStore) -> None:
    await credential_store.create("alice", "hash", "salt")

    assert await credential_store.create("alice", "other", "pepper") is False

    user = await credential_store.find_by_identity("alice")
    assert user.hash_password == "hash"


async def test_store_usable_after_duplicate(credential_store: CredentialStore) -> None:
    await credential_store.create("alice", "hash", "salt")
    await credential_store.create("alice", "hash", "salt")

    assert await credential_store.create("bob", "hash", "salt") is True
