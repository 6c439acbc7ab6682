from unittest.mock import AsyncMock, patch

import pytest

from auth.passwords_handler import verify_password_async
from auth.rbac import Role
from models.user import User
from scripts import seed_data


@pytest.mark.parametrize("missing", ["SEED_OWNER_EMAIL", "SEED_OWNER_PASSWORD"])
def test_owner_credentials_are_required(monkeypatch, missing):
    monkeypatch.setenv("SEED_OWNER_EMAIL", "boss@example.com")
    monkeypatch.setenv("SEED_OWNER_PASSWORD", "a-long-secret")
    monkeypatch.delenv(missing)

    with pytest.raises(SystemExit) as exc_info:
        seed_data.owner_credentials()
    assert exc_info.value.code == 1


@pytest.mark.asyncio
async def test_seed_exits_before_touching_the_database(monkeypatch):
    monkeypatch.delenv("SEED_OWNER_EMAIL", raising=False)
    monkeypatch.delenv("SEED_OWNER_PASSWORD", raising=False)

    with patch.object(seed_data, "create_all_tables", new=AsyncMock()) as create_tables:
        with pytest.raises(SystemExit):
            await seed_data.seed()
    create_tables.assert_not_awaited()


@pytest.mark.asyncio
async def test_seed_owner_uses_supplied_login(async_db_session):
    await seed_data.seed_owner(async_db_session, "boss@example.com", "a-long-secret")
    await async_db_session.commit()

    owner = await async_db_session.get(User, "boss@example.com")
    assert owner.role == Role.OWNER.value
    assert await verify_password_async("a-long-secret", owner.password)
