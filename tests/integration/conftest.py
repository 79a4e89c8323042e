import os
from collections.abc import AsyncGenerator

import psycopg
import pytest
import pytest_asyncio

from bookworker.config.settings import Settings
from bookworker.database.connection import (
    build_conninfo,
    close_pool,
    ensure_schema,
    get_connection,
    init_pool,
)

TEST_USER_IDS = (900001, 900002, 900003)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "bookworker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest_asyncio.fixture
async def integration_pool(test_settings: Settings) -> AsyncGenerator[None, None]:
    try:
        probe = await psycopg.AsyncConnection.connect(
            build_conninfo(test_settings),
            connect_timeout=3,
        )
    except psycopg.OperationalError as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    await probe.close()

    await init_pool(test_settings)
    try:
        await ensure_schema()
        yield
    finally:
        await close_pool()


@pytest_asyncio.fixture
async def clean_profiles(integration_pool: None) -> AsyncGenerator[tuple[int, ...], None]:
    await _delete_profiles()
    try:
        yield TEST_USER_IDS
    finally:
        await _delete_profiles()


async def _delete_profiles() -> None:
    async with get_connection() as conn:
        async with conn.transaction():
            await conn.execute(
                "DELETE FROM user_profiles WHERE user_id = ANY(%s)",
                (list(TEST_USER_IDS),),
            )
