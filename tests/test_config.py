import asyncio

import pytest
from pydantic import ValidationError

from minipg import CreateUpdateOptions, DatabaseConfig, DatabaseEngine, DeleteOptions
from minipg import database


def test_config_defaults():
    config = DatabaseConfig()
    assert config.pool_min_size == 1
    assert config.pool_max_size == 10
    assert config.log_sql is True


def test_config_from_env():
    config = DatabaseConfig.from_env({
        "MINIPG_DSN": "postgresql://db:5432/shop",
        "MINIPG_POOL_MAX_SIZE": "4",
        "MINIPG_LOG_SQL": "false",
        "UNRELATED": "x",
    })
    assert config.dsn == "postgresql://db:5432/shop"
    assert config.pool_min_size == 1
    assert config.pool_max_size == 4
    assert config.log_sql is False


def test_config_from_env_validates():
    with pytest.raises(ValidationError):
        DatabaseConfig.from_env({"MINIPG_POOL_MIN_SIZE": "many"})


def test_option_defaults():
    assert CreateUpdateOptions().return_records is True
    assert DeleteOptions().return_records is False
    assert DeleteOptions().return_select is None


def test_options_reject_unknown_keys():
    with pytest.raises(ValidationError):
        DeleteOptions(returning=True)


class FakeAsyncpgPool:
    def __init__(self):
        self.closed = False
        self.fetched = []

    async def fetch(self, query, *params):
        self.fetched.append(query)
        return []

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_engine_creates_pool_once(monkeypatch):
    created = []

    async def create_pool(dsn, min_size, max_size):
        created.append((dsn, min_size, max_size))
        return FakeAsyncpgPool()

    monkeypatch.setattr(database.asyncpg, "create_pool", create_pool)
    engine = DatabaseEngine(DatabaseConfig(dsn="postgresql://db/shop", pool_max_size=3))

    pool = await engine.connect()
    assert await engine.connect() is pool
    assert created == [("postgresql://db/shop", 1, 3)]

    await engine.close()
    assert pool.closed
    assert engine.pool is None


@pytest.mark.asyncio
async def test_concurrent_statements_share_one_pool(monkeypatch):
    created = []

    async def create_pool(dsn, min_size, max_size):
        # Yield so the other statement reaches connect() while the pool is pending
        await asyncio.sleep(0)
        pool = FakeAsyncpgPool()
        created.append(pool)
        return pool

    monkeypatch.setattr(database.asyncpg, "create_pool", create_pool)
    engine = DatabaseEngine(DatabaseConfig(log_sql=False))

    await asyncio.gather(engine.execute("SELECT 1"), engine.execute("SELECT 1"))

    assert len(created) == 1
    assert engine.pool is created[0]
    assert created[0].fetched == ["SELECT 1", "SELECT 1"]


@pytest.mark.asyncio
async def test_close_without_pool():
    engine = DatabaseEngine()
    await engine.close()
    assert engine.pool is None
