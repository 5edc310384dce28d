import pytest

from minipg import DatabaseConfig, DatabaseEngine, QueryBuilder, initialize
from models import ALL_MODELS


class FakePool:
    """Stands in for an asyncpg pool, recording every (query, params) call"""

    def __init__(self):
        self.calls = []
        self.rows = []
        self.closed = False

    async def fetch(self, query, *params):
        self.calls.append((query, list(params)))
        return self.rows

    async def close(self):
        self.closed = True


@pytest.fixture
def registry():
    return {model._mapper.name.lower(): model._mapper for model in ALL_MODELS}


@pytest.fixture
def builder(registry):
    return QueryBuilder(registry)


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def engine(pool):
    return DatabaseEngine(DatabaseConfig(log_sql=True), pool=pool)


@pytest.fixture
def repositories(engine):
    return initialize(ALL_MODELS, engine)
