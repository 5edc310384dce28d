import asyncio
import logging

import asyncpg

from minipg.config import DatabaseConfig


class DatabaseEngine:
    logger = logging.getLogger("minipg")

    def __init__(self, config=None, pool=None):
        self.config = config or DatabaseConfig()
        self.pool = pool
        self._pool_lock = None

    async def connect(self):
        if self.pool is not None:
            return self.pool

        # Created on first use so the lock belongs to the running loop
        if self._pool_lock is None:
            self._pool_lock = asyncio.Lock()

        async with self._pool_lock:
            if self.pool is None:
                self.pool = await asyncpg.create_pool(
                    self.config.dsn,
                    min_size=self.config.pool_min_size,
                    max_size=self.config.pool_max_size,
                )
                self.logger.info(
                    f"Connection pool created (min={self.config.pool_min_size}, max={self.config.pool_max_size})"
                )
        return self.pool

    async def close(self):
        if self.pool is None:
            return
        await self.pool.close()
        self.pool = None
        self.logger.info("Connection pool closed")

    def _log(self, sql, params=None):
        if not self.config.log_sql:
            return
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.info(msg)

    async def execute(self, sql, params=None):
        pool = await self.connect()
        self._log(sql, params)
        return await pool.fetch(sql, *(params or ()))
