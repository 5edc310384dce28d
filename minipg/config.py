import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

ENV_PREFIX = "MINIPG_"


class DatabaseConfig(BaseModel):
    dsn: str = "postgresql://localhost:5432/postgres"
    pool_min_size: int = 1
    pool_max_size: int = 10
    log_sql: bool = True

    @classmethod
    def from_env(cls, environ=None):
        """Read MINIPG_DSN, MINIPG_POOL_MIN_SIZE, ... from the environment"""
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            key = ENV_PREFIX + field_name.upper()
            if key in environ:
                values[field_name] = environ[key]
        return cls(**values)


class CreateUpdateOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    return_records: bool = True
    return_select: Optional[List[str]] = None


class DeleteOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    return_records: bool = False
    return_select: Optional[List[str]] = None
