# minipg - a small Postgres ORM that compiles where expressions into parameterized SQL
import logging

from minipg.base import Entity
from minipg.builder import CompiledQuery, QueryBuilder
from minipg.config import CreateUpdateOptions, DatabaseConfig, DeleteOptions
from minipg.database import DatabaseEngine
from minipg.errors import (
    InvalidArgumentError,
    InvalidConstraintError,
    MiniPGError,
    MissingRequiredFieldError,
    ModelDeclarationError,
    UndefinedValueError,
    UnknownPropertyError,
    UnknownRelatedModelError,
    UnsupportedOperatorError,
)
from minipg.filters import UNDEFINED
from minipg.orm_types import (
    ArrayColumn,
    Boolean,
    Collection,
    Column,
    Date,
    Float,
    Integer,
    Json,
    Relationship,
    Text,
)
from minipg.repository import ReadonlyRepository, Repository, initialize

logging.getLogger("minipg").addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "Entity", "Column", "Text", "Integer", "Float", "Boolean", "Date", "Json", "ArrayColumn",
    "Relationship", "Collection", "QueryBuilder", "CompiledQuery", "DatabaseEngine", "DatabaseConfig",
    "CreateUpdateOptions", "DeleteOptions", "Repository", "ReadonlyRepository", "initialize", "UNDEFINED",
    "MiniPGError", "ModelDeclarationError", "UnknownPropertyError", "UnknownRelatedModelError",
    "MissingRequiredFieldError", "UndefinedValueError", "InvalidConstraintError",
    "UnsupportedOperatorError", "InvalidArgumentError",
]
