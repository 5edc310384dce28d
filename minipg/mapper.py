import re

from minipg.errors import ModelDeclarationError, UnknownPropertyError
from minipg.orm_types import Column

_SAFE_IDENT_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_$]*$')


def quote(identifier):
    if not identifier or not _SAFE_IDENT_PATTERN.match(str(identifier)):
        raise ModelDeclarationError(f"Unsafe SQL identifier: {identifier}")
    return f'"{identifier}"'


def snake_case(name):
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    return re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name).lower()


class Mapper:
    """Model metadata: table, ordered columns and primary key of an entity class"""

    def __init__(self, cls, columns, meta_attrs):
        self.cls = cls
        self.meta = meta_attrs or {}
        self.name = self.meta.get("name", cls.__name__)
        self.readonly = bool(self.meta.get("readonly", False))

        self.columns = []
        self.columns_by_property = {}
        self.primary_key_column = None

        self._resolve_table_name()
        self._resolve_columns(columns)
        self._resolve_pk()

    def __repr__(self):
        cols = ", ".join(self.columns_by_property.keys())
        return (
            f"<Mapper class={self.cls.__name__} table={self.table_name} "
            f"columns=[{cols}] pk={self.primary_key_property}>"
        )

    def _resolve_table_name(self):
        self.table_name = self.meta.get("table_name", snake_case(self.cls.__name__))
        quote(self.table_name)

    def _resolve_columns(self, columns):
        for property_name, column in columns.items():
            if not isinstance(column, Column):
                raise ModelDeclarationError(f"{self.cls.__name__}.{property_name} is not a column")
            if column.property_name is None:
                column.property_name = property_name
            if column.name is None:
                column.name = property_name
            quote(property_name)
            quote(column.name)

            self.columns.append(column)
            self.columns_by_property[property_name] = column

    def _resolve_pk(self):
        pk_cols = [col for col in self.columns if col.primary_key]
        if len(pk_cols) > 1:
            names = [col.property_name for col in pk_cols]
            raise ModelDeclarationError(f"Class {self.cls.__name__} declares more than one primary key: {names}")
        if pk_cols:
            self.primary_key_column = pk_cols[0]
        else:
            self.primary_key_column = self.columns_by_property.get("id")

    @property
    def primary_key_property(self):
        if self.primary_key_column is not None:
            return self.primary_key_column.property_name
        return "id"

    def column(self, property_name):
        if not property_name:
            raise UnknownPropertyError(f"Property name is not defined for model ({self.name}).")

        column = self.columns_by_property.get(property_name)
        if column is None:
            raise UnknownPropertyError(f"Property ({property_name}) not found in model ({self.name}).")
        return column

    def hydrate(self, row):
        """Build an entity from a result row keyed by property name"""
        obj = self.cls()
        for key, value in dict(row).items():
            object.__setattr__(obj, key, value)
        return obj
