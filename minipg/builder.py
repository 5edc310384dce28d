import json
import math
from typing import Any, List, NamedTuple

from minipg.errors import InvalidArgumentError, MissingRequiredFieldError, UndefinedValueError
from minipg.filters import UNDEFINED, is_object, property_value
from minipg.mapper import quote
from minipg.orm_types import utcnow
from minipg.where import Params, WhereCompiler, related_model


class CompiledQuery(NamedTuple):
    query: str
    params: List[Any]


def _to_number(value, label):
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidArgumentError(f"{label} should be a number") from None

    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidArgumentError(f"{label} should be a number")

    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _normalize_sorts(sorts):
    if sorts is None:
        return []
    if isinstance(sorts, (list, tuple)):
        return list(sorts)
    return [sorts]


def _as_values(values):
    if hasattr(values, "to_dict"):
        return values.to_dict()
    return dict(values)


class QueryBuilder:
    """Builds SELECT / INSERT / UPDATE / DELETE statements with $n placeholders"""

    def __init__(self, registry):
        self.registry = registry
        self.where_compiler = WhereCompiler(registry)

    def column_name(self, model, property_name):
        return model.column(property_name).name

    def columns_to_select(self, model, select=None):
        if select is not None:
            property_names = list(select)
            pk = model.primary_key_column
            if pk is not None and pk.property_name not in property_names:
                property_names.append(pk.property_name)
        else:
            property_names = [col.property_name for col in model.columns if not col.collection]

        cols = []
        for property_name in property_names:
            column = model.column(property_name)
            if column.collection:
                continue
            if column.name != property_name:
                cols.append(f"{quote(column.name)} AS {quote(property_name)}")
            else:
                cols.append(quote(property_name))
        return ",".join(cols)

    def order_statement(self, model, sorts):
        order_properties = []
        for sort_statement in _normalize_sorts(sorts):
            if isinstance(sort_statement, str):
                for sort in sort_statement.split(","):
                    parts = sort.split()
                    if parts:
                        order_properties.append((parts[0], "".join(parts[1:])))
            elif is_object(sort_statement):
                order_properties.extend(dict(sort_statement).items())

        if not order_properties:
            return ""

        order_clauses = []
        for property_name, order in order_properties:
            clause = quote(self.column_name(model, property_name))
            if order == -1 or order == "-1" or "desc" in str(order).lower():
                clause += " DESC"
            order_clauses.append(clause)
        return "ORDER BY " + ",".join(order_clauses)

    def build_select(self, model, where=None, select=None, sorts=None, skip=None, limit=None):
        sql = f"SELECT {self.columns_to_select(model, select)} FROM {quote(model.table_name)}"

        where_statement, params = self.where_compiler.build_where_statement(model, where)
        if where_statement:
            sql += f" {where_statement}"

        order_statement = self.order_statement(model, sorts)
        if order_statement:
            sql += f" {order_statement}"

        if limit:
            sql += f" LIMIT {_to_number(limit, 'Limit')}"
        if skip:
            sql += f" OFFSET {_to_number(skip, 'Skip')}"

        return CompiledQuery(sql, params.values)

    def build_count(self, model, where=None):
        sql = f'SELECT count(*) AS "count" FROM {quote(model.table_name)}'

        where_statement, params = self.where_compiler.build_where_statement(model, where)
        if where_statement:
            sql += f" {where_statement}"

        return CompiledQuery(sql, params.values)

    def build_insert(self, model, values, return_records=True, return_select=None):
        rows = [_as_values(row) for row in (values if isinstance(values, (list, tuple)) else [values])]
        if not rows:
            raise InvalidArgumentError(f"Create statement for \"{model.name}\" has no values to insert")

        # Apply defaults and check required columns before any SQL is written
        columns_to_insert = []
        for column in model.columns:
            if column.collection:
                continue

            default = column.default_value()
            include = False
            for row in rows:
                if default is not UNDEFINED and row.get(column.property_name, UNDEFINED) is UNDEFINED:
                    row[column.property_name] = default

                if row.get(column.property_name, UNDEFINED) is UNDEFINED:
                    if column.required:
                        raise MissingRequiredFieldError(
                            f'Create statement for "{model.name}" is missing value for required field: '
                            f'{column.property_name}'
                        )
                else:
                    include = True

            if include:
                columns_to_insert.append(column)

        params = Params()
        value_rows = [[] for _ in rows]
        # Column-major: every row's value for a column is bound before the next column
        for column in columns_to_insert:
            for index, row in enumerate(rows):
                value = row.get(column.property_name, UNDEFINED)
                if value is None or value is UNDEFINED:
                    value_rows[index].append("NULL")
                else:
                    value_rows[index].append(self._bind_value(model, column, value, params))

        quoted_cols = ",".join(quote(column.name) for column in columns_to_insert)
        sql = f"INSERT INTO {quote(model.table_name)} ({quoted_cols}) VALUES "
        sql += ",".join(f"({','.join(value_row)})" for value_row in value_rows)

        if return_records:
            sql += f" RETURNING {self.columns_to_select(model, return_select)}"

        return CompiledQuery(sql, params.values)

    def build_update(self, model, where, values, return_records=True, return_select=None):
        values = _as_values(values)
        for column in model.columns:
            if column.update_date and values.get(column.property_name, UNDEFINED) is UNDEFINED:
                values[column.property_name] = utcnow()

        params = Params()
        set_parts = []
        for property_name, value in values.items():
            column = model.columns_by_property.get(property_name)
            if column is None or column.collection or value is UNDEFINED:
                continue

            if value is None:
                set_parts.append(f"{quote(column.name)}=NULL")
            else:
                set_parts.append(f"{quote(column.name)}={self._bind_value(model, column, value, params)}")

        if not set_parts:
            raise InvalidArgumentError(f'Update statement for "{model.name}" has no values to set')

        sql = f"UPDATE {quote(model.table_name)} SET {','.join(set_parts)}"

        where_statement, _ = self.where_compiler.build_where_statement(model, where, params)
        if where_statement:
            sql += f" {where_statement}"

        if return_records:
            sql += f" RETURNING {self.columns_to_select(model, return_select)}"

        return CompiledQuery(sql, params.values)

    def build_delete(self, model, where=None, return_records=True, return_select=None):
        sql = f"DELETE FROM {quote(model.table_name)}"

        where_statement, params = self.where_compiler.build_where_statement(model, where)
        if where_statement:
            sql += f" {where_statement}"

        if return_records:
            sql += f" RETURNING {self.columns_to_select(model, return_select)}"

        return CompiledQuery(sql, params.values)

    def _bind_value(self, model, column, value, params):
        is_json_array = column.is_json and isinstance(value, (list, tuple))

        if column.relation and is_object(value):
            related = related_model(self.registry, model, column)
            pk_value = property_value(value, related.primary_key_property)
            if pk_value is None or pk_value is UNDEFINED:
                raise UndefinedValueError(
                    f'Undefined primary key value for hydrated object value for '
                    f'"{column.property_name}" on "{model.name}"'
                )
            return params.add(pk_value)

        if is_json_array:
            # Arrays are not bound as json by the driver, send them as text
            return params.add(json.dumps(list(value))) + "::jsonb"

        return params.add(value)
