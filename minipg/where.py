"""
Compiles where expressions into a parameterized Postgres boolean expression.

Negation is threaded down to the leaves instead of wrapping the output in
NOT (...): negated comparisons invert their operator, a negated `or` becomes
an AND of negated clauses, and `=ANY` becomes `<>ALL`.

Placeholders ($1, $2, ...) are handed out by a single Params accumulator in
depth-first, left-to-right order, so the n-th placeholder always refers to
params[n - 1].
"""
from minipg.errors import (
    InvalidConstraintError,
    UndefinedValueError,
    UnknownRelatedModelError,
    UnsupportedOperatorError,
)
from minipg.filters import (
    NEGATION_COMPARERS,
    PATTERN_TEMPLATES,
    RANGE_COMPARERS,
    UNDEFINED,
    ArrayNode,
    NullNode,
    ObjectNode,
    ScalarNode,
    is_comparer,
    is_object,
    property_value,
    to_node,
)
from minipg.mapper import quote

NEGATED_RANGE_OPERATORS = {
    "<": ">=",
    "<=": ">",
    ">": "<=",
    ">=": "<",
}


class Params:
    """Ordered bound values; `add` returns the placeholder for the value"""

    def __init__(self, values=None):
        self.values = [] if values is None else values

    def add(self, value):
        self.values.append(value)
        return f"${len(self.values)}"

    def __len__(self):
        return len(self.values)

    def __iter__(self):
        return iter(self.values)


def related_model(registry, model, column):
    """Metadata of the model a relation column points at"""
    related = registry.get(column.relation.lower())
    if related is None:
        raise UnknownRelatedModelError(
            f'Unable to find model schema ({column.relation}) specified as model type '
            f'for "{column.property_name}" on "{model.name}"'
        )
    return related


class WhereCompiler:
    def __init__(self, registry):
        self.registry = registry

    def build_where_statement(self, model, where, params=None):
        """Returns ("WHERE ...", params), or ("", params) when there is nothing to filter on"""
        if params is None:
            params = Params()
        if where is None:
            return "", params
        if not is_object(where):
            raise InvalidConstraintError(f"Expected where to be an object for model ({model.name}), got {where!r}")

        statement = self.build(model, to_node(where), params, comparer="and")
        if statement:
            return f"WHERE {statement}", params
        return "", params

    def build(self, model, node, params, property_name=None, comparer=None, negated=False):
        key = comparer or property_name

        if key in NEGATION_COMPARERS:
            return self.build(model, node, params, property_name=property_name, negated=not negated)
        if key == "or":
            return self._build_or(model, node, params, property_name, negated)
        if key == "and" and isinstance(node, ArrayNode):
            return self._build_and(model, node, params, property_name, negated)
        if key in PATTERN_TEMPLATES:
            return self._build_pattern(model, node, params, property_name, key, negated)
        if key == "like":
            return self._build_like(model, node, params, property_name, negated)

        if property_name and isinstance(node, ObjectNode):
            column = model.columns_by_property.get(property_name)
            if column is not None and column.relation:
                related = related_model(self.registry, model, column)
                pk_value = property_value(node.raw, related.primary_key_property)
                if pk_value is not UNDEFINED:
                    # Hydrated object, compare by its primary key
                    return self.build(model, to_node(pk_value), params, property_name, comparer, negated)

        if isinstance(node, ArrayNode):
            return self._build_array(model, node, params, property_name, negated)

        if isinstance(node, ObjectNode):
            clauses = []
            for sub_key, child in node.entries:
                sub_comparer = None
                if is_comparer(sub_key):
                    sub_comparer = sub_key
                else:
                    property_name = sub_key

                clause = self.build(model, child, params, property_name, sub_comparer, negated)
                if clause:
                    clauses.append(clause)
            return " AND ".join(clauses)

        return self._build_comparison(model, node, params, property_name, comparer, negated)

    def _sub_clauses(self, model, node, params, property_name, negated, comparer):
        if not isinstance(node, ArrayNode):
            raise InvalidConstraintError(
                f'Expected value to be an array for "{comparer}" constraint in model ({model.name}).'
            )

        return [
            self.build(model, item, params, property_name=property_name, negated=negated)
            for item in node.items
        ]

    def _build_or(self, model, node, params, property_name, negated):
        # Compiled against a copy so nothing is bound if an alternative turns out empty
        scratch = Params(list(params.values))
        clauses = self._sub_clauses(model, node, scratch, property_name, negated, "or")
        if not clauses:
            return "1=1" if negated else "1<>1"
        if not all(clauses):
            # An alternative without constraints matches every row
            return "1<>1" if negated else "1=1"

        params.values.extend(scratch.values[len(params.values):])
        clauses = [f"({clause})" for clause in clauses]
        if len(clauses) == 1:
            return clauses[0]
        if negated:
            return " AND ".join(clauses)
        return f"({' OR '.join(clauses)})"

    def _build_and(self, model, node, params, property_name, negated):
        # Same as a nested object: negation goes to every clause, no De Morgan flip
        clauses = self._sub_clauses(model, node, params, property_name, negated, "and")
        return " AND ".join(f"({clause})" for clause in clauses if clause)

    def _build_pattern(self, model, node, params, property_name, comparer, negated):
        template = PATTERN_TEMPLATES[comparer]

        if isinstance(node, ArrayNode):
            items = []
            for item in node.items:
                if not (isinstance(item, ScalarNode) and isinstance(item.value, str)):
                    raise InvalidConstraintError(
                        f'Expected all array values to be strings for "{comparer}" constraint. '
                        f'Property ({property_name}) in model ({model.name}).'
                    )
                items.append(ScalarNode(template.format(item.value)))
            return self._build_like(model, ArrayNode([item.value for item in items], items), params,
                                    property_name, negated)

        if isinstance(node, ScalarNode) and isinstance(node.value, str):
            return self._build_like(model, ScalarNode(template.format(node.value)), params, property_name, negated)

        raise InvalidConstraintError(
            f'Expected value to be a string for "{comparer}" constraint. '
            f'Property ({property_name}) in model ({model.name}).'
        )

    def _build_like(self, model, node, params, property_name, negated):
        if isinstance(node, ArrayNode):
            if not node.items:
                return "1=1" if negated else "1<>1"

            for item in node.items:
                if not (isinstance(item, ScalarNode) and isinstance(item.value, str)):
                    raise InvalidConstraintError(
                        f'Expected all array values to be strings for "like" constraint. '
                        f'Property ({property_name}) in model ({model.name}).'
                    )

            if len(node.items) > 1:
                column = model.column(property_name)
                # Case-insensitive match against the lower-cased patterns
                placeholder = params.add([item.value.lower() for item in node.items])
                operator = "<>ALL" if negated else "=ANY"
                if column.is_array:
                    unnested = quote(f"unnested_{column.name}")
                    return (
                        f"EXISTS(SELECT 1 FROM (SELECT unnest({quote(column.name)}) AS {unnested}) __unnested "
                        f"WHERE lower({unnested}){operator}({placeholder}::TEXT[]))"
                    )
                return f"lower({quote(column.name)}){operator}({placeholder}::TEXT[])"

            node = node.items[0]

        if isinstance(node, ScalarNode) and isinstance(node.value, str):
            column = model.column(property_name)
            if not node.value:
                return f"{quote(column.name)} {'!=' if negated else '='} ''"

            placeholder = params.add(node.value)
            if column.is_array:
                unnested = quote(f"unnested_{column.name}")
                return (
                    f"{'NOT ' if negated else ''}EXISTS(SELECT 1 FROM (SELECT unnest({quote(column.name)}) "
                    f"AS {unnested}) __unnested WHERE {unnested} ILIKE {placeholder})"
                )
            return f"{quote(column.name)}{' NOT' if negated else ''} ILIKE {placeholder}"

        raise InvalidConstraintError(
            f'Expected value to be a string for "like" constraint. '
            f'Property ({property_name}) in model ({model.name}).'
        )

    def _build_array(self, model, node, params, property_name, negated):
        column = model.column(property_name) if property_name else None

        if not node.items:
            if column is not None and column.is_array:
                return f"{quote(column.name)}{'<>' if negated else '='}'{{}}'"
            return "1=1" if negated else "1<>1"

        or_constraints = []
        values = []
        for item in node.items:
            if isinstance(item, NullNode):
                or_constraints.append(self.build(model, item, params, property_name, negated=negated))
            else:
                values.append(self._array_item_value(model, column, item))

        if len(values) == 1:
            or_constraints.append(self.build(model, to_node(values[0]), params, property_name, negated=negated))
        elif values:
            column = model.column(property_name)
            if column.is_array:
                # Array column vs. array value: test each value separately
                for value in values:
                    or_constraints.append(self.build(model, to_node(value), params, property_name, negated=negated))
            else:
                placeholder = params.add(values)
                operator = "<>ALL" if negated else "=ANY"
                or_constraints.append(
                    f"{quote(column.name)}{operator}({placeholder}{self._array_cast(model, column)})"
                )

        if len(or_constraints) == 1:
            return or_constraints[0]
        if negated:
            return " AND ".join(or_constraints)
        return f"({' OR '.join(or_constraints)})"

    def _array_cast(self, model, column):
        """Untyped relation columns take the cast of the related primary key"""
        if column.relation and column.type is None:
            pk = related_model(self.registry, model, column).primary_key_column
            if pk is not None:
                return pk.array_cast
        return column.array_cast

    def _array_item_value(self, model, column, item):
        if isinstance(item, ObjectNode) and column is not None and column.relation:
            related = related_model(self.registry, model, column)
            pk_value = property_value(item.raw, related.primary_key_property)
            if pk_value is UNDEFINED:
                raise UndefinedValueError(
                    f'Undefined primary key value for hydrated object value for '
                    f'"{column.property_name}" on "{model.name}"'
                )
            return pk_value
        return item.raw

    def _build_comparison(self, model, node, params, property_name, comparer, negated):
        column = model.column(property_name)

        if isinstance(node, NullNode):
            return f"{quote(column.name)} {'IS NOT' if negated else 'IS'} NULL"

        if comparer in RANGE_COMPARERS:
            if column.is_array or column.is_json:
                raise UnsupportedOperatorError(
                    f"{comparer} operator is not supported for {column.type or 'unknown'} type. "
                    f"{property_name} on {model.name}"
                )
            placeholder = params.add(node.raw)
            operator = NEGATED_RANGE_OPERATORS[comparer] if negated else comparer
            return f"{quote(column.name)}{operator}{placeholder}"

        placeholder = params.add(node.raw)
        if column.is_array:
            return f"{placeholder}{'<>ALL(' if negated else '=ANY('}{quote(column.name)})"
        return f"{quote(column.name)}{'<>' if negated else '='}{placeholder}"
