"""
Where-expression boundary for minipg.

A where expression is a plain nested structure of dicts and lists. Keys are
either comparators (a small closed set) or property names; the decision is made
per key with `is_comparer`. `to_node` turns the raw structure into a tree of
WhereNode objects once, before the compiler walks it.

    {"name": {"startsWith": "foo"}, "or": [{"store": 3}, {"store": None}]}
"""
from collections.abc import Mapping

from minipg.errors import UndefinedValueError


COMPARERS = frozenset({
    "!",
    "not",
    "or",
    "and",
    "contains",
    "startsWith",
    "endsWith",
    "like",
    "<",
    "<=",
    ">",
    ">=",
})

NEGATION_COMPARERS = frozenset({"!", "not"})

# contains / startsWith / endsWith are rewritten into a `like` pattern
PATTERN_TEMPLATES = {
    "contains": "%{}%",
    "startsWith": "{}%",
    "endsWith": "%{}",
}

RANGE_COMPARERS = frozenset({"<", "<=", ">", ">="})


def is_comparer(key):
    """True if the key is a reserved comparator rather than a property name"""
    return key in COMPARERS


class _Undefined:
    """Marks a value that was never set (None means SQL NULL)"""

    def __repr__(self):
        return "UNDEFINED"

    def __bool__(self):
        return False


UNDEFINED = _Undefined()


def is_entity(value):
    return hasattr(value, '_mapper')


def is_object(value):
    return isinstance(value, Mapping) or is_entity(value)


def property_value(obj, name):
    """Read a property from a mapping or an entity, UNDEFINED when it is not set"""
    if isinstance(obj, Mapping):
        return obj.get(name, UNDEFINED)
    return vars(obj).get(name, UNDEFINED)


class WhereNode:
    """Base class for parsed where-expression nodes"""

    def __init__(self, raw):
        self.raw = raw

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.raw!r}>"


class NullNode(WhereNode):
    def __init__(self):
        super().__init__(None)


class ScalarNode(WhereNode):
    @property
    def value(self):
        return self.raw


class ArrayNode(WhereNode):
    def __init__(self, raw, items):
        super().__init__(raw)
        self.items = items


class ObjectNode(WhereNode):
    """A mapping (or a hydrated entity); its keys are combined with AND"""

    def __init__(self, raw, entries):
        super().__init__(raw)
        self.entries = entries


def to_node(value, path=()):
    if value is UNDEFINED:
        location = ".".join(str(part) for part in path)
        raise UndefinedValueError(f"Attempting to query with an undefined value. {location}".rstrip())

    if value is None:
        return NullNode()

    if isinstance(value, (list, tuple)):
        items = [to_node(item, path + (index,)) for index, item in enumerate(value)]
        return ArrayNode(list(value), items)

    if isinstance(value, Mapping):
        entries = [(key, to_node(item, path + (key,))) for key, item in value.items()]
        return ObjectNode(value, entries)

    if is_entity(value):
        entries = [(key, to_node(item, path + (key,))) for key, item in value.to_dict().items()]
        return ObjectNode(value, entries)

    return ScalarNode(value)
