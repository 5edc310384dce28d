from datetime import datetime, timezone

from minipg.filters import UNDEFINED


ARRAY_TYPES = {"array", "string[]", "integer[]", "float[]", "boolean[]"}

ARRAY_CASTS = {
    "int": "::INTEGER[]",
    "integer": "::INTEGER[]",
    "integer[]": "::INTEGER[]",
    "float": "::NUMERIC[]",
    "float[]": "::NUMERIC[]",
    "boolean": "::BOOLEAN[]",
    "boolean[]": "::BOOLEAN[]",
}


def utcnow():
    return datetime.now(timezone.utc)


class Column:
    collection = False

    def __init__(self, type=None, name=None, required=False, default=UNDEFINED,
                 primary_key=False, create_date=False, update_date=False):
        self.type = type
        self.name = name
        self.property_name = None
        self.required = required
        self.default = default
        self.primary_key = primary_key
        self.create_date = create_date
        self.update_date = update_date

    def __set_name__(self, owner, name):
        self.property_name = name
        if self.name is None:
            self.name = name

    def __get__(self, obj, owner=None):
        # Only reached when the instance never had the value assigned
        if obj is None:
            return self
        return None

    def __repr__(self):
        parts = [f"{self.property_name}", f"type={self.type}"]
        if self.name != self.property_name:
            parts.append(f"name={self.name}")
        if self.primary_key:
            parts.append("pk")
        return f"<{self.__class__.__name__} {', '.join(parts)}>"

    @property
    def type_name(self):
        return (self.type or "").lower()

    @property
    def is_array(self):
        return self.type_name in ARRAY_TYPES

    @property
    def is_json(self):
        return self.type_name == "json"

    @property
    def array_cast(self):
        return ARRAY_CASTS.get(self.type_name, "::TEXT[]")

    @property
    def relation(self):
        return None

    def default_value(self):
        """Value used on insert when none is supplied, UNDEFINED if there is none"""
        if callable(self.default):
            return self.default()
        if self.default is not UNDEFINED:
            return self.default
        if self.create_date or self.update_date:
            return utcnow()
        return UNDEFINED


class Text(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("string", name, **kwargs)


class Integer(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("integer", name, **kwargs)


class Float(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("float", name, **kwargs)


class Boolean(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("boolean", name, **kwargs)


class Date(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("datetime", name, **kwargs)


class Json(Column):
    def __init__(self, name=None, **kwargs):
        super().__init__("json", name, **kwargs)


class ArrayColumn(Column):
    """Postgres array column, e.g. ArrayColumn("integer") is `integer[]`"""

    def __init__(self, item_type="string", name=None, **kwargs):
        super().__init__(f"{item_type}[]" if item_type else "array", name, **kwargs)


class Relationship(Column):
    """Many-to-one foreign key. The value is the related primary key or a hydrated object."""

    def __init__(self, target, name=None, type=None, **kwargs):
        super().__init__(type, name, **kwargs)
        self.target = target

    @property
    def relation(self):
        mapper = getattr(self.target, "_mapper", None)
        if mapper is not None:
            return mapper.name
        if isinstance(self.target, type):
            return self.target.__name__
        return self.target

    def __repr__(self):
        return f"<Relationship {self.property_name} -> {self.relation} name={self.name}>"


class Collection(Column):
    """One-to-many or many-to-many side of a relation; never a SQL column"""

    collection = True

    def __init__(self, target, via=None, through=None):
        super().__init__(None, None)
        self.target = target
        self.via = via
        self.through = through

    def __repr__(self):
        r_type = "many-to-many" if self.through else "one-to-many"
        return f"<Collection {self.property_name} {r_type} target={self.target}>"
