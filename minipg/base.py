from minipg.mapper import Mapper
from minipg.orm_types import Column


class Entity:
    _mapper = None

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __repr__(self):
        pk_val = vars(self).get(self._mapper.primary_key_property, "New")
        return f"<{self.__class__.__name__}({self._mapper.primary_key_property}={pk_val})>"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = {}
        for klass in reversed(cls.__mro__):
            for name, col in vars(klass).items():
                if isinstance(col, Column):
                    columns[name] = col

        meta_cls = getattr(cls, "Meta", None)
        meta_attrs = {}
        if meta_cls:
            for attr in dir(meta_cls):
                if not attr.startswith('_'):
                    meta_attrs[attr] = getattr(meta_cls, attr)

        cls._mapper = Mapper(cls, columns, meta_attrs)

    def to_dict(self):
        """Values that were actually set, keyed by property name"""
        values = vars(self)
        return {
            name: values[name]
            for name in self._mapper.columns_by_property
            if name in values
        }
