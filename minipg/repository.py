from minipg.builder import QueryBuilder
from minipg.config import CreateUpdateOptions, DeleteOptions
from minipg.query import CountQuery, DestroyQuery, FindOneQuery, FindQuery


class ReadonlyRepository:
    def __init__(self, model, engine, registry):
        self.model = model
        self.engine = engine
        self.registry = registry
        self.builder = QueryBuilder(registry)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.model.name}>"

    def find(self, where=None, select=None, sort=None, skip=None, limit=None):
        return FindQuery(self, where=where, select=select, sort=sort, skip=skip, limit=limit)

    def find_one(self, where=None, select=None, sort=None):
        return FindOneQuery(self, where=where, select=select, sort=sort)

    def count(self, where=None):
        return CountQuery(self, where=where)


class Repository(ReadonlyRepository):
    async def create(self, values, **options):
        """Insert one entity (mapping or Entity) or a list of them.

        Returns the created entity, a list of entities for list input,
        or None when return_records=False.
        """
        opts = CreateUpdateOptions(**options)
        single = not isinstance(values, (list, tuple))
        rows = [values] if single else list(values)
        rows = [row.to_dict() if hasattr(row, "to_dict") else dict(row) for row in rows]
        if not rows:
            return []

        before_create = getattr(self.model.cls, "before_create", None)
        if before_create is not None:
            rows = [before_create(row) for row in rows]

        sql, params = self.builder.build_insert(
            self.model, rows, return_records=opts.return_records, return_select=opts.return_select
        )
        results = await self.engine.execute(sql, params)
        if not opts.return_records:
            return None

        entities = [self.model.hydrate(row) for row in results]
        if single:
            return entities[0] if entities else None
        return entities

    async def update(self, where, values, **options):
        opts = CreateUpdateOptions(**options)

        before_update = getattr(self.model.cls, "before_update", None)
        if before_update is not None:
            values = before_update(values.to_dict() if hasattr(values, "to_dict") else dict(values))

        sql, params = self.builder.build_update(
            self.model, where, values, return_records=opts.return_records, return_select=opts.return_select
        )
        results = await self.engine.execute(sql, params)
        if not opts.return_records:
            return None
        return [self.model.hydrate(row) for row in results]

    def destroy(self, where=None, **options):
        return DestroyQuery(self, where=where, options=DeleteOptions(**options))


def initialize(models, engine):
    """Create repositories for all models, keyed by lower-cased model name.

    Every model referenced by a Relationship must be in `models`.
    """
    registry = {model._mapper.name.lower(): model._mapper for model in models}

    repositories = {}
    for name, mapper in registry.items():
        repository_cls = ReadonlyRepository if mapper.readonly else Repository
        repositories[name] = repository_cls(mapper, engine, registry)
    return repositories
