class FindQuery:
    """Chainable find; awaiting it runs the SELECT and returns entities"""

    def __init__(self, repository, where=None, select=None, sort=None, skip=None, limit=None):
        self.repository = repository
        self._where = where
        self._select = select
        self._sort = sort
        self._skip = skip
        self._limit = limit

    def where(self, where):
        self._where = where
        return self

    def sort(self, value):
        self._sort = value
        return self

    def skip(self, value):
        self._skip = value
        return self

    def limit(self, value):
        self._limit = value
        return self

    def paginate(self, page=1, limit=10):
        page = max(int(page), 1)
        self._skip = (page - 1) * limit
        self._limit = limit
        return self

    def to_sql(self):
        return self.repository.builder.build_select(
            self.repository.model,
            where=self._where,
            select=self._select,
            sorts=self._sort,
            skip=self._skip,
            limit=self._limit,
        )

    async def all(self):
        sql, params = self.to_sql()
        rows = await self.repository.engine.execute(sql, params)
        mapper = self.repository.model
        return [mapper.hydrate(row) for row in rows]

    def __await__(self):
        return self.all().__await__()


class FindOneQuery(FindQuery):
    def __init__(self, repository, where=None, select=None, sort=None):
        super().__init__(repository, where=where, select=select, sort=sort, limit=1)

    async def first(self):
        results = await self.all()
        if not results:
            return None
        return results[0]

    def __await__(self):
        return self.first().__await__()


class CountQuery:
    def __init__(self, repository, where=None):
        self.repository = repository
        self._where = where

    def where(self, where):
        self._where = where
        return self

    def to_sql(self):
        return self.repository.builder.build_count(self.repository.model, where=self._where)

    async def count(self):
        sql, params = self.to_sql()
        rows = await self.repository.engine.execute(sql, params)
        return int(rows[0]["count"])

    def __await__(self):
        return self.count().__await__()


class DestroyQuery:
    """Chainable delete; awaiting it runs the DELETE"""

    def __init__(self, repository, where=None, options=None):
        self.repository = repository
        self._where = where
        self.options = options

    def where(self, where):
        self._where = where
        return self

    def to_sql(self):
        return self.repository.builder.build_delete(
            self.repository.model,
            where=self._where,
            return_records=self.options.return_records,
            return_select=self.options.return_select,
        )

    async def run(self):
        sql, params = self.to_sql()
        rows = await self.repository.engine.execute(sql, params)
        if not self.options.return_records:
            return None
        mapper = self.repository.model
        return [mapper.hydrate(row) for row in rows]

    def __await__(self):
        return self.run().__await__()
