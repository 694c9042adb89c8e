""" Loaders: execute the statement that Paginator has prepared

* `QueryLoaderBase`: base class
* `SessionLoader` loads model instances through an ORM Session
* `ConnectionLoader` loads row dicts through a Core Connection
"""

from __future__ import annotations

from collections import abc
from typing import TYPE_CHECKING

import sqlalchemy as sa
import sqlalchemy.orm

from sapaginator.sautil.statements import add_columns_if_missing
from sapaginator.typing import Record, SARowDict, SAInstance

if TYPE_CHECKING:
    from sapaginator.sort import SortingField


class QueryLoaderBase:
    """ Loader base

    Base for classes that implement:
    * Prepare an SQL statement for loading records
    * Execute this statement

    Filtering, sorting, and limiting are out of scope here: the Paginator does that.
    Errors are not handled here either: the Paginator wraps them.
    """
    __slots__ = ()

    def prepare_statement(self, stmt: sa.sql.Select, fields: abc.Sequence[SortingField]) -> sa.sql.Select:
        """ Hook: prepare the SELECT statement

        Use it to add columns that the loader will need to read sort field values from records.

        Args:
            stmt: The statement, with pagination applied
            fields: Sort fields whose values will be read from records
        """
        return stmt

    def load_results(self, stmt: sa.sql.Select) -> abc.Iterable[Record]:
        """ Actually execute the query and return records, in order

        Args:
            stmt: The statement to execute
        """
        raise NotImplementedError


class SessionLoader(QueryLoaderBase):
    """ ORM loader: load model instances

    Sort fields are read from instances. Related ones, like "order.created_at", come from the joins with `contains_eager()`
    """
    session: sa.orm.Session

    def __init__(self, session: sa.orm.Session):
        self.session = session

    __slots__ = 'session',

    def prepare_statement(self, stmt: sa.sql.Select, fields: abc.Sequence[SortingField]) -> sa.sql.Select:
        # Related objects come from the joins that the Paginator has made: no lazy loads
        for field in fields:
            relations = field.info.relations  # type: ignore[union-attr]
            if relations:
                stmt = stmt.options(contains_eager_chain(relations))
        return stmt

    def load_results(self, stmt: sa.sql.Select) -> list[SAInstance]:
        res = self.session.execute(stmt)
        return list(res.scalars().all())


def contains_eager_chain(relations: abc.Sequence[sa.orm.InstrumentedAttribute]) -> sa.orm.Load:
    """ Make a `contains_eager()` option that goes through a chain of relationships """
    option = sa.orm.contains_eager(relations[0])
    for relation in relations[1:]:
        option = option.contains_eager(relation)
    return option


class ConnectionLoader(QueryLoaderBase):
    """ Core loader: load row dicts

    Sort fields missing from the statement are added to it, labeled with their path: e.g. "order.created_at"
    """
    connection: sa.engine.Connection

    def __init__(self, connection: sa.engine.Connection):
        self.connection = connection

    __slots__ = 'connection',

    def prepare_statement(self, stmt: sa.sql.Select, fields: abc.Sequence[SortingField]) -> sa.sql.Select:
        return add_columns_if_missing(stmt, {
            field.name: field.info.attribute  # type: ignore[union-attr]
            for field in fields
        })

    def load_results(self, stmt: sa.sql.Select) -> list[SARowDict]:
        # We use `.mappings()` to convert a list of rows `list[RowMapping]` into a list of dicts `list[dict]`
        res = self.connection.execute(stmt)
        return [dict(row) for row in res.mappings()]
