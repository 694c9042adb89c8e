""" Paginator: executes keyset pagination against an SqlAlchemy Model class """

from __future__ import annotations

import logging
from collections import abc
from dataclasses import dataclass
from typing import Optional, NamedTuple, Union

import sqlalchemy as sa

from sapaginator import exc
from sapaginator.cursor import Position
from sapaginator.fields import resolve
from sapaginator.loader import QueryLoaderBase
from sapaginator.planner import Direction, Plan, plan
from sapaginator.sainfo.names import model_name
from sapaginator.settings import PaginatorSettings
from sapaginator.sort import SortKey, SortingField
from sapaginator.typing import Record, SAModel

logger = logging.getLogger(__name__)


# Sort key input: SortKey, field strings, SortingField objects
SortKeyInput = Union[SortKey, str, abc.Iterable[Union[str, SortingField]]]


class Cursor(NamedTuple):
    """ Cursors to the next and the previous pages """
    # Cursor to continue forward from the last record of the page, if there is more
    after: Optional[str]

    # Cursor to continue backward from the first record of the page, if there is more
    before: Optional[str]


@dataclass
class PageInfo:
    """ Page info: becomes available after analyzing the result rows """
    # Position of the first row of the page
    first: Optional[Position]

    # Position of the last row of the page
    last: Optional[Position]

    # Do we have any prev page?
    has_prev_page: bool

    # Do we have any next page?
    has_next_page: bool

    def cursor(self) -> Cursor:
        """ Generate cursor values for prev and next pages """
        return Cursor(
            after=self.last.encode() if self.has_next_page and self.last else None,
            before=self.first.encode() if self.has_prev_page and self.first else None,
        )


class Paginator:
    """ Paginator: walks through records of a Model in the order of a sort key

    A Paginator is stateless: everything it needs to continue is in the cursor.
    Create it once, use it to load any page, from any thread.

    Example:
        paginator = Paginator(models.Order, ['created_at'])
        orders, cursor = paginator.paginate(SessionLoader(ssn), page_size=10)
        orders, cursor = paginator.paginate(SessionLoader(ssn), cursor.after, Direction.FORWARD, page_size=10)
    """
    # The Model to paginate
    Model: SAModel

    # The resolved sort key, with tie-breakers
    sort: SortKey

    # The statement to paginate. Filter it the way you like; ORDER BY and LIMIT will be replaced
    stmt: sa.sql.Select

    # Pagination settings
    settings: PaginatorSettings

    def __init__(self, Model: SAModel, sort: SortKeyInput, stmt: Optional[sa.sql.Select] = None, *, settings: Optional[PaginatorSettings] = None):
        """ Prepare to paginate a Model

        Args:
            Model: The Model class to paginate
            sort: Sort key: e.g. ['created_at-', 'order.created_at']
            stmt: The statement to paginate. Default: SELECT all rows of the Model
            settings: Pagination settings

        Raises:
            exc.InvalidSortKey: a sort field does not resolve (programming error)
        """
        self.Model = Model
        self.settings = settings or self.DEFAULT_SETTINGS
        self.sort = SortKey.ensure(sort).resolve(Model, self.settings)
        self.stmt = stmt if stmt is not None else sa.select(Model)

    __slots__ = 'Model', 'sort', 'stmt', 'settings'

    # Default settings object
    DEFAULT_SETTINGS = PaginatorSettings()

    def paginate(self, loader: QueryLoaderBase, cursor: Optional[str] = None, direction: Union[Direction, str] = Direction.FORWARD, page_size: Optional[int] = None) -> tuple[list[Record], Cursor]:
        """ Load one page of records

        Args:
            loader: The loader to execute the query with
            cursor: A cursor from a previous page; None to start from the edge
            direction: Walk forward (using an `after` cursor) or backward (using a `before` cursor).
                Going backward without a cursor gives you the last page.
            page_size: The number of records per page

        Returns:
            (records, cursor): records in sort order, and cursors to the adjacent pages

        Raises:
            exc.InvalidDirection: the direction is neither forward nor backward
            exc.InvalidPageSize: the page size is not a positive integer
            exc.MalformedCursor: the cursor cannot be decoded, or was made for a different sort key
            exc.QueryFailed: the loader has failed, or failed to read sort values from the records
        """
        direction = ensure_direction(direction)
        page_size = self.settings.get_final_page_size(page_size)
        position = self.decode_cursor(cursor)

        # Query
        page_plan = plan(self.sort.fields, position, direction, page_size)
        stmt = self._statement_for_plan(page_plan, loader)
        logger.debug('Paginate %s %s: page_size=%d, from %s',
                     model_name(self.Model), direction.value, page_size, 'cursor' if position else 'edge')

        # Load. Reading sort values from records may hit the database as well
        try:
            rows = list(loader.load_results(stmt))
            page_info = self._inspect_rows(rows, page_size, direction, has_cursor=position is not None)
        except exc.BasePaginatorError:
            raise
        except Exception as e:
            raise exc.QueryFailed(e) from e

        # Results
        logger.debug('Paginate %s %s: %d rows, has_prev_page=%s, has_next_page=%s',
                     model_name(self.Model), direction.value, len(rows), page_info.has_prev_page, page_info.has_next_page)

        return rows, page_info.cursor()

    def statement(self, cursor: Optional[str] = None, direction: Union[Direction, str] = Direction.FORWARD, page_size: Optional[int] = None, loader: Optional[QueryLoaderBase] = None) -> sa.sql.Select:
        """ Get the statement that paginate() would execute. For inspection. """
        direction = ensure_direction(direction)
        page_size = self.settings.get_final_page_size(page_size)
        page_plan = plan(self.sort.fields, self.decode_cursor(cursor), direction, page_size)
        return self._statement_for_plan(page_plan, loader or QueryLoaderBase())

    def decode_cursor(self, cursor: Optional[str]) -> Optional[Position]:
        """ Decode a cursor into a Position

        Raises:
            exc.MalformedCursor: unless settings tell to ignore bad cursors
        """
        if cursor is None:
            return None

        try:
            return Position.decode(cursor, self.sort.fields)
        except exc.MalformedCursor as e:
            if not self.settings.ignore_malformed_cursor:
                raise
            logger.debug('Ignoring a malformed cursor: %s', e)
            return None

    def record_position(self, record: Record) -> Position:
        """ Get the position of a record in the sort order """
        values = []
        for field in self.sort.fields:
            value, found = resolve(record, field.name)
            if not found:
                raise exc.InvalidSortKey(model_name(self.Model), field.name, 'not found in result rows')
            values.append(value)

        return Position.from_values(self.sort.fields, values)

    def _statement_for_plan(self, page_plan: Plan, loader: QueryLoaderBase) -> sa.sql.Select:
        """ Apply a pagination plan to the statement """
        stmt = self.stmt

        # Join related models that sort fields go through
        if self.settings.join_relations:
            for relation in self.sort.relations:
                stmt = stmt.outerjoin(relation)

        # Filter
        if page_plan.predicate is not None:
            stmt = stmt.where(page_plan.predicate)

        # Sort, Limit. Our ordering replaces whatever ordering the statement had
        stmt = stmt.order_by(None).order_by(*page_plan.order).limit(page_plan.limit)

        # Let the loader add what it needs
        return loader.prepare_statement(stmt, self.sort.fields)

    def _inspect_rows(self, rows: list[Record], page_size: int, direction: Direction, *, has_cursor: bool) -> PageInfo:
        """ Inspect the result set: trim it, put it in order, see if there are more pages

        Modifies `rows` in place.
        """
        # No rows?
        if not rows:
            return PageInfo(first=None, last=None, has_prev_page=False, has_next_page=False)

        # Have more rows in the direction we're walking?
        expected_count = page_size + 1
        has_more = len(rows) == expected_count

        # We've loaded one extra row. Now remove it.
        if has_more:
            rows.pop()

        # Walking backward, we got rows in reverse. Put them in order.
        # If we have a cursor, there's at least the record it came from on the other side.
        if direction == Direction.BACKWARD:
            rows.reverse()
            has_prev_page, has_next_page = has_more, has_cursor
        else:
            has_prev_page, has_next_page = has_cursor, has_more

        # Done
        return PageInfo(
            first=self.record_position(rows[0]),
            last=self.record_position(rows[-1]),
            has_prev_page=has_prev_page,
            has_next_page=has_next_page,
        )


def paginate(loader: QueryLoaderBase, Model: SAModel, sort: SortKeyInput, cursor: Optional[str] = None, direction: Union[Direction, str] = Direction.FORWARD, page_size: Optional[int] = None, *, stmt: Optional[sa.sql.Select] = None, settings: Optional[PaginatorSettings] = None) -> tuple[list[Record], Cursor]:
    """ Load one page of records. A shortcut for Paginator(...).paginate(...) """
    paginator = Paginator(Model, sort, stmt, settings=settings)
    return paginator.paginate(loader, cursor, direction, page_size)


def ensure_direction(direction: Union[Direction, str]) -> Direction:
    """ Get a Direction from a Direction, or its value: "forward", "backward"

    Raises:
        exc.InvalidDirection
    """
    try:
        return Direction(direction)
    except ValueError as e:
        raise exc.InvalidDirection(direction) from e
