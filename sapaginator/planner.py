""" Pagination planner: the conditions that fetch the next or the previous page

Keyset pagination filters rows by comparing sort fields to the values of the record a cursor points to.
For a sort key `(a+, b-)` and a position `(1, 2)`, the next page is:

    WHERE a > 1 OR (a = 1 AND b < 2)
    ORDER BY a ASC, b DESC

and the previous page is the same thing, inverted:

    WHERE a < 1 OR (a = 1 AND b > 2)
    ORDER BY a DESC, b ASC

In the latter case rows come in reverse, nearest to the cursor first. The Paginator puts them back in order.
"""

from __future__ import annotations

from collections import abc
from enum import Enum
from typing import Any, NamedTuple, Optional

import sqlalchemy as sa

from sapaginator.cursor import Position
from sapaginator.sort import SortingField, SortingDirection, NullsOrdering


class Direction(Enum):
    """ Pagination direction: which edge of the page are we extending """
    FORWARD = 'forward'
    BACKWARD = 'backward'


class Plan(NamedTuple):
    """ Query constraints to fetch a page """
    # The WHERE condition. None when starting from the edge
    predicate: Optional[sa.sql.ColumnElement]

    # ORDER BY expressions
    order: tuple[sa.sql.ColumnElement, ...]

    # LIMIT: always one more row than the page size, to check whether there's more
    limit: int


def plan(fields: abc.Sequence[SortingField], position: Optional[Position], direction: Direction, page_size: int) -> Plan:
    """ Plan a query for one page

    Args:
        fields: Resolved sort fields
        position: The decoded cursor; None to start from the edge
        direction: Walk forward (after the position), or backward (before it)
        page_size: The number of rows to return
    """
    return Plan(
        predicate=beyond_position_expression(fields, position.values, direction) if position is not None else None,
        order=tuple(order_by_expression(field, direction) for field in fields),
        # We will always load one more row to check if there's a next page
        limit=page_size + 1,
    )


def scan_order(field: SortingField, direction: Direction) -> tuple[SortingDirection, NullsOrdering]:
    """ Get the ordering in which the query scans a field: reversed when walking backward """
    if direction == Direction.FORWARD:
        return field.direction, field.nulls  # type: ignore[return-value]
    else:
        return field.direction.reversed(), field.nulls.reversed()  # type: ignore[union-attr]


def order_by_expression(field: SortingField, direction: Direction) -> sa.sql.ColumnElement:
    """ Make a sorting expression for a field """
    sort_direction, nulls = scan_order(field, direction)
    expr = field.info.attribute  # type: ignore[union-attr]

    expr = expr.asc() if sort_direction == SortingDirection.ASC else expr.desc()
    return expr.nulls_first() if nulls == NullsOrdering.FIRST else expr.nulls_last()


def beyond_position_expression(fields: abc.Sequence[SortingField], values: abc.Sequence[Any], direction: Direction) -> sa.sql.ColumnElement:
    """ Make a condition that matches rows strictly beyond a position, in scan order

    This is a lexicographic comparison: the first field is beyond, or it's equal and the second field is beyond, etc.
    We can't use tuple comparison `(a, b) > (1, 2)`: it does not support mixed directions, nor NULLs.
    """
    terms = []
    for i, (field, value) in enumerate(zip(fields, values)):
        beyond = beyond_value_expression(field, value, direction)

        # Nothing can be beyond this value: skip the whole term
        if beyond is None:
            continue

        terms.append(sa.and_(
            *(equals_value_expression(f, v) for f, v in zip(fields[:i], values[:i])),
            beyond,
        ))

    # Nothing at all is beyond this position
    if not terms:
        return sa.false()

    return sa.or_(*terms)


def beyond_value_expression(field: SortingField, value: Any, direction: Direction) -> Optional[sa.sql.ColumnElement]:
    """ Make a condition that matches field values strictly beyond `value`, in scan order

    NULLs are handled consistently with ORDER BY: they are either beyond every value, or before every value.

    Returns:
        The condition, or None when nothing can be beyond the value
    """
    sort_direction, nulls = scan_order(field, direction)
    expr = field.info.attribute  # type: ignore[union-attr]

    # NULL position
    if value is None:
        # Nothing comes after NULLs when they're last; every value comes after them when they're first
        return expr.is_not(None) if nulls == NullsOrdering.FIRST else None

    # Value position
    compare = expr > value if sort_direction == SortingDirection.ASC else expr < value

    # NULLs that come last are also beyond
    if nulls == NullsOrdering.LAST and field.info.nullable:  # type: ignore[union-attr]
        return sa.or_(compare, expr.is_(None))
    else:
        return compare


def equals_value_expression(field: SortingField, value: Any) -> sa.sql.ColumnElement:
    """ Make a condition that matches field values equal to `value`. NULLs are equal to NULLs. """
    expr = field.info.attribute  # type: ignore[union-attr]
    return expr.is_(None) if value is None else expr == value
