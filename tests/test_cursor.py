import base64
import json
import math
import uuid
from datetime import datetime, date, time, timezone, timedelta
from decimal import Decimal

import pytest
import sqlalchemy as sa
import sqlalchemy.orm

from sapaginator import exc
from sapaginator import Paginator, PaginatorSettings, SortKey, Position, ConnectionLoader
from sapaginator.cursor import encode_opaque_cursor, decode_opaque_cursor, TypedValue, NULL
from sapaginator.testing import created_tables, insert

from .util.models import Order, Item


# A model with all sorts of columns
Base = sa.orm.declarative_base()


class Everything(Base):
    __tablename__ = 'everything'

    id = sa.Column(sa.Integer, primary_key=True)
    s = sa.Column(sa.String)
    i = sa.Column(sa.Integer)
    f = sa.Column(sa.Float)
    b = sa.Column(sa.Boolean)
    n = sa.Column(sa.Numeric)
    dt = sa.Column(sa.DateTime)
    d = sa.Column(sa.Date)
    t = sa.Column(sa.Time)
    u = sa.Column(sa.Uuid)


def fields_for(Model: type, *sort: str):
    """ Get resolved sort fields """
    return SortKey.ensure(list(sort)).resolve(Model, PaginatorSettings(append_primary_key=False)).fields


@pytest.mark.parametrize(('field', 'value'), [
    ('s', 'hey'),
    ('s', ''),
    ('s', 'quotes " and : colons / slashes ?&= unicode ü'),
    ('i', 0),
    ('i', -42),
    ('i', 2 ** 62),
    ('f', 0.1),
    ('f', math.inf),
    ('f', -math.inf),
    ('b', True),
    ('b', False),
    ('n', Decimal('1.10')),
    ('n', Decimal('-Infinity')),
    ('dt', datetime(2020, 1, 2, 3, 4, 5, 678901)),
    ('dt', datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=3)))),
    ('d', date(2020, 1, 2)),
    ('t', time(3, 4, 5)),
    ('u', uuid.UUID('12345678-1234-5678-1234-567812345678')),
    # NULLs
    ('s', None),
    ('i', None),
    ('dt', None),
])
def test_position_roundtrip(field: str, value):
    """ Test: encode(), decode() give exactly the same values, same types """
    fields = fields_for(Everything, field, 'id')
    position = Position.from_values(fields, [value, 1])

    decoded = Position.decode(position.encode(), fields)
    assert decoded == position
    assert decoded.values == (value, 1)
    assert type(decoded.values[0]) is type(value)


def test_position_tags():
    """ Test: values are tagged with the field type """
    fields = fields_for(Order, 'remark', 'created_at', 'id')
    position = Position.from_values(fields, [None, datetime(2020, 1, 1), 1])

    assert position.cols == ('remark', 'created_at', 'id')
    assert position.vals == (
        TypedValue(NULL, None),
        TypedValue('datetime', datetime(2020, 1, 1)),
        TypedValue('int', 1),
    )
    assert position.serialize() == {
        'cols': ['remark', 'created_at', 'id'],
        'vals': [['null', None], ['datetime', '2020-01-01T00:00:00'], ['int', 1]],
    }


def test_cursor_opaque_and_deterministic():
    """ Test: cursors are URL-safe, same position gives the same cursor """
    fields = fields_for(Order, 'remark', 'id')
    cursor = Position.from_values(fields, ['/?&=+ " ü' * 5, 1]).encode()

    # URL-safe
    prefix, _, payload = cursor.partition(':')
    assert prefix == 'keys'
    assert set(payload) <= set('ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_')

    # Deterministic
    assert cursor == Position.from_values(fields, ['/?&=+ " ü' * 5, 1]).encode()


def test_opaque_cursor_roundtrip():
    """ Test: low-level encoding """
    data = {'b': [1, 'two', None], 'a': 'ü'}
    assert decode_opaque_cursor(encode_opaque_cursor(data)) == data


def make_cursor(data) -> str:
    """ Make a cursor with arbitrary contents """
    return 'keys:' + base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip('=')


@pytest.mark.parametrize(('cursor', 'error'), [
    # Not a cursor
    ('', 'unknown cursor type'),
    ('garbage', 'unknown cursor type'),
    ('skip:eyJhIjoxfQ', 'unknown cursor type'),
    ('keys:!!!', 'cannot decode'),
    ('keys:' + base64.urlsafe_b64encode(b'{not json').decode(), 'cannot decode'),
    (make_cursor([1, 2]), 'cannot decode'),
    (make_cursor({'cols': ['created_at', 'id']}), 'cannot decode'),
    (12345, 'expected a string'),
    # Different sort key
    (make_cursor({'cols': ['id'], 'vals': [['int', 1]]}), 'different sort order'),
    (make_cursor({'cols': ['id', 'created_at'], 'vals': [['int', 1], ['datetime', '2020-01-01T00:00:00']]}), 'different sort order'),
    (make_cursor({'cols': ['created_at', 'id', 'remark'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['int', 1], ['null', None]]}), 'different sort order'),
    # Wrong types
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['int', 1], ['int', 1]]}), '"created_at" must be datetime, got int'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['str', '1']]}), '"id" must be int, got str'),
    # Non-nullable fields can't be NULL
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['null', None], ['int', 1]]}), '"created_at" cannot be null'),
    # Invalid values
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', 'yesterday'], ['int', 1]]}), 'invalid value for "created_at"'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['int', '1']]}), 'invalid value for "id"'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['int', True]]}), 'invalid value for "id"'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['bigint', 1]]}), 'invalid value for "id"'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], ['null', 1]]}), 'invalid value for "id"'),
    (make_cursor({'cols': ['created_at', 'id'], 'vals': [['datetime', '2020-01-01T00:00:00'], 1]}), 'invalid value for "id"'),
])
def test_position_decode_errors(cursor: str, error: str):
    """ Test: malformed cursors """
    fields = fields_for(Order, 'created_at', 'id')

    with pytest.raises(exc.MalformedCursor) as e:
        Position.decode(cursor, fields)

    assert error in str(e.value)


def test_position_decode_other_sort_key():
    """ Test: a cursor made for one sort key is rejected by another """
    order_fields = fields_for(Order, 'created_at', 'id')
    item_fields = fields_for(Item, 'order.created_at', 'id')
    cursor = Position.from_values(order_fields, [datetime(2020, 1, 1), 1]).encode()

    # Same sort key: ok
    Position.decode(cursor, order_fields)

    # Different sort key: fails
    with pytest.raises(exc.MalformedCursor):
        Position.decode(cursor, item_fields)
    with pytest.raises(exc.MalformedCursor):
        Position.decode(cursor, fields_for(Order, 'created_at'))


def test_position_non_finite_floats():
    """ Test: floats that JSON can't carry are stored as strings """
    fields = fields_for(Everything, 'f', 'id')

    position = Position.from_values(fields, [math.inf, 1])
    assert position.serialize()['vals'] == [['float', 'inf'], ['int', 1]]

    # NaN is not equal to itself: compare by hand
    position = Position.from_values(fields, [math.nan, 1])
    assert position.serialize()['vals'] == [['float', 'nan'], ['int', 1]]
    decoded = Position.decode(position.encode(), fields)
    assert math.isnan(decoded.values[0])


@pytest.mark.parametrize(('field', 'pair'), [
    ('n', ['decimal', 'abc']),
    ('n', ['decimal', '']),
    ('n', ['decimal', 'sNaN']),
    ('f', ['float', '1.5']),
    ('f', ['float', 'infinity']),
    ('u', ['uuid', 'not-a-uuid']),
    ('d', ['date', '2020-13-01']),
])
def test_position_decode_invalid_values(field: str, pair: list):
    """ Test: values that do not parse for their type """
    fields = fields_for(Everything, field, 'id')
    cursor = make_cursor({'cols': [field, 'id'], 'vals': [pair, ['int', 1]]})

    with pytest.raises(exc.MalformedCursor) as e:
        Position.decode(cursor, fields)

    assert f'invalid value for "{field}"' in str(e.value)


def test_paginate_infinite_floats(connection: sa.engine.Connection):
    """ Test: rows with infinite values give cursors, and pagination goes on past them """
    with created_tables(connection, Base):
        insert(connection, Everything,
               dict(id=1, f=1.0),
               dict(id=2, f=math.inf),
               dict(id=3, f=math.inf),
        )

        paginator = Paginator(Everything, ['f'])
        loader = ConnectionLoader(connection)

        pages = []
        cursor = None
        while True:
            res, page_cursor = paginator.paginate(loader, cursor, page_size=1)
            pages.append([row['id'] for row in res])
            if page_cursor.after is None:
                break
            cursor = page_cursor.after

    assert pages == [[1], [2], [3]]
