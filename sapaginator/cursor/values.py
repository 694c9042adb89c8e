""" Typed values: what a cursor can carry

Every value in a cursor is stored as a `[tag, value]` pair,
where `tag` names the type and `value` is its JSON-friendly form.
"""

from __future__ import annotations

import math
import uuid
from collections import abc
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple, Optional


# Tag for NULL values. Any nullable field may have it.
NULL = 'null'


class TypedValue(NamedTuple):
    """ A value, tagged with its type """
    type: str
    value: Any

    @classmethod
    def of(cls, type: str, value: Any) -> TypedValue:
        """ Tag a value with the type of its field. NULLs always get NULL """
        return cls(NULL if value is None else type, value)


class ValueType(NamedTuple):
    """ How to store values of a type """
    # Converter: Python value -> JSON value
    dump: abc.Callable[[Any], Any]

    # Converter: JSON value -> Python value
    load: abc.Callable[[Any], Any]

    # JSON types that the converter accepts
    json_types: tuple[type, ...]


# Floats that JSON cannot carry. They're stored as strings
NON_FINITE_FLOATS = ('inf', '-inf', 'nan')


def dump_float(value: float) -> Any:
    value = float(value)
    if math.isfinite(value):
        return value
    return str(value)  # 'inf', '-inf', 'nan'


def load_float(value: Any) -> float:
    if isinstance(value, str) and value not in NON_FINITE_FLOATS:
        raise ValueError(f'invalid float value: {value!r}')
    return float(value)


def load_decimal(value: str) -> Decimal:
    try:
        number = Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f'invalid decimal value: {value!r}') from e

    # Signaling NaNs fail every comparison
    if number.is_snan():
        raise ValueError(f'invalid decimal value: {value!r}')
    return number


VALUE_TYPES: dict[str, ValueType] = {
    'str': ValueType(str, str, (str,)),
    'int': ValueType(int, int, (int,)),
    'float': ValueType(dump_float, load_float, (float, int, str)),
    'bool': ValueType(bool, bool, (bool,)),
    'decimal': ValueType(str, load_decimal, (str,)),
    'datetime': ValueType(datetime.isoformat, datetime.fromisoformat, (str,)),
    'date': ValueType(date.isoformat, date.fromisoformat, (str,)),
    'time': ValueType(time.isoformat, time.fromisoformat, (str,)),
    'uuid': ValueType(str, uuid.UUID, (str,)),
}

# Python type => tag
PYTHON_TYPE_TAGS: dict[type, str] = {
    str: 'str',
    bool: 'bool',
    int: 'int',
    float: 'float',
    Decimal: 'decimal',
    datetime: 'datetime',
    date: 'date',
    time: 'time',
    uuid.UUID: 'uuid',
}


def value_type_tag(python_type: type) -> Optional[str]:
    """ Get the tag for values of a Python type; None if the type cannot be stored in a cursor """
    # Walk the MRO: subclasses of `str` are good enough.
    # The order matters: `datetime` is a subclass of `date`, `bool` is a subclass of `int`
    for t in python_type.__mro__:
        if t in PYTHON_TYPE_TAGS:
            return PYTHON_TYPE_TAGS[t]
    return None


def dump_value(value: TypedValue) -> list:
    """ Convert a typed value into a JSON-friendly `[tag, value]` pair """
    if value.type == NULL:
        return [NULL, None]
    return [value.type, VALUE_TYPES[value.type].dump(value.value)]


def load_value(pair: Any) -> TypedValue:
    """ Convert a `[tag, value]` pair back into a typed value

    Raises:
        ValueError: the pair is malformed
    """
    if not isinstance(pair, list) or len(pair) != 2 or not isinstance(pair[0], str):
        raise ValueError(f'not a [type, value] pair: {pair!r}')
    tag, value = pair

    # NULL
    if tag == NULL:
        if value is not None:
            raise ValueError(f'{NULL} with a value: {value!r}')
        return TypedValue(NULL, None)

    # Value
    try:
        value_type = VALUE_TYPES[tag]
    except KeyError as e:
        raise ValueError(f'unknown type: {tag!r}') from e

    # `bool` is an `int` in Python, but not in JSON
    if not isinstance(value, value_type.json_types) or (isinstance(value, bool) and tag != 'bool'):
        raise ValueError(f'invalid {tag} value: {value!r}')

    return TypedValue(tag, value_type.load(value))  # ValueError
