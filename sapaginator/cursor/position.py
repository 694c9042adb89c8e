from __future__ import annotations

from collections import abc
from typing import Any, NamedTuple

from sapaginator import exc
from sapaginator.sort import SortingField

from .encode import encode_opaque_cursor, decode_opaque_cursor
from .values import NULL, TypedValue, dump_value, load_value


class Position(NamedTuple):
    """ Position of a record in the sort order: the values of its sort fields

    This is what a cursor contains.
    """
    # List of sort fields.
    # Is only used to check that the user isn't tampering with request sorting
    cols: tuple[str, ...]

    # Typed values, one per sort field
    vals: tuple[TypedValue, ...]

    @property
    def values(self) -> tuple:
        """ Plain values, one per sort field """
        return tuple(val.value for val in self.vals)

    @classmethod
    def from_values(cls, fields: abc.Sequence[SortingField], values: abc.Iterable[Any]) -> Position:
        """ Make a Position from field values of a record """
        return cls(
            cols=tuple(field.name for field in fields),
            vals=tuple(
                TypedValue.of(field.info.type, value)  # type: ignore[union-attr]
                for field, value in zip(fields, values)
            ),
        )

    def serialize(self) -> dict:
        return {'cols': list(self.cols), 'vals': [dump_value(val) for val in self.vals]}

    def encode(self) -> str:
        return encode_opaque_cursor(self.serialize())

    @classmethod
    def decode(cls, cursor: str, fields: abc.Sequence[SortingField]) -> Position:
        """ Decode a cursor and check that it fits the sort key

        Raises:
            exc.MalformedCursor: cannot decode, or made for a different sort key
        """
        data = decode_opaque_cursor(cursor)

        cols = data.get('cols')
        vals = data.get('vals')
        if not isinstance(cols, list) or not isinstance(vals, list) or len(cols) != len(vals):
            raise exc.MalformedCursor('cannot decode')

        # Make sure the columns are still the same
        if tuple(cols) != tuple(field.name for field in fields):
            raise exc.MalformedCursor('the cursor was made for a different sort order')

        # Load values, check their types
        typed_values = []
        for field, pair in zip(fields, vals):
            try:
                value = load_value(pair)
            except ValueError as e:
                raise exc.MalformedCursor(f'invalid value for "{field.name}"') from e

            if value.type == NULL:
                if not field.info.nullable:  # type: ignore[union-attr]
                    raise exc.MalformedCursor(f'"{field.name}" cannot be null')
            elif value.type != field.info.type:  # type: ignore[union-attr]
                raise exc.MalformedCursor(f'"{field.name}" must be {field.info.type}, got {value.type}')  # type: ignore[union-attr]

            typed_values.append(value)

        return cls(cols=tuple(cols), vals=tuple(typed_values))
