""" Cursors: opaque tokens that point to a record's position in the sort order """

from .position import Position
from .values import TypedValue, NULL
from .encode import encode_opaque_cursor, decode_opaque_cursor
