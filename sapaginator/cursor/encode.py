from __future__ import annotations

import base64
import binascii
import json

from sapaginator import exc


# Cursor prefix. Tells the user what kind of cursor that is
PREFIX = 'keys'


def encode_opaque_cursor(data: dict) -> str:
    """ Encode a dict of data as an opaque cursor. Give it a nice prefix so that the user sees what's up

    The result is deterministic and URL-safe: base64url, no padding.
    """
    data_json = json.dumps(data, sort_keys=True, separators=(',', ':'), allow_nan=False)
    return PREFIX + ':' + base64.urlsafe_b64encode(data_json.encode()).decode().rstrip('=')


def decode_opaque_cursor(cursor: str) -> dict:
    """ Decode an opaque cursor into a data dict

    Raises:
        exc.MalformedCursor: all sorts of errors related to bad cursor
    """
    if not isinstance(cursor, str):
        raise exc.MalformedCursor(f'expected a string, got {type(cursor).__name__}')

    prefix, sep, data_encoded = cursor.partition(':')
    if not sep or prefix != PREFIX:
        raise exc.MalformedCursor('unknown cursor type')

    try:
        # Restore base64 padding: it was stripped
        data_encoded += '=' * (-len(data_encoded) % 4)
        data_json = base64.b64decode(data_encoded, altchars=b'-_', validate=True)
        data = json.loads(data_json)
    # binascii.Error, UnicodeDecodeError, json.decoder.JSONDecodeError are all ValueErrors
    except (binascii.Error, ValueError) as e:
        raise exc.MalformedCursor('cannot decode') from e

    if not isinstance(data, dict):
        raise exc.MalformedCursor('cannot decode')

    return data
