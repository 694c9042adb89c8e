""" Field accessor: resolve dotted field paths on models and records

* `type_of()` looks at a model class, validates a path, and tells what values the field has
* `resolve()` looks at a record and gets the value
"""

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import InstrumentedAttribute

from sapaginator import exc
from sapaginator.cursor.values import value_type_tag
from sapaginator.sainfo.columns import (
    resolve_column_by_name,
    get_column_python_type,
    is_column_property_nullable,
    is_column_property_unique,
)
from sapaginator.sainfo.names import model_name
from sapaginator.sainfo.relations import resolve_relation_by_name, is_array, target_model
from sapaginator.typing import SAModel, Record


@dataclass(frozen=True)
class FieldInfo:
    """ Static information about a sort field """
    # Dotted path: "created_at", "order.created_at"
    path: str

    # The column attribute. For related fields, it's an attribute of the related model
    attribute: InstrumentedAttribute

    # Relationships to go through to reach the column, in order
    relations: tuple[InstrumentedAttribute, ...]

    # Value type tag. See: cursor.values
    type: str

    # Can the field be NULL?
    # Fields reached through a relationship always can: that's what an OUTER JOIN gives
    nullable: bool

    # Is the field value unique for every record?
    unique: bool


def type_of(Model: SAModel, path: str) -> FieldInfo:
    """ Resolve a dotted path against a model class

    Every segment but the last has to be a scalar relationship (many-to-one, one-to-one);
    the last one has to be a column.

    Raises:
        exc.InvalidSortKey: the path does not resolve, or its type cannot be stored in a cursor
    """
    if not path:
        raise exc.InvalidSortKey(model_name(Model), path, 'empty field name')

    *relation_names, column_name = path.split('.')

    # Go through relationships
    relations = []
    target = Model
    for name in relation_names:
        relation = resolve_relation_by_name(name, target, where=path)
        if is_array(relation):
            raise exc.InvalidSortKey(model_name(target), path, f'"{name}" is a collection')

        relations.append(relation)
        target = target_model(relation)

    # The column
    attribute = resolve_column_by_name(column_name, target, where=path)

    # Value type
    try:
        type_tag = value_type_tag(get_column_python_type(attribute))
    except NotImplementedError:
        type_tag = None
    if type_tag is None:
        raise exc.InvalidSortKey(model_name(target), path, 'column type is not supported by cursors')

    # Done
    return FieldInfo(
        path=path,
        attribute=attribute,
        relations=tuple(relations),
        type=type_tag,
        nullable=bool(relations) or is_column_property_nullable(attribute),
        unique=not relations and is_column_property_unique(attribute),
    )


def resolve(record: Record, path: str) -> tuple[Any, bool]:
    """ Get the value of a dotted path from a record

    Records are model instances, or dicts.
    A dict may have the whole dotted path as a key: that's how labeled columns come from the database.

    Returns:
        (value, found). When a related object is missing, the value is None, but it is found.
    """
    # Labeled column
    if isinstance(record, abc.Mapping) and path in record:
        return record[path], True

    value: Any = record
    for i, name in enumerate(path.split('.')):
        # A missing related object: its fields are all NULLs
        if value is None and i > 0:
            return None, True

        if isinstance(value, abc.Mapping):
            if name not in value:
                return None, False
            value = value[name]
        else:
            try:
                value = getattr(value, name)
            except AttributeError:
                return None, False

    return value, True
