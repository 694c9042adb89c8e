from __future__ import annotations

from functools import cache

import sqlalchemy as sa
from sqlalchemy import TypeDecorator
from sqlalchemy.sql.elements import Label
from sqlalchemy.orm import (
    ColumnProperty,
    InstrumentedAttribute,
    MapperProperty,
)

from sapaginator.sainfo.names import model_name
from sapaginator.typing import SAModel, SAAttribute
from sapaginator import exc


def resolve_column_by_name(field_name: str, Model: SAModel, *, where: str) -> InstrumentedAttribute:
    """ Get a column attribute by name, or fail

    Args:
        field_name: attribute name on the model
        Model: the model to look at
        where: full path of the sort field, for error reporting
    """
    try:
        attribute = getattr(Model, field_name)
    except AttributeError as e:
        raise exc.InvalidSortKey(model_name(Model), where, f'"{field_name}" is not an attribute') from e

    # Check that it actually is a column
    if not is_column(attribute):
        raise exc.InvalidSortKey(model_name(Model), where, f'"{field_name}" is not a column')

    # Done
    return attribute


# region: Column Attribute types

@cache
def is_column(attribute: SAAttribute):
    return (
        is_column_property(attribute) or
        is_column_expression(attribute)
    )


@cache
def is_column_property(attribute: SAAttribute):
    return (
        isinstance(attribute, (InstrumentedAttribute, MapperProperty)) and
        isinstance(attribute.property, ColumnProperty) and
        isinstance(attribute.expression, sa.Column)  # not an expression, but a real column
    )


@cache
def is_column_expression(attribute: SAAttribute):
    return (
        isinstance(attribute, (InstrumentedAttribute, MapperProperty)) and
        isinstance(attribute.property, ColumnProperty) and
        isinstance(attribute.expression, Label)  # an expression, not a real column
    )

# endregion


# region Column Attribute info

@cache
def get_column_type(attribute: SAAttribute) -> sa.types.TypeEngine:
    """ Get column's SQL type """
    if isinstance(attribute.type, TypeDecorator):
        # Type decorators wrap other types, so we have to handle them carefully
        return attribute.type.impl
    else:
        return attribute.type


@cache
def get_column_python_type(attribute: SAAttribute) -> type:
    """ Get the Python type of column values

    Raises:
        NotImplementedError: the SQL type does not tell
    """
    return get_column_type(attribute).python_type


def is_column_property_nullable(attribute: SAAttribute) -> bool:
    """ Check whether a column property is nullable """
    # Expressions may give NULLs at any time
    return getattr(attribute.expression, 'nullable', True)


def is_column_property_unique(attribute: SAAttribute) -> bool:
    """ Check whether a column property's value is unique """
    column = attribute.expression
    if not isinstance(column, sa.Column):
        return False

    # A part of a composite primary key is not unique by itself
    return bool(column.unique) or (column.primary_key and len(column.table.primary_key.columns) == 1)

# endregion
