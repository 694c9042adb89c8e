from __future__ import annotations

from functools import cache

from sqlalchemy.orm import (
    InstrumentedAttribute,
    RelationshipProperty,
)

from sapaginator.sainfo.names import model_name
from sapaginator.typing import SAModel, SAAttribute
from sapaginator import exc


def resolve_relation_by_name(field_name: str, Model: SAModel, *, where: str) -> InstrumentedAttribute:
    """ Get a relationship attribute by name, or fail

    Args:
        field_name: attribute name on the model
        Model: the model to look at
        where: full path of the sort field, for error reporting
    """
    try:
        attribute = getattr(Model, field_name)
    except AttributeError as e:
        raise exc.InvalidSortKey(model_name(Model), where, f'"{field_name}" is not an attribute') from e

    # Check that it actually is a relationship
    if not is_relation(attribute):
        raise exc.InvalidSortKey(model_name(Model), where, f'"{field_name}" is not a relationship')

    # Done
    return attribute


@cache
def is_relation(attribute: SAAttribute):
    return (
        isinstance(attribute, InstrumentedAttribute) and
        isinstance(attribute.property, RelationshipProperty)
    )


@cache
def is_array(attribute: SAAttribute) -> bool:
    return attribute.property.uselist


@cache
def target_model(attribute: SAAttribute) -> type:
    return attribute.property.mapper.class_
