import sqlalchemy as sa
import sqlalchemy.orm

from sapaginator.typing import SAModel


def unaliased_class(Model: SAModel) -> type:
    """ Get the actual model class; unaliased, if was

    Args:
         Model: model class or AliasedClass
    """
    return sa.orm.class_mapper(Model).class_
