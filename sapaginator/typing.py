from collections import abc
from typing import Any, Union

import sqlalchemy as sa
import sqlalchemy.orm


# Annotation for SqlAlchemy models
SAModel = type

# Annotation for SqlAlchemy instances (objects)
SAInstance = object

# Annotation for dict rows (result rows returned as dicts)
SARowDict = dict

# A record that pagination works with: either a model instance, or a row dict
Record = Union[SAInstance, abc.Mapping[str, Any]]

# An SqlAlchemy attribute
# That is, the instrumented attribute you get when accessing <model>.<attribute>
SAAttribute = Union[sa.orm.attributes.InstrumentedAttribute, sa.orm.interfaces.MapperProperty]  # type: ignore[name-defined]
