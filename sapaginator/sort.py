""" Sort key: the ordering that pagination walks through """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Optional, Union, TYPE_CHECKING

from sapaginator import exc
from sapaginator.sainfo.names import model_name
from sapaginator.sainfo.primary_key import primary_key_names
from sapaginator.typing import SAModel

if TYPE_CHECKING:
    from sapaginator.fields import FieldInfo
    from sapaginator.settings import PaginatorSettings


class SortingDirection(Enum):
    ASC = '+'
    DESC = '-'

    def reversed(self) -> SortingDirection:
        return SortingDirection.DESC if self == SortingDirection.ASC else SortingDirection.ASC


class NullsOrdering(Enum):
    FIRST = 'first'
    LAST = 'last'

    def reversed(self) -> NullsOrdering:
        return NullsOrdering.LAST if self == NullsOrdering.FIRST else NullsOrdering.FIRST


@dataclass
class SortingField:
    # Field path: column name, or "relationship.column"
    name: str

    # Sorting direction
    direction: SortingDirection = SortingDirection.ASC

    # Where do NULLs go. `None` means "use the default", and is replaced when resolved
    nulls: Optional[NullsOrdering] = None

    # Field info. Is set after resolve() is called
    info: Optional[FieldInfo] = None

    def export(self) -> str:
        sign = self.direction.value
        return f'{self.name}{sign}{sign}' if self.nulls == NullsOrdering.FIRST else f'{self.name}{sign}'


@dataclass
class SortKey:
    """ Sort key: the list of fields and directions that define the order of records

    Note that the list is an ordered collection: order matters here.
    Earlier fields take precedence; later fields are tie-breakers.

    Fields can be given as strings:
    * "created_at", "created_at+": ascending
    * "created_at-": descending
    * "remark++", "remark--": same, with NULLS FIRST
    * "order.created_at": sort by a column of a related object
    """
    fields: list[SortingField]

    @cached_property
    def names(self) -> tuple[str, ...]:
        """ Get field names involved in sorting, in order """
        return tuple(field.name for field in self.fields)

    @cached_property
    def relations(self) -> tuple:
        """ Get relationships that sort fields go through, in the order they have to be joined """
        relations = []
        for field in self.fields:
            assert field.info is not None, 'Resolve the sort key first'
            for relation in field.info.relations:
                if not any(relation is seen for seen in relations):
                    relations.append(relation)
        return tuple(relations)

    def __contains__(self, name: str):
        return name in self.names

    @classmethod
    def ensure(cls, sort: Union[SortKey, str, abc.Iterable[Union[str, SortingField]]]) -> SortKey:
        """ Get a SortKey from whatever input was given """
        if isinstance(sort, SortKey):
            return sort
        elif isinstance(sort, str):
            return cls.from_input([sort])
        else:
            return cls.from_input(sort)

    @classmethod
    def from_input(cls, sort: abc.Iterable[Union[str, SortingField]]) -> SortKey:
        fields = [
            field if isinstance(field, SortingField) else cls._parse_input_field(field)
            for field in sort
        ]
        return cls(fields=fields)

    def export(self) -> list[str]:
        return [
            field.export()
            for field in self.fields
        ]

    def resolve(self, Model: SAModel, settings: PaginatorSettings) -> SortKey:
        """ Resolve every field against a model; get a new, complete, SortKey

        * Every field gets its FieldInfo
        * Every field gets its nulls ordering
        * Primary key columns are appended as tie-breakers, if necessary

        Raises:
            exc.InvalidSortKey: a field does not resolve, or the sort key is empty
        """
        from sapaginator.fields import type_of

        fields: list[SortingField] = []
        for field in self.fields:
            if field.name in (f.name for f in fields):
                raise exc.InvalidSortKey(model_name(Model), field.name, 'the field is mentioned more than once')

            fields.append(SortingField(
                name=field.name,
                direction=field.direction,
                nulls=field.nulls or settings.default_nulls,
                info=type_of(Model, field.name),
            ))

        # Make sure the ordering is total: the final field has to be UNIQUE NOT NULL
        final_info = fields[-1].info if fields else None
        if settings.append_primary_key and not (final_info and final_info.unique and not final_info.nullable):
            direction = fields[-1].direction if fields else SortingDirection.ASC
            for name in primary_key_names(Model):
                if name not in (f.name for f in fields):
                    fields.append(SortingField(
                        name=name,
                        direction=direction,
                        nulls=settings.default_nulls,
                        info=type_of(Model, name),
                    ))

        if not fields:
            raise exc.InvalidSortKey(model_name(Model), '', 'the sort key is empty')

        return SortKey(fields=fields)

    @staticmethod
    def _parse_input_field(field: str) -> SortingField:
        """ Parse a field string into a SortingField object """
        # Look at the ending characters
        end_c = field[-1:]

        # Doubled sorting character: NULLS FIRST
        if field[-2:] in ('++', '--'):
            name = field[:-2]
            direction = SortingDirection(end_c)
            nulls = NullsOrdering.FIRST
        # If there's a sorting character, use it
        elif end_c == '-' or end_c == '+':
            name = field[:-1]
            direction = SortingDirection(end_c)
            nulls = None
        # Otherwise, use default sorting
        else:
            name = field
            direction = SortingDirection.ASC
            nulls = None

        return SortingField(name=name, direction=direction, nulls=nulls)
