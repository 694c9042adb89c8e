from __future__ import annotations

import dataclasses
from typing import Optional

from sapaginator import exc
from sapaginator.sort import NullsOrdering


@dataclasses.dataclass
class PaginatorSettings:
    """ Settings for Paginator

    This object defines additional behavior that may be used with pagination:
    limit page sizes, choose how NULLs are sorted, decide what to do with bad cursors, etc
    """
    # The page size you get by default, if not specified
    default_page_size: Optional[int] = None

    # The max number of items you get, regardless of the requested page size
    max_page_size: Optional[int] = None

    # Where do NULLs go when a sort field does not say
    # PostgreSQL would put them last for ASC, and first for DESC; we always put them last unless told otherwise
    default_nulls: NullsOrdering = NullsOrdering.LAST

    # Append primary key columns to the sort key when the final sort field is not UNIQUE NOT NULL.
    # Without a unique tie-breaker, rows with equal sort values may get skipped or duplicated between pages.
    append_primary_key: bool = True

    # Add OUTER JOINs for relationships mentioned by sort fields, like "order.created_at".
    # Disable if your statement joins those relationships already.
    join_relations: bool = True

    # Treat a malformed cursor as "no cursor" instead of failing with `MalformedCursor`
    ignore_malformed_cursor: bool = False

    # ### Callbacks for Paginator

    def get_final_page_size(self, page_size: Optional[int]) -> int:
        """ Callback that fine-tunes the page size by applying default and max page sizes

        Raises:
            exc.InvalidPageSize: the page size is not a positive integer
        """
        # Apply default page size
        if page_size is None:
            page_size = self.default_page_size

        # Validate: `bool` is an `int`, but makes no sense here
        if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size <= 0:
            raise exc.InvalidPageSize(page_size)

        # Apply max page size
        if self.max_page_size:
            page_size = min(page_size, self.max_page_size)

        # Done
        return page_size
