""" Keyset pagination for SqlAlchemy

Walk through records in the order of a sort key, page by page, forward and backward,
with opaque cursors that point to the edges of every page.
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version('sapaginator')
except PackageNotFoundError:
    __version__ = '0.0.0'

from .paginator import Paginator, Cursor, paginate
from .planner import Direction
from .settings import PaginatorSettings
from .sort import SortKey, SortingField, SortingDirection, NullsOrdering
from .cursor import Position
from .loader import QueryLoaderBase, SessionLoader, ConnectionLoader

from . import exc
