class BasePaginatorError(Exception):
    pass


class InvalidSortKey(BasePaginatorError):
    """ Sort key mentioned a field that cannot be used for pagination

    Reported when a sort field path does not resolve on the SqlAlchemy model.
    This is a programming error: it is reported before any query is made.
    """

    def __init__(self, model: str, path: str, reason: str):
        self.model = model
        self.path = path
        self.reason = reason

        super().__init__(f'Invalid sort field "{path}" for "{model}": {reason}')


class MalformedCursor(BasePaginatorError):
    """ Invalid cursor provided by the User

    Reported when a cursor cannot be decoded, or when it was made for a different sort key.
    Map it to a "bad request" response.
    """

    def __init__(self, reason: str):
        self.reason = reason

        super().__init__(f'Malformed cursor: {reason}')


class InvalidPageSize(BasePaginatorError):
    """ Page size is not a positive integer """

    def __init__(self, page_size):
        self.page_size = page_size

        super().__init__(f'Page size must be a positive integer, got {page_size!r}')


class QueryFailed(BasePaginatorError):
    """ The data access layer has failed to execute the query

    This class is used to augment other errors: the original one is available as `__cause__`
    """

    def __init__(self, cause: BaseException):
        self.cause = cause

        super().__init__(f'Query failed: {cause}')


class InvalidDirection(BasePaginatorError):
    """ Pagination direction is neither "forward" nor "backward" """

    def __init__(self, direction):
        self.direction = direction

        super().__init__(f'Invalid pagination direction: {direction!r}')
