"""Error taxonomy shared by the store adapters, services and API views."""


class CookbookError(Exception):
    """Base class for cookbook failures."""


class QueryExecutionError(CookbookError):
    """The backing store was unreachable or rejected the composed query."""


class NotFoundError(CookbookError):
    """A referenced recipe, review or save record does not exist."""


class AggregateUnavailableError(CookbookError):
    """An aggregate read returned no value (e.g. no visible reviews yet)."""


class InvalidFilterError(CookbookError):
    """A filter or write request carried a value the cookbook cannot use."""


class GenerationError(CookbookError):
    """The recipe generation service failed or returned an unusable payload."""


class PermissionDeniedError(CookbookError):
    """The acting user may not change this record (e.g. not the author)."""
