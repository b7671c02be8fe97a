"""Bus error types."""


class BusError(Exception):
    """Base class for bus failures."""


class BusConnectionError(BusError):
    """The bus could not be reached, or the connection is gone."""


class QueryError(BusError):
    """A durable subject-count query failed."""
