"""Bus access module."""

from .cli_counter import NatsCliSubjectCounter
from .connection import (
    BusAddress,
    BusConnection,
    BusSubscription,
    IBusConnection,
    ISubjectCounter,
    parse_bus_url,
)
from .errors import BusConnectionError, BusError, QueryError

__all__ = [
    "BusAddress",
    "BusConnection",
    "BusSubscription",
    "IBusConnection",
    "ISubjectCounter",
    "NatsCliSubjectCounter",
    "parse_bus_url",
    "BusError",
    "BusConnectionError",
    "QueryError",
]
