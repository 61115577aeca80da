"""Scalar types and custom scalar handlers.

Provides the ``ID`` and ``RawJSON`` marker types used in shapes, and a
registry describing how Python types map to GraphQL custom scalars: the
scalar name used when declaring variables, and how values cross the wire.

Example usage:
    from decimal import Decimal
    from gql_shape.core.scalars import ScalarRegistry

    class MoneyHandler:
        python_type = Decimal
        graphql_type = "Money"

        def serialize(self, value):
            return str(value)

        def deserialize(self, value):
            return Decimal(value)

    registry = ScalarRegistry()
    registry.register(MoneyHandler())
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID


class ID(str):
    """GraphQL ``ID`` scalar; a plain string on the wire."""


class RawJSON(bytes):
    """A JSON subtree kept as compact bytes instead of being destructured.

    The subtree is re-serialized from the parsed response, so whitespace and
    number spelling are normalized: ``1e2`` comes back as ``100.0``. The
    value itself is unchanged.
    """

    @classmethod
    def dump(cls, value: Any) -> "RawJSON":
        return cls(json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode())

    def loads(self) -> Any:
        return json.loads(self)


@runtime_checkable
class ScalarHandler(Protocol):
    """Protocol for custom scalar handlers.

    Attributes:
        python_type: The Python class the handler is registered for
        graphql_type: The GraphQL scalar name (e.g., "DateTime")
    """

    python_type: type
    graphql_type: str

    def serialize(self, value: Any) -> Any:
        """Convert Python value to JSON-serializable format for GraphQL."""
        ...

    def deserialize(self, value: Any) -> Any:
        """Convert JSON value from GraphQL to Python type."""
        ...


class DateTimeHandler:
    """Handler for DateTime scalars using ISO 8601 format."""

    python_type = datetime
    graphql_type = "DateTime"

    def serialize(self, value: datetime) -> str:
        return value.isoformat()

    def deserialize(self, value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))


class DateHandler:
    """Handler for Date scalars using ISO 8601 date format."""

    python_type = date
    graphql_type = "Date"

    def serialize(self, value: date) -> str:
        return value.isoformat()

    def deserialize(self, value: str) -> date:
        return date.fromisoformat(value)


class UUIDHandler:
    """Handler for UUID scalars."""

    python_type = UUID
    graphql_type = "UUID"

    def serialize(self, value: UUID) -> str:
        return str(value)

    def deserialize(self, value: str) -> UUID:
        return UUID(value)


class DecimalHandler:
    """Decimals travel as strings to keep their precision."""

    python_type = Decimal
    graphql_type = "Decimal"

    def serialize(self, value: Decimal) -> str:
        return str(value)

    def deserialize(self, value: Any) -> Decimal:
        return Decimal(str(value))


class ScalarRegistry:
    """Registry for custom scalar handlers, keyed by Python type.

    Lookups walk the MRO, so a handler registered for a base class also
    covers its subclasses unless a more specific handler exists.

    Example:
        registry = ScalarRegistry()
        handler = registry.get(datetime)
        handler.graphql_type  # "DateTime"
    """

    def __init__(self):
        self._handlers: dict[type, ScalarHandler] = {}
        self._register_defaults()

    def _register_defaults(self):
        """Register built-in default handlers."""
        self.register(DateTimeHandler())
        self.register(DateHandler())
        self.register(UUIDHandler())
        self.register(DecimalHandler())

    def register(self, handler: ScalarHandler):
        """Register a handler for its ``python_type``."""
        self._handlers[handler.python_type] = handler

    def get(self, python_type: Any) -> ScalarHandler | None:
        """Get the handler for a type, or None if not registered."""
        if not isinstance(python_type, type):
            return None
        for klass in python_type.__mro__:
            handler = self._handlers.get(klass)
            if handler is not None:
                return handler
        return None

    def has(self, python_type: Any) -> bool:
        return self.get(python_type) is not None


default_registry = ScalarRegistry()
