"""Variable type inference and serialization.

Maps the Python values of a variables mapping to the GraphQL type
signatures declared in the operation header, and converts them to the
JSON sent in the request body.

    infer_type(5)                      # "Int!"
    infer_type([ID("a")])              # "[ID!]!"
    infer_type(Variable(None, "ID"))   # "ID"
    infer_type(Optional[list[str]])    # "[String!]"
"""

import dataclasses
import types
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import BuildError
from .naming import to_camel_case
from .parser import IGNORE, TAG_KEY, parse_tag
from .scalars import ID, ScalarRegistry, default_registry

GRAPHQL_TYPE_ATTR = "__graphql_type__"

_BUILTIN_SCALARS: tuple[tuple[type, str], ...] = (
    # bool before int: bool is an int subclass
    (bool, "Boolean"),
    (int, "Int"),
    (float, "Float"),
    (ID, "ID"),
    (str, "String"),
)


@dataclass(frozen=True)
class Variable:
    """A variable value with an explicit type.

    ``type_`` is either a GraphQL type string (``"[ID!]"``) or a Python
    type hint (``Optional[int]``). Needed for ``None`` values, empty lists
    and plain dicts, whose type cannot be read off the value.
    """
    value: Any
    type_: Any


class TypeInferencer:
    """Derives GraphQL type signatures from Python values and type hints."""

    def __init__(self, scalars: ScalarRegistry | None = None):
        self.scalars = scalars or default_registry

    def infer(self, value: Any) -> str:
        """Signature of a variable value."""
        if isinstance(value, Variable):
            if isinstance(value.type_, str):
                return value.type_
            return self.from_hint(value.type_)
        if isinstance(value, type) or typing.get_origin(value) is not None:
            return self.from_hint(value)
        if value is None:
            raise BuildError("Cannot infer the type of a None variable; wrap it in Variable()")
        if isinstance(value, (list, tuple)):
            if not value:
                raise BuildError("Cannot infer the type of an empty list; wrap it in Variable()")
            return f"[{self.infer(value[0])}]!"
        return f"{self._named(type(value))}!"

    def from_hint(self, hint: Any) -> str:
        """Signature of a Python type hint; ``Optional`` drops the ``!``."""
        nullable = False
        origin = typing.get_origin(hint)
        if origin is typing.Union or origin is types.UnionType:
            members = [a for a in typing.get_args(hint) if a is not type(None)]
            if len(members) != 1:
                raise BuildError(f"Cannot map union {hint!r} to a GraphQL type")
            nullable = len(members) < len(typing.get_args(hint))
            hint = members[0]
            origin = typing.get_origin(hint)

        if origin in (list, tuple, Sequence):
            args = [a for a in typing.get_args(hint) if a is not Ellipsis]
            if not args:
                raise BuildError(f"List hint {hint!r} needs an element type")
            signature = f"[{self.from_hint(args[0])}]"
        elif isinstance(hint, type):
            signature = self._named(hint)
        else:
            raise BuildError(f"Cannot map {hint!r} to a GraphQL type")
        return signature if nullable else f"{signature}!"

    def _named(self, python_type: type) -> str:
        override = getattr(python_type, GRAPHQL_TYPE_ATTR, None)
        if override:
            return override
        handler = self.scalars.get(python_type)
        if handler is not None:
            return handler.graphql_type
        if issubclass(python_type, Enum):
            return python_type.__name__
        for klass, name in _BUILTIN_SCALARS:
            if issubclass(python_type, klass):
                return name
        if dataclasses.is_dataclass(python_type) or issubclass(python_type, BaseModel):
            return python_type.__name__
        raise BuildError(f"Cannot map Python type {python_type.__name__} to a GraphQL type")


class VariableSerializer:
    """Converts variable values to JSON-ready structures."""

    def __init__(self, scalars: ScalarRegistry | None = None):
        self.scalars = scalars or default_registry

    def serialize_variables(self, variables: Mapping[str, Any] | None) -> dict[str, Any]:
        return {key: self.serialize(value) for key, value in (variables or {}).items()}

    def serialize(self, value: Any) -> Any:
        if isinstance(value, Variable):
            return self.serialize(value.value)
        if isinstance(value, Enum):
            return value.value
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_none=True)
        handler = self.scalars.get(type(value))
        if handler is not None:
            return handler.serialize(value)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self._serialize_dataclass(value)
        if isinstance(value, Mapping):
            return {str(k): self.serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.serialize(v) for v in value]
        raise BuildError(f"Cannot serialize variable value of type {type(value).__name__}")

    def _serialize_dataclass(self, value: Any) -> dict[str, Any]:
        result = {}
        for f in dataclasses.fields(value):
            tag = f.metadata.get(TAG_KEY)
            if tag is not None and tag.strip() == IGNORE:
                continue
            key = (parse_tag(tag).name if tag else "") or to_camel_case(f.name)
            result[key] = self.serialize(getattr(value, f.name))
        return result


def infer_type(value: Any) -> str:
    """Signature of a variable value using the default scalar registry."""
    return TypeInferencer().infer(value)
