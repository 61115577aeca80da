"""Decoding of response ``data`` into shape instances.

The decoder walks the JSON value alongside the shape descriptor and writes
into the caller's instance in place:

- keys missing from the payload leave the attribute untouched;
- ``null`` sets nullable attributes to ``None`` and resets the others to
  their zero value;
- ignored fields are never read or written;
- ``RawJSON`` attributes receive the subtree as compact JSON bytes.
"""

import dataclasses
from enum import Enum
from typing import Any

from .errors import DecodeError
from .ir import FieldKind, FieldSpec
from .parser import shape_of
from .scalars import ScalarRegistry, default_registry


class ShapeDecoder:
    """Decodes JSON values into shape instances."""

    def __init__(self, scalars: ScalarRegistry | None = None):
        self.scalars = scalars or default_registry

    def decode(self, target: Any, data: Any) -> None:
        """Decode a JSON object into ``target`` in place."""
        if data is None:
            return
        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object, got {type(data).__name__}")
        self._decode_object(target, shape_of(target), data, [])

    def new_instance(self, spec: FieldSpec) -> Any:
        """Build a shape instance holding defaults, or zero values where none exist."""
        by_attr = {child.attr: child for child in spec.children}
        kwargs = {}
        for f in dataclasses.fields(spec.py_type):
            if not f.init:
                continue
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                kwargs[f.name] = self.zero(by_attr[f.name])
        return spec.py_type(**kwargs)

    def zero(self, spec: FieldSpec) -> Any:
        """Zero value of a field: ``None`` when nullable."""
        if spec.nullable:
            return None
        if spec.kind is FieldKind.OBJECT:
            return self.new_instance(spec)
        if spec.kind is FieldKind.LIST:
            return () if spec.py_type is tuple else []
        if spec.kind is FieldKind.RAW:
            return spec.py_type(b"")
        py_type = spec.py_type
        if not isinstance(py_type, type) or issubclass(py_type, Enum):
            return None
        if py_type is bool:
            return False
        if issubclass(py_type, (str, int, float, dict)):
            return py_type()
        return None

    def _decode_object(self, instance: Any, spec: FieldSpec, obj: dict, path: list) -> None:
        for child in spec.selections:
            if child.inline:
                self._decode_inline(instance, child, obj, path)
                continue
            key = child.response_key
            if key not in obj:
                continue
            current = getattr(instance, child.attr, None)
            setattr(instance, child.attr, self._decode_value(child, obj[key], current, [*path, key]))

    def _decode_inline(self, instance: Any, spec: FieldSpec, obj: dict, path: list) -> None:
        if spec.nullable and not any(key in obj for key in spec.response_keys()):
            # Fragment on a type the object is not
            setattr(instance, spec.attr, None)
            return
        current = getattr(instance, spec.attr, None)
        if not isinstance(current, spec.py_type):
            current = self.new_instance(spec)
            setattr(instance, spec.attr, current)
        self._decode_object(current, spec, obj, path)

    def _decode_value(self, spec: FieldSpec, value: Any, current: Any, path: list) -> Any:
        if value is None:
            if spec.nullable:
                return None
            if spec.kind is FieldKind.RAW:
                return spec.py_type.dump(None)
            return self.zero(spec)

        if spec.kind is FieldKind.RAW:
            return spec.py_type.dump(value)

        if spec.kind is FieldKind.OBJECT:
            if not isinstance(value, dict):
                raise DecodeError(f"Expected an object at {_dotted(path)}, got {type(value).__name__}")
            instance = current if isinstance(current, spec.py_type) else self.new_instance(spec)
            self._decode_object(instance, spec, value, path)
            return instance

        if spec.kind is FieldKind.LIST:
            if not isinstance(value, list):
                raise DecodeError(f"Expected a list at {_dotted(path)}, got {type(value).__name__}")
            items = [
                self._decode_value(spec.item, v, None, [*path, i]) for i, v in enumerate(value)
            ]
            return tuple(items) if spec.py_type is tuple else items

        return self._decode_scalar(spec.py_type, value, path)

    def _decode_scalar(self, py_type: Any, value: Any, path: list) -> Any:
        handler = self.scalars.get(py_type)
        try:
            if handler is not None:
                return handler.deserialize(value)
            if not isinstance(py_type, type) or py_type is object:
                return value
            if issubclass(py_type, Enum):
                return py_type(value)
        except (AttributeError, TypeError, ValueError) as e:
            raise DecodeError(f"Cannot decode {value!r} at {_dotted(path)}: {e}") from e

        if py_type is bool:
            if isinstance(value, bool):
                return value
        elif py_type is float:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        elif issubclass(py_type, int):
            if isinstance(value, int) and not isinstance(value, bool):
                return value if py_type is int else py_type(value)
        elif issubclass(py_type, str):
            if isinstance(value, str):
                return value if py_type is str else py_type(value)
        elif issubclass(py_type, dict):
            if isinstance(value, dict):
                return value
        else:
            return value
        raise DecodeError(
            f"Expected {py_type.__name__} at {_dotted(path)}, got {type(value).__name__}"
        )


def _dotted(path: list) -> str:
    return ".".join(str(p) for p in path) or "<root>"
