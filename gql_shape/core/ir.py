"""Intermediate Representation (IR) for query shapes.

This module defines the frozen dataclasses a shape class is reduced to
before any document is built or any response is decoded. A descriptor is
derived once per shape class and shared by every call that uses it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldKind(Enum):
    """What a field holds on the wire."""
    SCALAR = "scalar"
    OBJECT = "object"
    LIST = "list"
    RAW = "raw"  # JSON subtree captured verbatim


@dataclass(frozen=True)
class FieldSpec:
    """Represents one field of a shape, or the shape itself at the root.

    For ``LIST`` fields the element is described by ``item``; list items
    have an empty ``attr`` and are never rendered on their own.
    """
    attr: str
    wire_name: str
    kind: FieldKind
    py_type: Any = None
    alias: str | None = None
    arguments: str = ""  # verbatim "(...)" clause
    directives: str = ""
    # Text rendered in front of the sub-selection: the verbatim tag, the
    # wire name, or the fragment header ("... on Droid").
    selection: str = ""
    inline: bool = False
    ignored: bool = False
    nullable: bool = False
    children: tuple["FieldSpec", ...] = field(default_factory=tuple)
    item: "FieldSpec | None" = None

    @property
    def response_key(self) -> str:
        """Key under which the server returns this field."""
        return self.alias or self.wire_name

    @property
    def is_fragment(self) -> bool:
        """True for ``... on Type`` selections."""
        return self.inline and self.selection.startswith("...")

    @property
    def selections(self) -> tuple["FieldSpec", ...]:
        """Children that take part in the document and in decoding."""
        return tuple(c for c in self.children if not c.ignored)

    @property
    def leaf(self) -> "FieldSpec":
        """Unwrap (possibly nested) lists down to the element spec."""
        spec = self
        while spec.kind is FieldKind.LIST and spec.item is not None:
            spec = spec.item
        return spec

    def locate(self, key: str) -> tuple["FieldSpec", ...]:
        """Find a selected child by response key.

        Returns the chain of specs from this level down to the match: any
        inline children passed through, then the field itself. An empty
        tuple means no child answers to ``key``.
        """
        for child in self.selections:
            if child.inline:
                chain = child.locate(key)
                if chain:
                    return (child, *chain)
            elif child.response_key == key:
                return (child,)
        return ()

    def response_keys(self) -> list[str]:
        """All response keys at this level, inline children flattened."""
        keys = []
        for child in self.selections:
            if child.inline:
                keys.extend(child.response_keys())
            else:
                keys.append(child.response_key)
        return keys
