"""Response reconciliation.

Parses the GraphQL response envelope, decodes ``data`` into the caller's
shape and lines the decoded value up with the ``errors`` list: every error
whose path points at a nullable field the server returned as ``null``
leaves that field ``None``, while the rest of the data stays in place.

Partial success is the normal case here, so the aggregate error is
returned rather than raised; the client decides what to raise.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from .decoder import ShapeDecoder
from .errors import ErrorRecord, GraphQLError
from .ir import FieldKind, FieldSpec
from .parser import shape_of
from .scalars import RawJSON, ScalarRegistry


class ResponseEnvelope(BaseModel):
    """The ``{"data", "errors", "extensions"}`` object of a response."""
    model_config = ConfigDict(extra="ignore")

    data: Any = None
    errors: list[ErrorRecord] | None = None
    extensions: Any = None

    @classmethod
    def parse(cls, raw: bytes | str) -> "ResponseEnvelope":
        """Parse a response body; raises ``pydantic.ValidationError``."""
        return cls.model_validate_json(raw)

    @property
    def data_bytes(self) -> RawJSON | None:
        return None if self.data is None else RawJSON.dump(self.data)

    @property
    def extensions_bytes(self) -> RawJSON | None:
        return None if self.extensions is None else RawJSON.dump(self.extensions)


class ResponseReconciler:
    """Decodes envelopes into shapes and collects their errors."""

    def __init__(self, scalars: ScalarRegistry | None = None):
        self._decoder = ShapeDecoder(scalars)

    def reconcile(
        self,
        envelope: ResponseEnvelope | bytes | str,
        target: Any = None,
    ) -> GraphQLError | None:
        """Decode ``envelope`` into ``target`` and return its errors, if any.

        Args:
            envelope: Parsed envelope or raw response body
            target: Shape instance to fill in place; None skips decoding

        Returns:
            A ``GraphQLError`` holding every error record, or None
        """
        if not isinstance(envelope, ResponseEnvelope):
            envelope = ResponseEnvelope.parse(envelope)

        if target is not None and envelope.data is not None:
            self._decoder.decode(target, envelope.data)

        if not envelope.errors:
            return None

        if target is not None and envelope.data is not None:
            spec = shape_of(target)
            for record in envelope.errors:
                # Records are applied one by one, overlapping paths included
                if record.path:
                    self.null_path(target, spec, envelope.data, record.path)

        return GraphQLError(envelope.errors)

    def null_path(
        self,
        target: Any,
        spec: FieldSpec,
        data: Any,
        path: list[str | int],
    ) -> None:
        """Set the field at ``path`` to None if the server returned null there.

        Segments that do not exist in ``data`` or in the shape end the walk
        quietly: the value is already absent.
        """
        holder = target
        value = data
        for i, segment in enumerate(path):
            last = i == len(path) - 1

            if isinstance(segment, str):
                if spec.kind is not FieldKind.OBJECT or not isinstance(value, dict):
                    return
                if segment not in value:
                    return
                chain = spec.locate(segment)
                if not chain:
                    return
                owner = holder
                for inline_spec in chain[:-1]:
                    owner = getattr(owner, inline_spec.attr, None)
                    if owner is None:
                        return
                spec = chain[-1]
                value = value[segment]
                if last:
                    if value is None and spec.nullable:
                        setattr(owner, spec.attr, None)
                    return
                holder = getattr(owner, spec.attr, None)

            else:
                if spec.kind is not FieldKind.LIST or not isinstance(value, list):
                    return
                if not (0 <= segment < len(value)) or not isinstance(holder, (list, tuple)):
                    return
                if segment >= len(holder):
                    return
                spec = spec.item
                value = value[segment]
                if last:
                    if value is None and spec.nullable and isinstance(holder, list):
                        holder[segment] = None
                    return
                holder = holder[segment]

            if holder is None:
                return
