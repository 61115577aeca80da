"""Error types raised by the client.

Three families:
    BuildError   - the shape or the variables cannot be turned into a
                   document; raised before anything is sent.
    RequestError - the HTTP exchange failed or returned a non-2xx status.
    GraphQLError - the server answered with an ``errors`` list.

``RequestError`` is a ``GraphQLError`` so callers can catch both with one
``except`` clause and still tell them apart with ``is_request_error``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUEST_ERROR = "request_error"


class BuildError(ValueError):
    """Raised when a shape or variable cannot be expressed as a document."""


class DecodeError(ValueError):
    """Raised when ``data`` does not fit the shape it is decoded into."""


class Location(BaseModel):
    """Line/column of an error in the sent document."""
    model_config = ConfigDict(extra="ignore")

    line: int
    column: int


class ErrorRecord(BaseModel):
    """A single entry of the response ``errors`` list."""
    model_config = ConfigDict(extra="ignore")

    message: str
    locations: list[Location] = Field(default_factory=list)
    path: list[str | int] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("locations", "path", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("extensions", mode="before")
    @classmethod
    def _null_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    def __str__(self) -> str:
        locations = [loc.model_dump() for loc in self.locations]
        return (
            f"Message: {self.message}, Locations: {locations}, "
            f"Extensions: {self.extensions}, Path: {self.path}"
        )


class GraphQLError(Exception):
    """Exception carrying every error record of a response, in order.

    ``data`` and ``extensions`` hold the raw JSON bytes that accompanied the
    errors, when the call shape returns raw bytes instead of decoding them.
    """

    def __init__(
        self,
        errors: list[ErrorRecord],
        *,
        data: bytes | None = None,
        extensions: bytes | None = None,
    ):
        if not errors:
            raise ValueError("GraphQLError needs at least one error record")
        self.errors = list(errors)
        self.data = data
        self.extensions = extensions
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "; ".join(str(e) for e in self.errors)

    @property
    def is_request_error(self) -> bool:
        """True when the errors come from the transport, not the server."""
        return any(e.extensions.get("code") == REQUEST_ERROR for e in self.errors)

    def __str__(self) -> str:
        # Records may gain debug extensions after construction.
        return self.message

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __getitem__(self, index: int) -> ErrorRecord:
        return self.errors[index]


class RequestError(GraphQLError):
    """The request never produced a usable GraphQL response."""

    def __init__(self, message: str):
        super().__init__(
            [ErrorRecord(message=message, extensions={"code": REQUEST_ERROR})]
        )
