"""Request and response hooks.

Provides protocols for hooks that run around each HTTP exchange: request
hooks can modify the outgoing ``httpx.Request`` (auth, tracing headers),
response hooks see the response of a successful call (binding extensions
or headers to caller-owned values).

Example usage:
    from gql_shape.core.hooks import RequestHook

    class SignRequests:
        def before_request(self, request):
            request.headers["X-Signature"] = sign(request.content)
            return request

    client = GraphQLClient(url, request_hooks=[SignRequests()])

    ext = {}
    await client.query(q, options=[BindExtensions(ext)])
"""

import dataclasses
from collections.abc import Iterable, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel

from .decoder import ShapeDecoder

if TYPE_CHECKING:
    from .reconciler import ResponseEnvelope


@runtime_checkable
class RequestHook(Protocol):
    """Protocol for request hooks.

    Example:
        class AddTraceId:
            def before_request(self, request: httpx.Request) -> httpx.Request:
                request.headers["X-Trace-Id"] = new_trace_id()
                return request
    """

    def before_request(self, request: httpx.Request) -> httpx.Request | None:
        """Called before the request is sent.

        Args:
            request: The outgoing request

        Returns:
            A replacement request, or None to keep the (possibly modified) one
        """
        ...


@runtime_checkable
class ResponseHook(Protocol):
    """Protocol for response hooks, run only when the call succeeded."""

    def after_response(self, response: httpx.Response, envelope: "ResponseEnvelope") -> None:
        """Called with the HTTP response and its parsed envelope."""
        ...


class AddHeaderHook:
    """Built-in hook adding fixed headers to every request.

    Example:
        hook = AddHeaderHook({"Authorization": "Bearer abc"})
    """

    def __init__(self, headers: Mapping[str, str]):
        self.headers = dict(headers)

    def before_request(self, request: httpx.Request) -> httpx.Request:
        request.headers.update(self.headers)
        return request


class BindExtensions:
    """Decode the response ``extensions`` into a caller-owned value.

    ``destination`` may be a dict (updated), a pydantic model instance
    (fields assigned after validation) or a dataclass instance (decoded
    like a shape).
    """

    def __init__(self, destination: Any):
        self.destination = destination

    def after_response(self, response: httpx.Response, envelope: "ResponseEnvelope") -> None:
        extensions = envelope.extensions
        if extensions is None:
            return
        dest = self.destination
        if isinstance(dest, MutableMapping):
            dest.update(extensions)
        elif isinstance(dest, BaseModel):
            parsed = type(dest).model_validate(extensions)
            for name in parsed.model_fields_set:
                setattr(dest, name, getattr(parsed, name))
        elif dataclasses.is_dataclass(dest) and not isinstance(dest, type):
            ShapeDecoder().decode(dest, extensions)
        else:
            raise TypeError(f"Cannot bind extensions into {type(dest).__name__}")


class BindResponseHeaders:
    """Copy the response headers into a caller-owned mapping."""

    def __init__(self, destination: MutableMapping[str, str]):
        self.destination = destination

    def after_response(self, response: httpx.Response, envelope: "ResponseEnvelope") -> None:
        self.destination.update(response.headers.items())


class HookRunner:
    """Runs a collection of hooks in order."""

    def __init__(
        self,
        request_hooks: Iterable[RequestHook] = (),
        response_hooks: Iterable[ResponseHook] = (),
    ):
        self.request_hooks: list[RequestHook] = list(request_hooks)
        self.response_hooks: list[ResponseHook] = list(response_hooks)

    def add_request_hook(self, hook: RequestHook):
        self.request_hooks.append(hook)

    def add_response_hook(self, hook: ResponseHook):
        self.response_hooks.append(hook)

    def extended(self, other: "HookRunner") -> "HookRunner":
        """A new runner with ``other``'s hooks after this one's."""
        return HookRunner(
            [*self.request_hooks, *other.request_hooks],
            [*self.response_hooks, *other.response_hooks],
        )

    def run_request_hooks(self, request: httpx.Request) -> httpx.Request:
        """Run all request hooks in order."""
        for hook in self.request_hooks:
            request = hook.before_request(request) or request
        return request

    def run_response_hooks(self, response: httpx.Response, envelope: "ResponseEnvelope") -> None:
        """Run all response hooks in order."""
        for hook in self.response_hooks:
            hook.after_response(response, envelope)
