"""Per-call options.

    await client.query(q, variables, options=[
        OperationName("GetUser"),
        BindExtensions(ext),
        Debug(),
    ])

Options change how the document is built (name, directives), how the
request is sent (request hooks, debug details on errors) or what happens
with a successful response (response hooks).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .hooks import HookRunner, RequestHook, ResponseHook


@dataclass(frozen=True)
class OperationName:
    """Name the operation: ``query GetUser{...}`` and ``operationName`` in the body."""
    name: str


@dataclass(frozen=True)
class OperationDirective:
    """Add an operation-level directive such as ``@cached(ttl: 60)``."""
    directive: str


@dataclass(frozen=True)
class Debug:
    """Attach the raw request and response to errors raised by this call."""
    enabled: bool = True


@dataclass(frozen=True)
class DeclareVariables:
    """Prefix a hand-written ``{...}`` document with inferred variable declarations."""


@dataclass
class CallOptions:
    """Options of one call, sorted by what they affect."""
    operation_name: str | None = None
    directives: list[str] = field(default_factory=list)
    debug: bool | None = None
    declare_variables: bool = False
    hooks: HookRunner = field(default_factory=HookRunner)

    @classmethod
    def collect(cls, options: Iterable[Any]) -> "CallOptions":
        opts = cls()
        for option in options:
            if isinstance(option, OperationName):
                opts.operation_name = option.name
            elif isinstance(option, OperationDirective):
                opts.directives.append(option.directive)
            elif isinstance(option, Debug):
                opts.debug = option.enabled
            elif isinstance(option, DeclareVariables):
                opts.declare_variables = True
            elif isinstance(option, (RequestHook, ResponseHook)):
                # A hook may implement both protocols
                if isinstance(option, RequestHook):
                    opts.hooks.add_request_hook(option)
                if isinstance(option, ResponseHook):
                    opts.hooks.add_response_hook(option)
            else:
                raise TypeError(f"Unsupported option: {option!r}")
        return opts
