"""GraphQL client for typed-shape queries.

Handles document building, HTTP communication, error handling, and
decoding of responses into the caller's shapes.
"""

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from .errors import GraphQLError, RequestError
from .hooks import HookRunner, RequestHook
from .options import CallOptions
from .query_builder import OperationType, QueryBuilder
from .reconciler import ResponseEnvelope, ResponseReconciler
from .scalars import RawJSON, ScalarRegistry, default_registry
from .variables import VariableSerializer

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Executes GraphQL operations against an endpoint.

    Every call builds a document (unless one is given), sends it once and
    reconciles the response. Errors reported by the server are raised as
    ``GraphQLError`` after the partial data has been decoded into the
    shape, so the caller always gets both.

    Examples:
        client = GraphQLClient("https://api.example.com/graphql")
        await client.query(q, {"login": "gopher"})

        # Custom transport, e.g. for tests
        client = GraphQLClient(url, http_client=httpx.AsyncClient(transport=transport))

        # Raw request and response attached to raised errors
        client = client.with_debug(True)
    """

    def __init__(
        self,
        url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        debug: bool = False,
        request_hooks: Iterable[RequestHook] = (),
        scalars: ScalarRegistry | None = None,
    ):
        """Initialize the client.

        Args:
            url: GraphQL endpoint URL
            http_client: Client to send requests with; created lazily when omitted
            headers: Extra headers for every request
            timeout: Request timeout in seconds, for the lazily created client
            debug: Attach the raw request and response to raised errors
            request_hooks: Hooks run on every outgoing request
            scalars: Custom scalar registry
        """
        self.url = url
        self.timeout = timeout
        self.debug = debug
        self.headers = dict(headers or {})
        self.scalars = scalars or default_registry
        self._client = http_client
        self._owns_client = http_client is None
        # Copies inherit this; a lazily created client may be recreated
        self._lazy_client = http_client is None
        self._hooks = HookRunner(request_hooks)
        self._builder = QueryBuilder(self.scalars)
        self._serializer = VariableSerializer(self.scalars)
        self._reconciler = ResponseReconciler(self.scalars)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or (self._lazy_client and self._client.is_closed):
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client, if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    aclose = close

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _copy(self) -> "GraphQLClient":
        clone = copy.copy(self)
        # The copy borrows the HTTP client; closing it stays with the original.
        # If the original closes a client it created, the copy opens its own.
        clone._owns_client = False if self._client is not None else self._owns_client
        clone._hooks = HookRunner(self._hooks.request_hooks, self._hooks.response_hooks)
        return clone

    def with_debug(self, enabled: bool = True) -> "GraphQLClient":
        """Return a copy of the client with debug details on or off."""
        clone = self._copy()
        clone.debug = enabled
        return clone

    def with_request_hook(self, hook: RequestHook) -> "GraphQLClient":
        """Return a copy of the client running one more request hook."""
        clone = self._copy()
        clone._hooks.add_request_hook(hook)
        return clone

    async def query(
        self,
        q: Any,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> None:
        """Execute a query built from the shape ``q`` and decode into it.

        Raises:
            BuildError: If the shape or variables cannot form a document
            RequestError: If the HTTP exchange failed
            GraphQLError: If the response reported errors (``q`` still holds
                whatever data came with them)
        """
        await self._do(OperationType.QUERY, q, variables, options)

    async def query_raw(
        self,
        q: Any,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> RawJSON | None:
        """Execute a query built from ``q`` and return the raw ``data`` bytes."""
        return await self._do_raw(OperationType.QUERY, q, variables, options)

    async def mutate(
        self,
        m: Any,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> None:
        """Execute a mutation built from the shape ``m`` and decode into it."""
        await self._do(OperationType.MUTATION, m, variables, options)

    async def mutate_raw(
        self,
        m: Any,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> RawJSON | None:
        """Execute a mutation built from ``m`` and return the raw ``data`` bytes."""
        return await self._do_raw(OperationType.MUTATION, m, variables, options)

    async def exec(
        self,
        query: str,
        v: Any,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> None:
        """Execute a hand-written document and decode ``data`` into ``v``."""
        opts = CallOptions.collect(options)
        document = self._prepare_document(query, variables, opts)
        await self._run(document, v, variables, opts)

    async def exec_raw(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> RawJSON | None:
        """Execute a hand-written document and return the raw ``data`` bytes."""
        data, _ = await self.exec_raw_with_extensions(query, variables, options)
        return data

    async def exec_raw_with_extensions(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        options: Iterable[Any] = (),
    ) -> tuple[RawJSON | None, RawJSON | None]:
        """Execute a hand-written document; return raw ``data`` and ``extensions``."""
        opts = CallOptions.collect(options)
        document = self._prepare_document(query, variables, opts)
        envelope = await self._run(document, None, variables, opts)
        return envelope.data_bytes, envelope.extensions_bytes

    async def _do(self, op_type, shape, variables, options) -> None:
        opts = CallOptions.collect(options)
        document, _ = self._builder.build(
            shape, variables, op_type, opts.operation_name, opts.directives
        )
        await self._run(document, shape, variables, opts)

    async def _do_raw(self, op_type, shape, variables, options) -> RawJSON | None:
        opts = CallOptions.collect(options)
        document, _ = self._builder.build(
            shape, variables, op_type, opts.operation_name, opts.directives
        )
        envelope = await self._run(document, None, variables, opts)
        return envelope.data_bytes

    def _prepare_document(self, query: str, variables, opts: CallOptions) -> str:
        """Declare variables on a bare ``{...}`` document when asked to."""
        if not opts.declare_variables or not query.lstrip().startswith("{"):
            return query
        selection_set = query.strip()
        table = self._builder.variable_table(
            " ".join([*opts.directives, selection_set]), variables
        )
        return self._builder.assemble(
            OperationType.QUERY, selection_set, table, opts.operation_name, opts.directives
        )

    def _request_body(self, document: str, variables, opts: CallOptions) -> bytes:
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = self._serializer.serialize_variables(variables)
        if opts.operation_name:
            payload["operationName"] = opts.operation_name
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode()

    async def _run(
        self,
        document: str,
        target: Any,
        variables: Mapping[str, Any] | None,
        opts: CallOptions,
    ) -> ResponseEnvelope:
        """Send a document and reconcile the response.

        Raises the aggregate error when there is one, after decoding.
        """
        debug = self.debug if opts.debug is None else opts.debug
        body = self._request_body(document, variables, opts)
        hooks = self._hooks.extended(opts.hooks)

        client = await self._get_client()
        request = client.build_request(
            "POST",
            self.url,
            content=body,
            headers={"Content-Type": "application/json", "Accept": "application/json", **self.headers},
        )
        request = hooks.run_request_hooks(request)

        logger.debug("POST %s operation=%s", self.url, opts.operation_name or "<anonymous>")
        try:
            response = await client.send(request)
        except httpx.HTTPError as e:
            logger.warning("GraphQL request to %s failed: %s", self.url, e)
            error = RequestError(f'POST "{self.url}": {e}')
            if debug:
                self._attach_debug(error, body)
            raise error from e

        logger.debug("Response %s from %s", response.status_code, self.url)
        if not response.is_success:
            error = RequestError(f"{response.status_code} {response.reason_phrase}")
            if debug:
                self._attach_debug(error, body, response)
            raise error

        try:
            envelope = ResponseEnvelope.parse(response.content)
        except ValidationError as e:
            error = RequestError(f"Invalid GraphQL response from {self.url}: {e.error_count()} problem(s)")
            if debug:
                self._attach_debug(error, body, response)
            raise error from e

        error = self._reconciler.reconcile(envelope, target)
        if error is not None:
            error.data = envelope.data_bytes
            error.extensions = envelope.extensions_bytes
            if debug:
                self._attach_debug(error, body, response)
            raise error

        hooks.run_response_hooks(response, envelope)
        return envelope

    def _attach_debug(
        self,
        error: GraphQLError,
        body: bytes,
        response: httpx.Response | None = None,
    ) -> None:
        """Record the raw exchange under ``extensions["internal"]`` of every record."""
        internal: dict[str, Any] = {
            "request": {"method": "POST", "url": self.url, "body": body.decode()},
        }
        if response is not None:
            internal["response"] = {
                "status": response.status_code,
                "headers": dict(response.headers),
                "body": response.text,
            }
        for record in error.errors:
            record.extensions["internal"] = internal
