"""Tests for request and response hooks."""

from dataclasses import dataclass

import httpx
import pytest
from pydantic import BaseModel

from gql_shape.core.hooks import (
    AddHeaderHook,
    BindExtensions,
    BindResponseHeaders,
    HookRunner,
    RequestHook,
    ResponseHook,
)
from gql_shape.core.options import CallOptions, Debug, OperationDirective, OperationName
from gql_shape.core.reconciler import ResponseEnvelope


@pytest.fixture
def request_():
    return httpx.Request("POST", "https://api.example.com/graphql", content=b"{}")


@pytest.fixture
def envelope():
    return ResponseEnvelope.parse(b'{"data":{},"extensions":{"id":1,"domain":"users"}}')


@pytest.fixture
def response():
    return httpx.Response(200, headers={"X-Request-Id": "abc"})


class TestAddHeaderHook:
    """Tests for AddHeaderHook."""

    def test_adds_headers(self, request_):
        hook = AddHeaderHook({"Authorization": "Bearer abc"})
        result = hook.before_request(request_)
        assert result.headers["Authorization"] == "Bearer abc"

    def test_overrides_existing(self, request_):
        request_.headers["Authorization"] = "old"
        AddHeaderHook({"Authorization": "new"}).before_request(request_)
        assert request_.headers["Authorization"] == "new"


class TestBindExtensions:
    """Tests for BindExtensions."""

    def test_dict(self, response, envelope):
        ext = {"stale": True}
        BindExtensions(ext).after_response(response, envelope)
        assert ext == {"stale": True, "id": 1, "domain": "users"}

    def test_dataclass(self, response, envelope):
        @dataclass
        class Ext:
            id: int = 0
            domain: str = ""

        ext = Ext()
        BindExtensions(ext).after_response(response, envelope)
        assert ext == Ext(id=1, domain="users")

    def test_pydantic_model(self, response, envelope):
        class Ext(BaseModel):
            id: int = 0
            domain: str = ""
            region: str = "eu"

        ext = Ext(region="us")
        BindExtensions(ext).after_response(response, envelope)
        assert ext.id == 1
        assert ext.domain == "users"
        assert ext.region == "us"

    def test_no_extensions(self, response):
        ext = {}
        BindExtensions(ext).after_response(response, ResponseEnvelope.parse(b'{"data":{}}'))
        assert ext == {}

    def test_unsupported_destination(self, response, envelope):
        with pytest.raises(TypeError):
            BindExtensions([]).after_response(response, envelope)


class TestBindResponseHeaders:
    """Tests for BindResponseHeaders."""

    def test_copies_headers(self, response, envelope):
        headers = {}
        BindResponseHeaders(headers).after_response(response, envelope)
        assert headers["x-request-id"] == "abc"


class TestHookRunner:
    """Tests for HookRunner."""

    def test_runs_request_hooks_in_order(self, request_):
        runner = HookRunner([
            AddHeaderHook({"X-Order": "first"}),
            AddHeaderHook({"X-Order": "second"}),
        ])
        result = runner.run_request_hooks(request_)
        assert result.headers["X-Order"] == "second"

    def test_hook_may_replace_request(self, request_):
        class Redirect:
            def before_request(self, request):
                return httpx.Request("POST", "https://other.example.com/graphql")

        result = HookRunner([Redirect()]).run_request_hooks(request_)
        assert result.url.host == "other.example.com"

    def test_extended_keeps_original(self):
        base = HookRunner([AddHeaderHook({})])
        extra = HookRunner(response_hooks=[BindResponseHeaders({})])
        combined = base.extended(extra)
        assert len(combined.request_hooks) == 1
        assert len(combined.response_hooks) == 1
        assert base.response_hooks == []

    def test_runs_response_hooks(self, response, envelope):
        ext, headers = {}, {}
        runner = HookRunner(response_hooks=[BindExtensions(ext), BindResponseHeaders(headers)])
        runner.run_response_hooks(response, envelope)
        assert ext["domain"] == "users"
        assert "x-request-id" in headers


class TestProtocols:
    """Tests for protocol compliance."""

    def test_add_header_hook_is_request_hook(self):
        assert isinstance(AddHeaderHook({}), RequestHook)
        assert not isinstance(AddHeaderHook({}), ResponseHook)

    def test_bindings_are_response_hooks(self):
        assert isinstance(BindExtensions({}), ResponseHook)
        assert isinstance(BindResponseHeaders({}), ResponseHook)


class TestCallOptions:
    """Tests for CallOptions.collect."""

    def test_collect(self):
        ext = {}
        opts = CallOptions.collect([
            OperationName("GetUser"),
            OperationDirective("@cached"),
            Debug(False),
            AddHeaderHook({"X": "1"}),
            BindExtensions(ext),
        ])
        assert opts.operation_name == "GetUser"
        assert opts.directives == ["@cached"]
        assert opts.debug is False
        assert len(opts.hooks.request_hooks) == 1
        assert len(opts.hooks.response_hooks) == 1

    def test_defaults(self):
        opts = CallOptions.collect([])
        assert opts.debug is None
        assert not opts.declare_variables

    def test_unsupported(self):
        with pytest.raises(TypeError):
            CallOptions.collect([42])
