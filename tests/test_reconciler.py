"""Tests for response reconciliation."""

import json
from dataclasses import dataclass, field
from typing import Optional

import pytest
from pydantic import ValidationError

from gql_shape.core.errors import GraphQLError
from gql_shape.core.parser import gql_field
from gql_shape.core.reconciler import ResponseEnvelope, ResponseReconciler
from gql_shape.core.scalars import ID, RawJSON


PARTIAL_RESPONSE = json.dumps({
    "errors": [
        {
            "message": "Could not resolve to a node with the global id of 'NotExist'",
            "type": "NOT_FOUND",
            "path": ["node2"],
            "locations": [{"line": 10, "column": 4}],
        }
    ],
    "data": {
        "node1": {"id": "MDEyOklzc3VlQ29tbWVudDE2OTQwNzk0Ng=="},
        "node2": None,
    },
})


@dataclass
class Node:
    id: ID = ID("")


@dataclass
class NodesQuery:
    node1: Optional[Node] = gql_field('node1: node(id: "MDEyOklzc3VlQ29tbWVudDE2OTQwNzk0Ng==")', default=None)
    node2: Optional[Node] = gql_field('node2: node(id: "NotExist")', default=None)


@dataclass
class RawNodesQuery:
    node1: Optional[RawJSON] = gql_field('node1: node(id: "MDEyOklzc3VlQ29tbWVudDE2OTQwNzk0Ng==")', default=None)
    node2: Optional[RawJSON] = gql_field('node2: node(id: "NotExist")', default=None)


@dataclass
class Account:
    id: str = ""
    name: str = ""
    ignored: str = gql_field("-", default="")


@dataclass
class AccountQuery:
    user: Account = field(default_factory=Account)


@dataclass
class Repo:
    name: str = ""
    owner: Optional[Account] = None


@dataclass
class ReposQuery:
    repos: list[Optional[Repo]] = field(default_factory=list)


@pytest.fixture
def reconciler():
    return ResponseReconciler()


class TestEnvelope:
    """Tests for ResponseEnvelope."""

    def test_parse(self):
        envelope = ResponseEnvelope.parse(PARTIAL_RESPONSE)
        assert envelope.data["node1"]["id"].startswith("MDEy")
        assert envelope.errors[0].path == ["node2"]
        assert envelope.extensions is None

    def test_bytes_views(self):
        envelope = ResponseEnvelope.parse(b'{"data":{"a": 1},"extensions":{"id": 1}}')
        assert envelope.data_bytes == b'{"a":1}'
        assert envelope.extensions_bytes == b'{"id":1}'

    def test_absent_members(self):
        envelope = ResponseEnvelope.parse(b"{}")
        assert envelope.data_bytes is None
        assert envelope.extensions_bytes is None

    def test_raw_bytes_are_normalized(self):
        envelope = ResponseEnvelope.parse(b'{"data": {"n": 1e2, "s": "a b"}}')
        assert envelope.data_bytes == b'{"n":100.0,"s":"a b"}'

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            ResponseEnvelope.parse(b"important message")


class TestReconcile:
    """Tests for ResponseReconciler.reconcile."""

    def test_success_without_errors(self, reconciler):
        q = AccountQuery()
        assert reconciler.reconcile(b'{"data":{"user":{"id":"1","name":"Gopher"}}}', q) is None
        assert q.user == Account(id="1", name="Gopher")

    def test_partial_success(self, reconciler):
        q = NodesQuery()
        err = reconciler.reconcile(PARTIAL_RESPONSE, q)

        assert isinstance(err, GraphQLError)
        assert len(err) == 1
        assert str(err) == (
            "Message: Could not resolve to a node with the global id of 'NotExist', "
            "Locations: [{'line': 10, 'column': 4}], Extensions: {}, Path: ['node2']"
        )
        assert q.node1 == Node(id=ID("MDEyOklzc3VlQ29tbWVudDE2OTQwNzk0Ng=="))
        assert q.node2 is None

    def test_partial_success_raw(self, reconciler):
        q = RawNodesQuery()
        err = reconciler.reconcile(PARTIAL_RESPONSE, q)

        assert err is not None
        assert q.node1 == b'{"id":"MDEyOklzc3VlQ29tbWVudDE2OTQwNzk0Ng=="}'
        assert q.node2 is None

    def test_errors_without_data_leave_target_alone(self, reconciler):
        q = AccountQuery(user=Account(name="before"))
        body = json.dumps({
            "errors": [{
                "message": "Field 'user' is missing required arguments: login",
                "locations": [{"line": 7, "column": 3}],
                "extensions": {"code": "graphql_error"},
            }]
        })
        err = reconciler.reconcile(body, q)

        assert err.message == "Field 'user' is missing required arguments: login"
        assert err[0].extensions == {"code": "graphql_error"}
        assert q.user.name == "before"

    def test_ignored_fields_stay_zero(self, reconciler):
        q = AccountQuery()
        body = b'{"data":{"user":{"id":"1","name":"Gopher","ignored":"leak"}}}'
        assert reconciler.reconcile(body, q) is None
        assert q.user.ignored == ""

    def test_list_index_paths(self, reconciler):
        q = ReposQuery()
        body = json.dumps({
            "data": {"repos": [{"name": "a", "owner": None}, None, {"name": "c", "owner": {"id": "3"}}]},
            "errors": [
                {"message": "owner hidden", "path": ["repos", 0, "owner"]},
                {"message": "repo gone", "path": ["repos", 1]},
            ],
        })
        err = reconciler.reconcile(body, q)

        assert len(err) == 2
        assert q.repos[0] == Repo(name="a", owner=None)
        assert q.repos[1] is None
        assert q.repos[2].owner.id == "3"

    def test_paths_outside_shape_are_ignored(self, reconciler):
        q = NodesQuery()
        body = json.dumps({
            "data": {"node1": {"id": "x"}, "node2": None},
            "errors": [
                {"message": "unknown", "path": ["nodeX", 3]},
                {"message": "too deep", "path": ["node1", "id", "extra"]},
            ],
        })
        err = reconciler.reconcile(body, q)

        assert len(err) == 2
        assert q.node1 == Node(id=ID("x"))

    def test_non_nullable_null_is_zero(self, reconciler):
        q = AccountQuery(user=Account(name="before"))
        body = json.dumps({
            "data": {"user": None},
            "errors": [{"message": "user hidden", "path": ["user"]}],
        })
        reconciler.reconcile(body, q)
        assert q.user == Account()

    def test_without_target(self, reconciler):
        err = reconciler.reconcile(PARTIAL_RESPONSE)
        assert err.message.startswith("Could not resolve")

    def test_null_error_members(self, reconciler):
        q = NodesQuery()
        body = json.dumps({
            "data": {"node1": {"id": "x"}, "node2": None},
            "errors": [{"message": "boom", "path": ["node2"], "locations": None, "extensions": None}],
        })
        err = reconciler.reconcile(body, q)

        assert err[0].locations == []
        assert err[0].extensions == {}
        assert not err.is_request_error
        assert q.node1 == Node(id=ID("x"))
        assert q.node2 is None

    def test_null_error_path(self, reconciler):
        q = NodesQuery()
        body = json.dumps({
            "data": {"node1": {"id": "x"}, "node2": None},
            "errors": [{"message": "boom", "path": None}],
        })
        err = reconciler.reconcile(body, q)

        assert err[0].path == []
        assert q.node1 == Node(id=ID("x"))


class TestOverlappingPaths:
    """Tests for error records whose paths nest inside each other."""

    def test_null_parent_and_child(self, reconciler):
        q = ReposQuery()
        body = json.dumps({
            "data": {"repos": [{"name": "a", "owner": {"id": "1"}}, None]},
            "errors": [
                {"message": "repo gone", "path": ["repos", 1]},
                {"message": "owner gone", "path": ["repos", 1, "owner"]},
            ],
        })
        err = reconciler.reconcile(body, q)

        assert [e.message for e in err] == ["repo gone", "owner gone"]
        assert q.repos[0].owner == Account(id="1")
        assert q.repos[1] is None

    def test_present_parent_and_null_child(self, reconciler):
        q = ReposQuery()
        body = json.dumps({
            "data": {"repos": [{"name": "b", "owner": None}]},
            "errors": [
                {"message": "repo partial", "path": ["repos", 0]},
                {"message": "owner hidden", "path": ["repos", 0, "owner"]},
            ],
        })
        err = reconciler.reconcile(body, q)

        assert [e.path for e in err] == [["repos", 0], ["repos", 0, "owner"]]
        assert q.repos[0].name == "b"
        assert q.repos[0].owner is None
