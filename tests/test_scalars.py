"""Tests for scalar types and custom scalar handlers."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from gql_shape.core.scalars import (
    ID,
    DateHandler,
    DateTimeHandler,
    DecimalHandler,
    RawJSON,
    ScalarHandler,
    ScalarRegistry,
    UUIDHandler,
)


class TestDateTimeHandler:
    """Tests for DateTimeHandler."""

    def test_types(self):
        handler = DateTimeHandler()
        assert handler.python_type is datetime
        assert handler.graphql_type == "DateTime"

    def test_serialize(self):
        handler = DateTimeHandler()
        dt = datetime(2024, 1, 15, 10, 30, 0)
        assert handler.serialize(dt) == "2024-01-15T10:30:00"

    def test_deserialize(self):
        handler = DateTimeHandler()
        result = handler.deserialize("2024-01-15T10:30:00")
        assert result == datetime(2024, 1, 15, 10, 30, 0)

    def test_deserialize_with_z_suffix(self):
        handler = DateTimeHandler()
        result = handler.deserialize("2024-01-15T10:30:00Z")
        assert result == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class TestDateHandler:
    """Tests for DateHandler."""

    def test_serialize(self):
        handler = DateHandler()
        assert handler.serialize(date(2024, 1, 15)) == "2024-01-15"

    def test_deserialize(self):
        handler = DateHandler()
        assert handler.deserialize("2024-01-15") == date(2024, 1, 15)


class TestUUIDHandler:
    """Tests for UUIDHandler."""

    def test_serialize(self):
        handler = UUIDHandler()
        uid = UUID("12345678-1234-5678-1234-567812345678")
        assert handler.serialize(uid) == "12345678-1234-5678-1234-567812345678"

    def test_deserialize(self):
        handler = UUIDHandler()
        result = handler.deserialize("12345678-1234-5678-1234-567812345678")
        assert result == UUID("12345678-1234-5678-1234-567812345678")


class TestDecimalHandler:
    """Tests for DecimalHandler."""

    def test_serialize_keeps_precision(self):
        assert DecimalHandler().serialize(Decimal("0.10")) == "0.10"

    @pytest.mark.parametrize("value", ["19.99", 19.99])
    def test_deserialize(self, value):
        assert DecimalHandler().deserialize(value) == Decimal("19.99")


class TestMarkerTypes:
    """Tests for ID and RawJSON."""

    def test_id_is_a_string(self):
        assert ID("1") == "1"
        assert isinstance(ID("1"), str)

    def test_raw_json_is_compact(self):
        raw = RawJSON.dump({"id": "a", "tags": ["x", "y"], "name": "Gödel"})
        assert raw == '{"id":"a","tags":["x","y"],"name":"Gödel"}'.encode()
        assert isinstance(raw, bytes)

    def test_raw_json_null(self):
        assert RawJSON.dump(None) == b"null"
        assert RawJSON(b"null").loads() is None


class TestScalarRegistry:
    """Tests for ScalarRegistry."""

    def test_default_handlers_registered(self):
        registry = ScalarRegistry()
        assert registry.has(datetime)
        assert registry.has(date)
        assert registry.has(UUID)
        assert registry.has(Decimal)

    def test_most_specific_handler_wins(self):
        registry = ScalarRegistry()
        assert registry.get(datetime).graphql_type == "DateTime"
        assert registry.get(date).graphql_type == "Date"

    def test_subclass_lookup(self):
        class Timestamp(datetime):
            pass

        assert ScalarRegistry().get(Timestamp).graphql_type == "DateTime"

    def test_get_nonexistent(self):
        registry = ScalarRegistry()
        assert registry.get(str) is None
        assert registry.get("DateTime") is None

    def test_register_custom(self):
        registry = ScalarRegistry()

        class MoneyHandler:
            python_type = Decimal
            graphql_type = "Money"

            def serialize(self, value):
                return str(value)

            def deserialize(self, value):
                return Decimal(value)

        registry.register(MoneyHandler())
        assert registry.get(Decimal).graphql_type == "Money"


class TestScalarHandlerProtocol:
    """Tests for protocol compliance."""

    @pytest.mark.parametrize(
        "handler", [DateTimeHandler(), DateHandler(), UUIDHandler(), DecimalHandler()]
    )
    def test_is_scalar_handler(self, handler):
        assert isinstance(handler, ScalarHandler)
