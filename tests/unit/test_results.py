"""
Unit tests for service results and their HTTP rendering.
"""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from salehunter.api.responses import respond
from salehunter.api.schemas import PriceHistoryEntry
from salehunter.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    exception_for,
)
from salehunter.services import RequestContext
from salehunter.services.context import present
from salehunter.services.result import ErrorKind, ServiceResult


class TestServiceResult:
    """Tests for ServiceResult constructors."""

    def test_ok(self):
        result = ServiceResult.ok({"a": 1}, "Done")

        assert result.succeeded
        assert result.code == 200
        assert result.message == "Done"
        assert result.data == {"a": 1}

    def test_created(self):
        result = ServiceResult.created(5)

        assert result.succeeded
        assert result.code == 201

    @pytest.mark.parametrize(
        "factory, kind, code",
        [
            (ServiceResult.not_found, ErrorKind.NOT_FOUND, 404),
            (ServiceResult.unauthorized, ErrorKind.UNAUTHORIZED, 401),
            (ServiceResult.forbidden, ErrorKind.FORBIDDEN, 400),
            (ServiceResult.conflict, ErrorKind.CONFLICT, 400),
            (ServiceResult.invalid, ErrorKind.VALIDATION, 400),
        ],
    )
    def test_failures(self, factory, kind, code):
        result = factory("nope")

        assert not result.succeeded
        assert result.error == kind
        assert result.code == code
        assert result.data is None


class TestExceptionFor:
    @pytest.mark.parametrize(
        "result, exc_class, status_code",
        [
            (ServiceResult.not_found("Product not found"), NotFoundError, 404),
            (ServiceResult.unauthorized("Invalid email or password"), UnauthorizedError, 401),
            (ServiceResult.forbidden("Not yours"), ForbiddenError, 400),
            (ServiceResult.conflict("Duplicate"), ConflictError, 400),
            (ServiceResult.invalid("Bad input"), ValidationError, 400),
        ],
    )
    def test_maps_kind_to_exception(self, result, exc_class, status_code):
        exc = exception_for(result)

        assert isinstance(exc, exc_class)
        assert exc.status_code == status_code
        assert exc.message == result.message


class TestRespond:
    """Tests for the success envelope."""

    def test_envelope_status_matches_code(self):
        response = respond(ServiceResult.created(True, "Created it"))

        assert response.status_code == 201
        assert json.loads(response.body) == {"code": 201, "message": "Created it", "data": True}

    def test_builder_applied_to_each_item(self):
        response = respond(ServiceResult.ok([1, 2, 3]), lambda n: n * 10)

        assert json.loads(response.body)["data"] == [10, 20, 30]

    def test_null_data(self):
        response = respond(ServiceResult.ok(None, "Nothing to return"))

        assert json.loads(response.body)["data"] is None

    def test_decimal_serialized_as_string(self):
        entry = PriceHistoryEntry(price=Decimal("75.00"), created_at=datetime(2024, 1, 1))
        response = respond(ServiceResult.ok(entry))

        assert json.loads(response.body)["data"]["price"] == "75.00"

    def test_failure_raises(self):
        with pytest.raises(NotFoundError):
            respond(ServiceResult.not_found("Store not found"))


class TestRequestContext:
    def test_anonymous(self):
        context = RequestContext()

        assert not context.is_authenticated
        assert not context.is_admin

    def test_admin(self):
        context = RequestContext(user_id=1, role="Admin")

        assert context.is_authenticated
        assert context.is_admin

    @pytest.mark.parametrize(
        "value, expected",
        [(None, False), ("", False), ("   ", False), ("x", True), (0, True)],
    )
    def test_present(self, value, expected):
        assert present(value) is expected
