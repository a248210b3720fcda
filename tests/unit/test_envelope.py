"""Tests for the service_operation decorator."""

import pytest

from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, ErrorKind, NotFoundError
from src.models.service_models import ServiceResult


@service_operation("test.echo")
async def echo(*, value):
    return value


@service_operation("test.raise")
async def explode(*, error: Exception):
    raise error


@service_operation("test.passthrough")
async def passthrough():
    return ServiceResult.ok("cached", cached=True)


@pytest.mark.unit
class TestServiceOperation:
    """Tests for service_operation."""

    async def test_wraps_plain_value(self):
        result = await echo(value={"a": 1})

        assert result.success
        assert result.data == {"a": 1}
        assert result.error is None

    async def test_service_error_becomes_failure(self):
        result = await explode(error=NotFoundError("nope", code=ErrorCode.ERR_BOARD_NOT_FOUND))

        assert not result.success
        assert result.error.code == ErrorCode.ERR_BOARD_NOT_FOUND
        assert result.error.kind == ErrorKind.NOT_FOUND

    @pytest.mark.parametrize("error", [DatabaseError("locked"), RecordNotFoundError("gone")])
    async def test_store_errors_become_dependency_failures(self, error):
        result = await explode(error=error)

        assert result.error.kind == ErrorKind.DEPENDENCY_FAILURE

    async def test_value_error_becomes_invalid_input(self):
        result = await explode(error=ValueError("bad"))

        assert result.error.code == ErrorCode.ERR_INVALID_INPUT

    async def test_unexpected_errors_propagate(self):
        with pytest.raises(ZeroDivisionError):
            await explode(error=ZeroDivisionError())

    async def test_returned_result_passes_through(self):
        result = await passthrough()

        assert result.cached is True
        assert result.to_response() == {"success": True, "data": "cached", "cached": True}

    def test_keeps_function_metadata(self):
        assert echo.__name__ == "echo"
