"""Decorator that turns service functions into ``ServiceResult`` producers."""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec

from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.errors import ServiceError, classify_error
from src.core.logging import span
from src.models.service_models import ServiceResult


logger = logging.getLogger(__name__)

P = ParamSpec("P")


def service_operation(
    span_name: str,
) -> Callable[[Callable[P, Awaitable[Any]]], Callable[P, Awaitable[ServiceResult]]]:
    """Wrap an async service function in a logfire span and the result envelope.

    ``ServiceError`` subclasses become failed results carrying their own code.
    Store and validation failures are classified so no raw infrastructure error
    leaves the service layer. A ``ServiceResult`` returned by the wrapped function
    passes through unchanged; any other value is wrapped with ``ServiceResult.ok``.
    """

    def decorator(func: Callable[P, Awaitable[Any]]) -> Callable[P, Awaitable[ServiceResult]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ServiceResult:
            with span(span_name):
                try:
                    result = await func(*args, **kwargs)
                except ServiceError as e:
                    logger.info(
                        "Service operation rejected",
                        extra={"operation": span_name, "code": e.code, "kind": e.kind},
                    )
                    return ServiceResult.fail(e.to_detail())
                except (DatabaseError, RecordNotFoundError, ValueError) as e:
                    logger.error("Service operation failed", extra={"operation": span_name, "error": str(e)})
                    return ServiceResult.fail(classify_error(e))

            if isinstance(result, ServiceResult):
                return result
            return ServiceResult.ok(result)

        return wrapper

    return decorator
