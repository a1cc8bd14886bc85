"""Uniform ``{success, data|error}`` result shape returned at collaborator boundaries."""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a collaborator or controller call.

    Collaborators never raise to their callers: failures are reported as
    ``success=False`` with a human readable ``error``.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    # Domain exception behind a failure, for callers that map failures to HTTP errors
    cause: Exception | None = field(default=None, repr=False, compare=False)

    @classmethod
    def ok(cls, data: T | None = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, cause: Exception | None = None) -> "ServiceResult[T]":
        return cls(success=False, error=error, cause=cause)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


def normalize_errors(operation: str) -> Callable:
    """
    Decorate an async collaborator method so raised exceptions become failed results.

    Args:
        operation: Name used in log messages

    The wrapped coroutine may return a plain value (wrapped in ``ServiceResult.ok``)
    or a ``ServiceResult`` (passed through).
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[ServiceResult]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> ServiceResult:
            try:
                value = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(f"[COLLABORATOR] {operation} failed: {e}")
                return ServiceResult.fail(str(e) or e.__class__.__name__)
            if isinstance(value, ServiceResult):
                return value
            return ServiceResult.ok(value)

        return wrapper

    return decorator
