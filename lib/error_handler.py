import logging
from typing import Awaitable, Callable, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 500, user_message: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.user_message = user_message or "An error occurred. Please try again later."
        super().__init__(self.message)


class ConfigurationError(AppError):
    """A required credential or identifier is missing at startup."""


class InvalidEvent(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=200)


class MemoryWriteFailure(AppError):
    pass


class MemoryReadFailure(AppError):
    pass


class CompletionFailure(AppError):
    pass


class DeliveryFailure(AppError):
    pass


async def best_effort(
    call: Callable[[], Awaitable[T]],
    failure: Type[AppError],
    default: T,
) -> T:
    """Run call, logging any error as `failure` and returning `default` instead."""
    try:
        return await call()
    except Exception as e:
        error = e if isinstance(e, failure) else failure(str(e))
        logger.error(f"{failure.__name__}: {error.message}")
        return default


async def must_succeed(
    call: Callable[[], Awaitable[T]],
    failure: Type[AppError],
) -> T:
    """Run call, re-raising any error as `failure`."""
    try:
        return await call()
    except failure:
        raise
    except Exception as e:
        logger.error(f"{failure.__name__}: {str(e)}")
        raise failure(str(e)) from e
