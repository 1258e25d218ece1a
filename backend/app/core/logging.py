"""Logging setup and the service-operation activity log decorator."""

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from app.core.config import settings

P = ParamSpec("P")
R = TypeVar("R")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

activity_logger = logging.getLogger("app.activity")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


def log_operation(action: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Log start, success and failure of an async service operation.

    The wrapped coroutine's behavior is unchanged; exceptions are re-raised.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            activity_logger.info("[ACTION-START] %s", action)
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                activity_logger.info(
                    "[ACTION-FAILED] %s after %.1fms: %s: %s",
                    action,
                    (time.perf_counter() - started) * 1000,
                    type(exc).__name__,
                    exc,
                )
                raise
            activity_logger.info(
                "[ACTION-SUCCESS] %s in %.1fms", action, (time.perf_counter() - started) * 1000
            )
            return result

        return wrapper

    return decorator
