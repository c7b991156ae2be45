"""
Service layer decorators for common functionality.

This module provides the logging wrapper used around settings service
operations. Errors are never translated here: classified errors and
collaborator errors both reach the caller unchanged.
"""

import functools
import inspect
from typing import Any, Awaitable, Callable, Dict, ParamSpec, TypeVar

import structlog

from .exceptions import SettingsError

logger = structlog.get_logger(__name__)

# Type variables for generic decorator typing
P = ParamSpec("P")
R = TypeVar("R")

# Parameters that must never end up in log entries
_SKIPPED_PARAMS = {"self", "db", "session", "payload", "value"}


def _build_log_context(
    service_name: str,
    operation_name: str,
    bound_arguments: Dict[str, Any],
    include_context: bool,
) -> Dict[str, Any]:
    context: Dict[str, Any] = {
        "service": service_name,
        "operation": operation_name,
    }
    if not include_context:
        return context

    for name, value in bound_arguments.items():
        if name in _SKIPPED_PARAMS:
            continue
        # Limit string values to avoid huge log entries
        context[name] = str(value)[:200] if value is not None else None
    return context


def service_error_handler(
    service_name: str,
    include_context: bool = True,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator for logging service method calls and failures.

    :param service_name: Name of the service (e.g., "SettingsService")
    :param include_context: Whether to include method parameters in log context
    :returns: Decorated coroutine function

    :example:
        @service_error_handler("SettingsService")
        async def read(self, key: str, context: RequestContext | None = None):
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        operation_name = func.__name__
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            bound_args = signature.bind(*args, **kwargs)
            bound_args.apply_defaults()
            context = _build_log_context(
                service_name, operation_name, bound_args.arguments, include_context
            )

            logger.debug("Service method called", **context)
            try:
                result = await func(*args, **kwargs)
            except SettingsError as e:
                logger.info(
                    "Service operation rejected",
                    error_type=e.error_type,
                    error_message=e.message,
                    **context,
                )
                raise
            except Exception as e:
                logger.error(
                    "Unexpected error in service operation",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    exc_info=True,
                    **context,
                )
                raise

            logger.debug("Service method completed successfully", **context)
            return result

        return wrapper

    return decorator
