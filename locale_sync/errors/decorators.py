"""
Error Handling Decorators for locale-sync

Thin wrappers that apply the logging and fallback conventions of the
error hierarchy to plain and async callables.
"""

import functools
import inspect
from typing import Any, Callable, Optional

import structlog

from .exceptions import LocaleSyncError, categorize_error

logger = structlog.get_logger(__name__)


def with_fallback(fallback_func: Callable, log_errors: bool = True, catch: tuple = (Exception,)):
    """
    Decorator to provide fallback functionality.

    Args:
        fallback_func: Function called with the same arguments if the primary fails
        log_errors: Whether to log errors
        catch: Exception types that trigger the fallback
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except catch as e:
                if log_errors:
                    logger.warning(
                        "Primary function failed, using fallback",
                        function=func.__name__,
                        error=str(e)
                    )

                if inspect.iscoroutinefunction(fallback_func):
                    return await fallback_func(*args, **kwargs)
                return fallback_func(*args, **kwargs)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except catch as e:
                if log_errors:
                    logger.warning(
                        "Primary function failed, using fallback",
                        function=func.__name__,
                        error=str(e)
                    )

                return fallback_func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def log_errors(
    level: str = "error",
    include_traceback: bool = False,
    reraise: bool = True,
    operation_name: Optional[str] = None
):
    """
    Decorator to log errors with context.

    Args:
        level: Log level (debug, info, warning, error, critical)
        include_traceback: Include full traceback in logs
        reraise: Whether to re-raise the exception after logging
        operation_name: Custom operation name for logging
    """
    def _log(op_name: str, e: Exception) -> None:
        log_method = getattr(logger, level.lower(), logger.error)

        log_data = {
            "operation": op_name,
            "error_type": type(e).__name__,
            "error": str(e),
            "category": categorize_error(e),
        }
        if isinstance(e, LocaleSyncError):
            log_data["error_code"] = e.error_code
            log_data["context"] = e.context
            log_data["retryable"] = e.is_retryable()

        if include_traceback:
            log_data["exc_info"] = True

        log_method("Error in operation", **log_data)

    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _log(op_name, e)
                if reraise:
                    raise
                return None

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log(op_name, e)
                if reraise:
                    raise
                return None

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
