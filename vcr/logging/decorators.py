"""
Decorators for automatic logging of repository operations.

Facade operations are wrapped so their arguments and outcome reach the debug log.
"""

import functools
import inspect
from typing import Any, Callable

from .logger import get_vcr_logger


def track_operation(operation_type: str, component: str = "repository") -> Callable:
    """
    Decorator to track a repository operation.

    Logs start, completion and failure at DEBUG level and re-raises errors.

    Args:
        operation_type: Type of operation (e.g., "commit", "merge", "stage")
        component: Component the operation belongs to

    Example:
        >>> @track_operation("commit")
        ... def commit(self, message: str) -> str:
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = get_vcr_logger(component)

            bound_args = sig.bind(*args, **kwargs)
            bound_args.apply_defaults()
            arguments = {
                k: str(v)[:100] for k, v in bound_args.arguments.items() if k != "self"
            }

            log.debug(
                f"Operation: {operation_type}",
                operation=operation_type,
                function=func.__name__,
                arguments=arguments,
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.debug(
                    f"Operation failed: {operation_type}",
                    operation=operation_type,
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            log.debug(
                f"Operation complete: {operation_type}",
                operation=operation_type,
                function=func.__name__,
            )
            return result

        return wrapper

    return decorator
