"""
Utility decorators for logging engine operations.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])

# Parameters worth echoing in operation logs
_CONTEXT_PARAMS = ["rule", "order_id", "current_price", "period_start", "period_end", "user_id"]


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if hasattr(value, "name") and hasattr(value, "conditions"):
        return value.name  # RuleDefinition
    if hasattr(value, "value"):
        return str(value.value)  # Handle enum values
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _extract_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Extract loggable context from function arguments."""
    sig = inspect.signature(func)
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()

    context: dict[str, Any] = {}
    for param_name, value in bound_args.arguments.items():
        if param_name in _CONTEXT_PARAMS and value is not None:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _outcome_context(base_context: dict[str, Any], started: float, **fields: Any) -> dict[str, Any]:
    """Base context plus elapsed time and outcome fields."""
    elapsed_ms = (time.perf_counter() - started) * 1000
    return {**base_context, "execution_time_ms": round(elapsed_ms, 2), **fields}


def log_operation(func: F) -> F:
    """Decorator to log engine entry points with correlation IDs and timing."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = {
            "correlation_id": str(uuid.uuid4())[:8],
            **_extract_context(func, args, kwargs),
        }
        func_name = func.__name__

        logger.info(f"Operation started: {func_name}", extra=context)
        started = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"Operation failed: {func_name}",
                extra=_outcome_context(
                    context,
                    started,
                    success=False,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
            )
            raise

        outcome = {"success": True, "result_type": type(result).__name__}
        if isinstance(result, bool | int | float | str):
            outcome["result"] = result
        logger.success(
            f"Operation completed: {func_name}", extra=_outcome_context(context, started, **outcome)
        )
        return result

    return wrapper  # type: ignore
