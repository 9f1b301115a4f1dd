"""Tracing helpers: a span decorator for use cases and span annotations for engine steps.

Expected domain outcomes (guard failures, permission denials, lost races)
are recorded on the span as ``taskflow.error_kind`` without marking it as an
error; anything else sets the span status to ERROR.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from taskflow.domain.exceptions import TaskflowException

P = ParamSpec("P")
R = TypeVar("R")

# Only these kwarg names are copied onto spans; anything else may carry user data.
SPAN_ARGUMENT_KEYS = frozenset(
    {
        "task_id",
        "space_id",
        "workflow_id",
        "template_id",
        "user_id",
        "actor_id",
        "transition_id",
        "transition_key",
    }
)

_tracer = trace.get_tracer("taskflow")


def traced(
    span_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Run an async use case inside a span named span_name.

    Keyword arguments listed in SPAN_ARGUMENT_KEYS become ``arg.<name>`` attributes.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _tracer.start_as_current_span(
                span_name, record_exception=False, set_status_on_exception=False
            ) as span:
                for key in SPAN_ARGUMENT_KEYS.intersection(kwargs):
                    span.set_attribute(f"arg.{key}", str(kwargs[key]))
                try:
                    return await func(*args, **kwargs)
                except TaskflowException as e:
                    span.set_attribute("taskflow.error_kind", e.error_kind)
                    raise
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                    raise

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)


def add_span_event(name: str, attributes: dict[str, Any] | None = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=attributes or {})
