"""Context management for structured logging and tracing.

This module provides context variables for propagating request context
(request id, authenticated principal, pool and assignment being touched)
throughout a request, including across awaits.
"""

import contextvars
from contextlib import contextmanager
from typing import Optional, Any, Dict
from opentelemetry import trace

# Context variables for request/operation tracking
request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
principal_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "principal", default=None
)
pool_id_var: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "pool_id", default=None
)
assignment_id_var: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "assignment_id", default=None
)
action_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "action", default=None
)

_VARS: Dict[str, contextvars.ContextVar] = {
    "request_id": request_id_var,
    "principal": principal_var,
    "pool_id": pool_id_var,
    "assignment_id": assignment_id_var,
    "action": action_var,
}


def set_context(
    request_id: Optional[str] = None,
    principal: Optional[str] = None,
    pool_id: Optional[int] = None,
    assignment_id: Optional[int] = None,
    action: Optional[str] = None,
) -> None:
    """Set context variables. ``None`` arguments leave the current value.

    Args:
        request_id: Unique request identifier
        principal: Token subject of the caller
        pool_id: IP pool being operated on
        assignment_id: IP assignment being operated on
        action: Operation being performed (e.g., 'pool.create')
    """
    if request_id is not None:
        request_id_var.set(request_id)
    if principal is not None:
        principal_var.set(principal)
    if pool_id is not None:
        pool_id_var.set(pool_id)
    if assignment_id is not None:
        assignment_id_var.set(assignment_id)
    if action is not None:
        action_var.set(action)


def get_context() -> Dict[str, Any]:
    """Get all current context values as a dictionary.

    Returns:
        Dictionary with all non-None context values
    """
    return {
        key: var.get() for key, var in _VARS.items() if var.get() is not None
    }


def clear_context() -> None:
    """Clear all context variables."""
    for var in _VARS.values():
        var.set(None)


@contextmanager
def operation_context(
    action: str,
    pool_id: Optional[int] = None,
    assignment_id: Optional[int] = None,
):
    """Set the operation context for a block and restore the previous one.

    The action and ids are also recorded on the current span, if any.

    Example:
        with operation_context("assignment.add", pool_id=3):
            logger.info("Adding IP")
    """
    old_context = get_context()

    try:
        set_context(action=action, pool_id=pool_id, assignment_id=assignment_id)

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("action", action)
            if pool_id is not None:
                span.set_attribute("ippool.id", pool_id)
            if assignment_id is not None:
                span.set_attribute("assignment.id", assignment_id)

        yield

    finally:
        clear_context()
        for key, value in old_context.items():
            _VARS[key].set(value)


def get_trace_context() -> Dict[str, str]:
    """Get current OpenTelemetry trace context.

    Returns:
        Dictionary with trace_id and span_id (if available)
    """
    context = {}

    span = trace.get_current_span()
    if span.is_recording():
        span_context = span.get_span_context()
        if span_context.is_valid:
            context["trace_id"] = format(span_context.trace_id, "032x")
            context["span_id"] = format(span_context.span_id, "016x")

    return context
