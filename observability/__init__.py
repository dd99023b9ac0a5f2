"""Observability infrastructure for logging and tracing.

setup_logging:
    Console + rotating file logging, text or JSON, with request context.

set_request_context / clear_context:
    Attach request_id and user_id to every log record.

setup_tracing / trace_operation:
    Optional Logfire tracing with OpenAI instrumentation.

Requirements (tracing only):
    pip install logfire

Example:
    >>> from observability import setup_tracing, trace_operation
    >>> setup_tracing(enabled=True, service_name="curo")
    >>> with trace_operation("embed_message"):
    ...     pass
"""

from observability.logging import setup_logging, set_request_context, clear_context
from observability.tracing import setup_tracing, trace_operation, TracingContext

__all__ = [
    "setup_logging",
    "set_request_context",
    "clear_context",
    "setup_tracing",
    "trace_operation",
    "TracingContext",
]
