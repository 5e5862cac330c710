import hashlib
from typing import Awaitable, Optional

from common.observability.context import request_id_var
from common.observability.metrics import is_telemetry_enabled


def trace_enabled() -> bool:
    """Return True when DAL query tracing is enabled or OTEL exporter defaults apply."""
    return is_telemetry_enabled("DAL_TRACE_QUERIES")


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Awaitable,
    page_token: Optional[str] = None,
):
    """Trace a DAL query operation with OTEL when enabled."""
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        request_id = request_id_var.get()
        if request_id:
            span.set_attribute("request_id", request_id)
        span.set_attribute("db.provider", provider)
        span.set_attribute("db.continuation", page_token is not None)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
