import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.observability.context import request_id_var
from dal.timestream import (
    CostExceededError,
    CostPolicy,
    ExecutionError,
    MalformedPageError,
    TimestreamConfig,
    TimestreamError,
    TimestreamQueryExecutor,
    fetch_all,
)
from telemetry_api.queries import QueryParameterError, recently_added_data_sql

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the process environment holds an invalid setting."""


_ERROR_STATUS = {
    CostExceededError: 422,
    MalformedPageError: status.HTTP_502_BAD_GATEWAY,
    ExecutionError: status.HTTP_502_BAD_GATEWAY,
}


@lru_cache(maxsize=1)
def get_config() -> TimestreamConfig:
    """Return the process Timestream configuration."""
    try:
        return TimestreamConfig.from_env()
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


@lru_cache(maxsize=1)
def get_cost_policy() -> CostPolicy:
    """Return the process query cost policy."""
    try:
        return CostPolicy.from_env()
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


@lru_cache(maxsize=1)
def get_executor() -> TimestreamQueryExecutor:
    """Return a shared Timestream executor built from the process config."""
    config = get_config()
    return TimestreamQueryExecutor(
        region=config.region,
        timeout_seconds=config.query_timeout_seconds,
        max_depth=config.max_decode_depth,
        cost_policy=get_cost_policy(),
    )


app = FastAPI(title="Sensor Telemetry API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    """Bind a request id for log and trace correlation."""
    request_id = request.headers.get("x-request-id") or uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(TimestreamError)
async def timestream_error_handler(request: Request, exc: TimestreamError) -> JSONResponse:
    """Map materialization failures to gateway-facing HTTP errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = mapped
            break
    logger.warning("Query failed on %s: %s (%s)", request.url.path, exc, exc.reason_code)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": exc.reason_code, "message": str(exc)}},
    )


@app.exception_handler(QueryParameterError)
async def query_parameter_error_handler(
    request: Request, exc: QueryParameterError
) -> JSONResponse:
    """Reject invalid report parameters."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": {"code": "VALIDATION_ERROR", "message": str(exc)}},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Report a misconfigured deployment as a server fault."""
    logger.error("Invalid configuration: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "CONFIGURATION_ERROR", "message": str(exc)}},
    )


@app.get("/health")
async def health() -> Dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@app.get("/recently-added-data")
async def recently_added_data(
    window: Optional[str] = Query(None, description="Lookback window such as 15m or 2h."),
    limit: Optional[int] = Query(None, description="Maximum number of data points."),
    config: TimestreamConfig = Depends(get_config),
    cost_policy: CostPolicy = Depends(get_cost_policy),
    executor: TimestreamQueryExecutor = Depends(get_executor),
) -> List[Dict[str, Any]]:
    """Return the most recently added data points in the lookback window."""
    query = recently_added_data_sql(
        config.database,
        config.table,
        window=window or config.recent_window,
        limit=limit if limit is not None else config.recent_limit,
    )
    return await fetch_all(
        query,
        executor,
        cost_policy=cost_policy,
        max_depth=config.max_decode_depth,
    )
