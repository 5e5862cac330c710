"""Timestream-backed result materialization.

``fetch_all`` drives pagination against an execution capability and returns
flat records decoded from the type-tagged Timestream wire format.
"""

from .config import TimestreamConfig
from .cost_guard import CostPolicy, enforce_cost_limit
from .errors import (
    CostExceededError,
    ExecutionError,
    MalformedPageError,
    QueryCancelledError,
    TimestreamError,
)
from .executor import TimestreamQueryExecutor
from .page_decoder import DecodedPage, decode_page
from .pagination import fetch_all
from .row_decoder import Record, decode_row
from .value_decoder import NULL_MARKER, decode_field, decode_value
from .wire import Page, page_from_response

__all__ = [
    "NULL_MARKER",
    "CostExceededError",
    "CostPolicy",
    "DecodedPage",
    "ExecutionError",
    "MalformedPageError",
    "Page",
    "QueryCancelledError",
    "Record",
    "TimestreamConfig",
    "TimestreamError",
    "TimestreamQueryExecutor",
    "decode_field",
    "decode_page",
    "decode_row",
    "decode_value",
    "enforce_cost_limit",
    "fetch_all",
    "page_from_response",
]
