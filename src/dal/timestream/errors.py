"""Error taxonomy for Timestream result materialization."""

from __future__ import annotations

from typing import Optional

from dal.error_classification import classify_error_info

EXECUTION_FAILED = "TIMESTREAM_EXECUTION_FAILED"
QUERY_COST_LIMIT_EXCEEDED = "TIMESTREAM_QUERY_COST_LIMIT_EXCEEDED"
QUERY_CANCELLED = "TIMESTREAM_QUERY_CANCELLED"
WIRE_ROW_WIDTH_MISMATCH = "WIRE_ROW_WIDTH_MISMATCH"
WIRE_TYPE_MISMATCH = "WIRE_TYPE_MISMATCH"
WIRE_DEPTH_EXCEEDED = "WIRE_DEPTH_EXCEEDED"
WIRE_PAYLOAD_INVALID = "WIRE_PAYLOAD_INVALID"


class TimestreamError(Exception):
    """Base class for failures raised while materializing query results."""

    def __init__(self, message: str, *, reason_code: str) -> None:
        """Attach a stable reason code to the error instance."""
        super().__init__(message)
        self.reason_code = reason_code


class ExecutionError(TimestreamError):
    """Raised when the execution capability fails to produce a page."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        is_retryable: bool = False,
        retry_after_seconds: Optional[float] = None,
        provider: str = "timestream",
    ) -> None:
        """Initialize with the classified failure category."""
        super().__init__(message, reason_code=EXECUTION_FAILED)
        self.category = category
        self.is_retryable = is_retryable
        self.retry_after_seconds = retry_after_seconds
        self.provider = provider

    @classmethod
    def from_exception(cls, prefix: str, exc: Exception) -> "ExecutionError":
        """Wrap a provider failure, classifying it for retry decisions."""
        info = classify_error_info("timestream", exc)
        return cls(
            f"{prefix}: {exc}",
            category=info.category,
            is_retryable=info.is_retryable,
            retry_after_seconds=info.retry_after_seconds,
        )


class CostExceededError(TimestreamError):
    """Raised when a page's cumulative metering pushes the estimate over budget."""

    def __init__(self, *, estimated_cost: float, cost_limit: float, bytes_metered: int) -> None:
        """Record the estimate, the budget and the metered bytes behind it."""
        super().__init__(
            f"Query cost over the limit: estimated ${estimated_cost:.4f} "
            f"exceeds ${cost_limit:.4f}.",
            reason_code=QUERY_COST_LIMIT_EXCEEDED,
        )
        self.estimated_cost = estimated_cost
        self.cost_limit = cost_limit
        self.bytes_metered = bytes_metered


class MalformedPageError(TimestreamError):
    """Raised when a page breaks the column/datum correspondence contract."""

    def __init__(
        self,
        message: str,
        *,
        reason_code: str = WIRE_PAYLOAD_INVALID,
        column: Optional[str] = None,
    ) -> None:
        """Initialize with the wire violation reason and offending column, if known."""
        super().__init__(message, reason_code=reason_code)
        self.column = column


class QueryCancelledError(TimestreamError):
    """Raised when pagination is aborted by the caller between page fetches."""

    def __init__(self, pages_fetched: int) -> None:
        """Record how many pages were fetched before cancellation."""
        super().__init__(
            f"Query cancelled after {pages_fetched} page(s).", reason_code=QUERY_CANCELLED
        )
        self.pages_fetched = pages_fetched
