import asyncio
import logging
from typing import Any, Optional

from dal.timestream.cost_guard import CostPolicy
from dal.timestream.errors import ExecutionError
from dal.timestream.wire import DEFAULT_MAX_DEPTH, Page, page_from_response
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)


class TimestreamQueryExecutor:
    """Execution capability backed by the Timestream Query API.

    Instances are callable as ``execute(query, next_token)`` and can be passed
    straight to :func:`dal.timestream.pagination.fetch_all`.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        timeout_seconds: Optional[float] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        cost_policy: Optional[CostPolicy] = None,
        client: Any = None,
    ) -> None:
        """Initialize executor with Timestream connection settings."""
        self._region = region
        self._timeout_seconds = timeout_seconds
        self._max_depth = max_depth
        self._cost_policy = cost_policy or CostPolicy()
        self._client = client

    @property
    def client(self) -> Any:
        """Return the boto3 client, creating it on first use."""
        if self._client is None:
            import boto3

            self._client = boto3.client("timestream-query", region_name=self._region)
        return self._client

    async def __call__(self, query: str, next_token: Optional[str] = None) -> Page:
        """Alias for :meth:`execute`."""
        return await self.execute(query, next_token)

    async def execute(self, query: str, next_token: Optional[str] = None) -> Page:
        """Run one page of a query and return it as a typed page."""
        response = await trace_query_operation(
            "dal.query.execute",
            provider="timestream",
            sql=query,
            page_token=next_token,
            operation=self._run_query(query, next_token),
        )
        return page_from_response(
            response, max_depth=self._max_depth, cost_policy=self._cost_policy
        )

    async def cancel(self, query_id: str) -> None:
        """Cancel a running query."""
        try:
            await asyncio.to_thread(self.client.cancel_query, QueryId=query_id)
        except Exception as exc:
            raise ExecutionError.from_exception("Query cancellation failed", exc) from exc

    async def _run_query(self, query: str, next_token: Optional[str]) -> dict:
        client = self.client
        operation = asyncio.to_thread(_query_page, client, query, next_token)
        try:
            if self._timeout_seconds and self._timeout_seconds > 0:
                return await asyncio.wait_for(operation, timeout=self._timeout_seconds)
            return await operation
        except asyncio.TimeoutError as exc:
            raise ExecutionError(
                f"Timestream query timed out after {float(self._timeout_seconds):g}s.",
                category="timeout",
                is_retryable=True,
            ) from exc
        except Exception as exc:
            logger.error("Error while querying: %s", exc)
            raise ExecutionError.from_exception("Query execution failed", exc) from exc


def _query_page(client: Any, query: str, next_token: Optional[str]) -> dict:
    kwargs = {"QueryString": query}
    if next_token:
        kwargs["NextToken"] = next_token
    return client.query(**kwargs)

