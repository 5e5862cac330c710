"""Sequential page retrieval for a single query invocation."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from dal.timestream.cost_guard import CostPolicy
from dal.timestream.errors import ExecutionError, QueryCancelledError, TimestreamError
from dal.timestream.page_decoder import decode_page
from dal.timestream.row_decoder import Record
from dal.timestream.wire import DEFAULT_MAX_DEPTH, Page

logger = logging.getLogger(__name__)

ExecuteFn = Callable[[str, Optional[str]], Awaitable[Page]]
CancelFn = Callable[[str], Awaitable[None]]


async def fetch_all(
    query: str,
    execute: ExecuteFn,
    *,
    cost_policy: Optional[CostPolicy] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    cancel_event: Optional[asyncio.Event] = None,
    cancel_query: Optional[CancelFn] = None,
) -> List[Record]:
    """Fetch and decode every page of a query, in fetch order.

    The first page is requested without a token; each later page uses the
    token returned by the page before it. Retrieval stops when a page returns
    no token. Any failure aborts the whole call and no partial records are
    returned. ``cancel_event`` is checked before every fetch; when it is set
    after a page has been fetched, ``cancel_query`` (if given) is awaited with
    that page's query id so the server-side query stops too.

    All state is local to the call, so independent queries may run
    concurrently against the same ``execute`` capability.
    """
    policy = cost_policy or CostPolicy()
    records: List[Record] = []
    next_token: Optional[str] = None
    pages = 0
    query_id: Optional[str] = None

    while True:
        if cancel_event is not None and cancel_event.is_set():
            await _cancel_server_query(cancel_query, query_id)
            raise QueryCancelledError(pages)

        page = await _execute_page(execute, query, next_token)
        pages += 1
        query_id = page.query_id or query_id
        decoded = decode_page(page, policy, max_depth=max_depth)
        records.extend(decoded.records)

        next_token = decoded.next_token
        if not next_token:
            break

    logger.debug("Fetched %d page(s), %d record(s)", pages, len(records))
    return records


async def _execute_page(execute: ExecuteFn, query: str, next_token: Optional[str]) -> Page:
    try:
        return await execute(query, next_token)
    except TimestreamError:
        raise
    except Exception as exc:
        raise ExecutionError.from_exception("Query execution failed", exc) from exc


async def _cancel_server_query(cancel_query: Optional[CancelFn], query_id: Optional[str]) -> None:
    if cancel_query is None or not query_id:
        return
    try:
        await cancel_query(query_id)
    except Exception as exc:
        logger.warning("Failed to cancel query %s: %s", query_id, exc)
