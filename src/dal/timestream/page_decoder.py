"""Decode one page of query results after checking its metered cost."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from dal.timestream.cost_guard import CostPolicy, enforce_cost_limit
from dal.timestream.row_decoder import Record, decode_row
from dal.timestream.wire import DEFAULT_MAX_DEPTH, Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedPage:
    """Records decoded from a page together with its continuation token."""

    records: List[Record]
    next_token: Optional[str] = None
    estimated_cost: float = 0.0


def decode_page(
    page: Page,
    policy: Optional[CostPolicy] = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> DecodedPage:
    """Check the page against the cost budget, then decode every row in order.

    The budget is evaluated before any row is decoded, so a page that breaches
    it never contributes records.
    """
    policy = policy or CostPolicy()
    logger.debug(
        "Bytes metered so far: %s GB (scanned %s GB, %s%% complete)",
        page.bytes_metered / policy.bytes_per_gb,
        page.bytes_scanned / policy.bytes_per_gb,
        page.progress_percentage if page.progress_percentage is not None else "?",
    )
    estimated_cost = enforce_cost_limit(page.bytes_metered, policy)
    logger.debug("Query cost estimate: $%.6f", estimated_cost)

    records = [decode_row(page.columns, row, max_depth=max_depth) for row in page.rows]
    return DecodedPage(
        records=records,
        next_token=page.next_token,
        estimated_cost=estimated_cost,
    )
