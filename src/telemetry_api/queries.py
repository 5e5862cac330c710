"""SQL builders for telemetry reports.

These functions only return query text; execution and decoding happen in
``dal.timestream``.
"""

from __future__ import annotations

import re

_WINDOW_PATTERN = re.compile(r"^\d+(ns|us|ms|s|m|h|d)$")


class QueryParameterError(ValueError):
    """Raised when a report parameter cannot be rendered into SQL."""


def quote_identifier(name: str) -> str:
    """Quote a Timestream database or table identifier."""
    if not name or not name.strip():
        raise QueryParameterError("Identifier must be non-empty.")
    return '"' + name.replace('"', '""') + '"'


def recently_added_data_sql(
    database: str,
    table: str,
    window: str = "15m",
    limit: int = 15,
) -> str:
    """SQL for the most recently added data points within a time window."""
    if not _WINDOW_PATTERN.match(window or ""):
        raise QueryParameterError(f"Invalid time window '{window}'; expected e.g. 15m, 2h, 1d.")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise QueryParameterError(f"Invalid limit '{limit}'; expected a positive integer.")

    return (
        f"SELECT * FROM {quote_identifier(database)}.{quote_identifier(table)} "
        f"WHERE time between ago({window}) and now() "
        f"ORDER BY time DESC LIMIT {limit}"
    )
