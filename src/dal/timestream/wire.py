"""Typed model of the Timestream query wire format.

A Timestream ``Query`` response carries its result set as self-describing,
type-tagged columns:

- ``ColumnInfo``: one descriptor per column. ``Type`` holds exactly one of
  ``ScalarType``, ``ArrayColumnInfo``, ``RowColumnInfo`` or
  ``TimeSeriesMeasureValueColumnInfo``.
- ``Rows[*].Data``: one datum per column. A datum holds exactly one of
  ``NullValue``, ``ScalarValue``, ``ArrayValue``, ``RowValue`` or
  ``TimeSeriesValue``.

The payload dictionaries are converted into the closed unions below so that
decoders dispatch on the declared column type instead of on payload shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from dal.timestream.cost_guard import CostPolicy, enforce_cost_limit
from dal.timestream.errors import WIRE_DEPTH_EXCEEDED, WIRE_PAYLOAD_INVALID, MalformedPageError

DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True)
class ScalarType:
    """Terminal column type (VARCHAR, DOUBLE, TIMESTAMP, ...)."""

    scalar_type: str = "UNKNOWN"


@dataclass(frozen=True)
class ArrayType:
    """Array column whose elements share one descriptor."""

    element: "ColumnDescriptor"


@dataclass(frozen=True)
class RowType:
    """Nested row column with positional field descriptors."""

    fields: Tuple["ColumnDescriptor", ...]


@dataclass(frozen=True)
class TimeSeriesType:
    """Time-series column whose samples share one value descriptor."""

    value_type: "ColumnDescriptor"


ColumnType = Union[ScalarType, ArrayType, RowType, TimeSeriesType]


@dataclass(frozen=True)
class ColumnDescriptor:
    """Column name (optional for nested positions) and its declared type."""

    name: Optional[str]
    type: ColumnType


@dataclass(frozen=True)
class NullDatum:
    """Null marker; valid against any column type."""


@dataclass(frozen=True)
class ScalarDatum:
    value: str


@dataclass(frozen=True)
class ArrayDatum:
    elements: Tuple["Datum", ...]


@dataclass(frozen=True)
class RowDatum:
    values: Tuple["Datum", ...]


@dataclass(frozen=True)
class TimeSeriesPoint:
    time: str
    value: "Datum"


@dataclass(frozen=True)
class TimeSeriesDatum:
    points: Tuple[TimeSeriesPoint, ...]


Datum = Union[NullDatum, ScalarDatum, ArrayDatum, RowDatum, TimeSeriesDatum]


@dataclass(frozen=True)
class Page:
    """One chunk of a query result set plus its continuation token."""

    columns: Tuple[ColumnDescriptor, ...]
    rows: Tuple[Tuple[Datum, ...], ...]
    bytes_metered: int = 0
    next_token: Optional[str] = None
    bytes_scanned: int = 0
    query_id: Optional[str] = None
    progress_percentage: Optional[float] = None


_TYPE_KEYS = (
    "ScalarType",
    "ArrayColumnInfo",
    "RowColumnInfo",
    "TimeSeriesMeasureValueColumnInfo",
)
_DATUM_KEYS = ("NullValue", "ScalarValue", "ArrayValue", "RowValue", "TimeSeriesValue")


def _check_depth(depth: int, max_depth: int, column: Optional[str]) -> None:
    if depth > max_depth:
        raise MalformedPageError(
            f"Wire payload nesting exceeds maximum depth of {max_depth}.",
            reason_code=WIRE_DEPTH_EXCEEDED,
            column=column,
        )


def _single_key(payload: Any, keys: Tuple[str, ...], what: str, column: Optional[str]) -> str:
    if not isinstance(payload, dict):
        raise MalformedPageError(
            f"{what} payload must be an object, got {type(payload).__name__}.",
            column=column,
        )
    present = [key for key in keys if payload.get(key) is not None]
    if what == "Datum" and payload.get("NullValue") is False:
        present = [key for key in present if key != "NullValue"]
    if len(present) != 1:
        raise MalformedPageError(
            f"{what} payload must carry exactly one of {', '.join(keys)}; "
            f"found {present or 'none'}.",
            reason_code=WIRE_PAYLOAD_INVALID,
            column=column,
        )
    return present[0]


def column_from_payload(
    payload: Any, *, max_depth: int = DEFAULT_MAX_DEPTH, _depth: int = 0
) -> ColumnDescriptor:
    """Build a column descriptor from a ``ColumnInfo`` entry."""
    name = payload.get("Name") if isinstance(payload, dict) else None
    _check_depth(_depth, max_depth, name)
    type_payload = payload.get("Type") if isinstance(payload, dict) else None
    key = _single_key(type_payload, _TYPE_KEYS, "ColumnInfo.Type", name)
    body = type_payload[key]

    if key == "ScalarType":
        column_type: ColumnType = ScalarType(str(body))
    elif key == "ArrayColumnInfo":
        column_type = ArrayType(
            column_from_payload(body, max_depth=max_depth, _depth=_depth + 1)
        )
    elif key == "RowColumnInfo":
        if not isinstance(body, list):
            raise MalformedPageError("RowColumnInfo must be a list.", column=name)
        column_type = RowType(
            tuple(
                column_from_payload(child, max_depth=max_depth, _depth=_depth + 1)
                for child in body
            )
        )
    else:
        column_type = TimeSeriesType(
            column_from_payload(body, max_depth=max_depth, _depth=_depth + 1)
        )
    return ColumnDescriptor(name=name, type=column_type)


def datum_from_payload(
    payload: Any, *, max_depth: int = DEFAULT_MAX_DEPTH, _depth: int = 0
) -> Datum:
    """Build a datum from a ``Rows[*].Data`` entry."""
    _check_depth(_depth, max_depth, None)
    key = _single_key(payload, _DATUM_KEYS, "Datum", None)
    body = payload[key]

    if key == "NullValue":
        return NullDatum()
    if key == "ScalarValue":
        return ScalarDatum(str(body))
    if key == "ArrayValue":
        return ArrayDatum(_datum_list(body, "ArrayValue", max_depth, _depth))
    if key == "RowValue":
        data = body.get("Data") if isinstance(body, dict) else None
        return RowDatum(_datum_list(data, "RowValue.Data", max_depth, _depth))

    if not isinstance(body, list):
        raise MalformedPageError("TimeSeriesValue must be a list.")
    points = []
    for point in body:
        if not isinstance(point, dict) or "Time" not in point or "Value" not in point:
            raise MalformedPageError("TimeSeriesValue entries require Time and Value.")
        points.append(
            TimeSeriesPoint(
                time=str(point["Time"]),
                value=datum_from_payload(point["Value"], max_depth=max_depth, _depth=_depth + 1),
            )
        )
    return TimeSeriesDatum(tuple(points))


def _datum_list(body: Any, what: str, max_depth: int, depth: int) -> Tuple[Datum, ...]:
    if not isinstance(body, list):
        raise MalformedPageError(f"{what} must be a list.")
    return tuple(datum_from_payload(item, max_depth=max_depth, _depth=depth + 1) for item in body)


def page_from_response(
    response: dict,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    cost_policy: Optional[CostPolicy] = None,
) -> Page:
    """Convert a raw Timestream ``Query`` response into a :class:`Page`.

    With a ``cost_policy`` the metered bytes are checked before any column or
    row payload is parsed, so an over-budget page fails on cost even when its
    rows are malformed.
    """
    status = response.get("QueryStatus") or {}
    bytes_metered = int(status.get("CumulativeBytesMetered") or 0)
    if cost_policy is not None:
        enforce_cost_limit(bytes_metered, cost_policy)

    columns = tuple(
        column_from_payload(column, max_depth=max_depth)
        for column in response.get("ColumnInfo") or []
    )
    rows = []
    for row in response.get("Rows") or []:
        data = row.get("Data") if isinstance(row, dict) else None
        if not isinstance(data, list):
            raise MalformedPageError("Row payload must carry a Data list.")
        rows.append(tuple(datum_from_payload(datum, max_depth=max_depth) for datum in data))

    return Page(
        columns=columns,
        rows=tuple(rows),
        bytes_metered=bytes_metered,
        next_token=response.get("NextToken") or None,
        bytes_scanned=int(status.get("CumulativeBytesScanned") or 0),
        query_id=response.get("QueryId"),
        progress_percentage=status.get("ProgressPercentage"),
    )
