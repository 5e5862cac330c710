"""Recursive decoding of typed datums into canonical Python values.

Decoded values are plain JSON-compatible structures:

- ``"NULL"`` for a null datum, whatever the column type.
- ``str`` for scalars; the text is never reinterpreted.
- ``list`` of single-field mappings for arrays, one per element.
- ``list`` of single-field mappings for nested rows (never merged).
- ``list`` of ``{"time": ..., "value": ...}`` mappings for time series.

Columns, row fields and array elements are wrapped as ``{name: value}``; an
unnamed descriptor uses the fallback key ``"value"``. Time-series samples are
the only slots that hold the bare value.
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from dal.timestream.errors import (
    WIRE_DEPTH_EXCEEDED,
    WIRE_ROW_WIDTH_MISMATCH,
    WIRE_TYPE_MISMATCH,
    MalformedPageError,
)
from dal.timestream.wire import (
    DEFAULT_MAX_DEPTH,
    ArrayDatum,
    ArrayType,
    ColumnDescriptor,
    Datum,
    NullDatum,
    RowDatum,
    RowType,
    ScalarDatum,
    ScalarType,
    TimeSeriesDatum,
    TimeSeriesType,
)

NULL_MARKER = "NULL"
FALLBACK_FIELD_NAME = "value"

DecodedValue = Union[str, List[Any]]
DecodedField = Dict[str, DecodedValue]


def field_name(descriptor: ColumnDescriptor) -> str:
    """Return the key a descriptor's value is stored under."""
    return descriptor.name if descriptor.name is not None else FALLBACK_FIELD_NAME


def decode_field(
    descriptor: ColumnDescriptor,
    datum: Datum,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    _depth: int = 0,
) -> DecodedField:
    """Decode a datum into a single-field mapping keyed by the column name."""
    return {
        field_name(descriptor): decode_value(
            descriptor, datum, max_depth=max_depth, _depth=_depth
        )
    }


def decode_value(
    descriptor: ColumnDescriptor,
    datum: Datum,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    _depth: int = 0,
) -> DecodedValue:
    """Decode a datum against its declared column type."""
    if _depth > max_depth:
        raise MalformedPageError(
            f"Datum nesting exceeds maximum depth of {max_depth}.",
            reason_code=WIRE_DEPTH_EXCEEDED,
            column=descriptor.name,
        )
    if isinstance(datum, NullDatum):
        return NULL_MARKER

    column_type = descriptor.type
    child_depth = _depth + 1

    if isinstance(column_type, TimeSeriesType):
        points = _expect(descriptor, datum, TimeSeriesDatum).points
        return [
            {
                "time": point.time,
                "value": decode_value(
                    column_type.value_type, point.value, max_depth=max_depth, _depth=child_depth
                ),
            }
            for point in points
        ]

    if isinstance(column_type, ArrayType):
        elements = _expect(descriptor, datum, ArrayDatum).elements
        return [
            decode_field(column_type.element, element, max_depth=max_depth, _depth=child_depth)
            for element in elements
        ]

    if isinstance(column_type, RowType):
        values = _expect(descriptor, datum, RowDatum).values
        if len(values) != len(column_type.fields):
            raise MalformedPageError(
                f"Nested row has {len(values)} values for {len(column_type.fields)} fields.",
                reason_code=WIRE_ROW_WIDTH_MISMATCH,
                column=descriptor.name,
            )
        return [
            decode_field(field, value, max_depth=max_depth, _depth=child_depth)
            for field, value in zip(column_type.fields, values)
        ]

    if isinstance(column_type, ScalarType):
        return _expect(descriptor, datum, ScalarDatum).value

    raise TypeError(f"Unsupported column type: {type(column_type).__name__}")


def _expect(descriptor: ColumnDescriptor, datum: Datum, expected: type):
    if not isinstance(datum, expected):
        raise MalformedPageError(
            f"Column '{field_name(descriptor)}' declares "
            f"{type(descriptor.type).__name__} but datum is {type(datum).__name__}.",
            reason_code=WIRE_TYPE_MISMATCH,
            column=descriptor.name,
        )
    return datum
