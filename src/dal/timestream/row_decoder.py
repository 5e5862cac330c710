"""Flatten one top-level result row into a record."""

from __future__ import annotations

import logging
from typing import Dict, Sequence

from dal.timestream.errors import WIRE_ROW_WIDTH_MISMATCH, MalformedPageError
from dal.timestream.value_decoder import DecodedValue, decode_field
from dal.timestream.wire import DEFAULT_MAX_DEPTH, ColumnDescriptor, Datum

logger = logging.getLogger(__name__)

Record = Dict[str, DecodedValue]


def decode_row(
    columns: Sequence[ColumnDescriptor],
    row: Sequence[Datum],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Record:
    """Decode a row positionally against its columns and merge the fields.

    Duplicate field names resolve last-write-wins; each overwrite is logged.
    Only the top-level row is merged. Nested row columns stay lists of fields.
    """
    if len(columns) != len(row):
        raise MalformedPageError(
            f"Row carries {len(row)} datums for {len(columns)} columns.",
            reason_code=WIRE_ROW_WIDTH_MISMATCH,
        )

    record: Record = {}
    for column, datum in zip(columns, row):
        for key, value in decode_field(column, datum, max_depth=max_depth).items():
            if key in record:
                logger.warning(
                    "Duplicate field '%s' in result row; later column overwrites earlier value.",
                    key,
                )
            record[key] = value
    return record
