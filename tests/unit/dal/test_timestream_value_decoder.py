import pytest

from dal.timestream.errors import (
    WIRE_DEPTH_EXCEEDED,
    WIRE_ROW_WIDTH_MISMATCH,
    WIRE_TYPE_MISMATCH,
    MalformedPageError,
)
from dal.timestream.value_decoder import (
    FALLBACK_FIELD_NAME,
    NULL_MARKER,
    decode_field,
    decode_value,
)
from dal.timestream.wire import (
    ArrayDatum,
    ArrayType,
    ColumnDescriptor,
    NullDatum,
    RowDatum,
    RowType,
    ScalarDatum,
    ScalarType,
    TimeSeriesDatum,
    TimeSeriesPoint,
    TimeSeriesType,
)


def _scalar(name=None, scalar_type="VARCHAR"):
    return ColumnDescriptor(name, ScalarType(scalar_type))


def test_scalar_decodes_to_named_field():
    assert decode_field(_scalar("devEui"), ScalarDatum("dev-1")) == {"devEui": "dev-1"}


def test_unnamed_scalar_uses_fallback_key():
    assert decode_field(_scalar(), ScalarDatum("7")) == {FALLBACK_FIELD_NAME: "7"}


@pytest.mark.parametrize(
    "descriptor",
    [
        _scalar("value"),
        ColumnDescriptor("values", ArrayType(_scalar())),
        ColumnDescriptor("nested", RowType((_scalar("a"),))),
        ColumnDescriptor("series", TimeSeriesType(_scalar(scalar_type="DOUBLE"))),
    ],
)
def test_null_decodes_to_marker_for_every_type(descriptor):
    """Null is representable regardless of the declared column type."""
    assert decode_field(descriptor, NullDatum()) == {descriptor.name: NULL_MARKER}


def test_time_series_samples_are_unwrapped():
    """Sample values carry the bare scalar, the time passes through unchanged."""
    descriptor = ColumnDescriptor("temperature", TimeSeriesType(_scalar(scalar_type="DOUBLE")))
    datum = TimeSeriesDatum(
        (
            TimeSeriesPoint("2024-01-01T00:00:00Z", ScalarDatum("12.5")),
            TimeSeriesPoint("2024-01-01T00:01:00Z", NullDatum()),
        )
    )

    assert decode_value(descriptor, datum) == [
        {"time": "2024-01-01T00:00:00Z", "value": "12.5"},
        {"time": "2024-01-01T00:01:00Z", "value": NULL_MARKER},
    ]


def test_array_keeps_structured_elements():
    """Arrays decode to lists of wrapped elements, never to bracketed strings."""
    descriptor = ColumnDescriptor("codes", ArrayType(_scalar()))
    datum = ArrayDatum((ScalarDatum("a"), ScalarDatum("b")))

    assert decode_field(descriptor, datum) == {"codes": [{"value": "a"}, {"value": "b"}]}


def test_array_elements_use_element_descriptor_name():
    """Each element is wrapped like a field, keyed by the element descriptor."""
    descriptor = ColumnDescriptor("ids", ArrayType(_scalar("id")))
    datum = ArrayDatum((ScalarDatum("d1"), NullDatum()))

    assert decode_value(descriptor, datum) == [{"id": "d1"}, {"id": NULL_MARKER}]


def test_nested_row_stays_list_of_fields():
    """Nested rows are not merged into a single mapping."""
    descriptor = ColumnDescriptor("location", RowType((_scalar("lat"), _scalar("lon"))))
    datum = RowDatum((ScalarDatum("52.1"), ScalarDatum("4.3")))

    assert decode_value(descriptor, datum) == [{"lat": "52.1"}, {"lon": "4.3"}]


def test_array_of_rows_keeps_row_shape():
    row_type = RowType((_scalar("sensor"), _scalar("reading")))
    descriptor = ColumnDescriptor("sensors", ArrayType(ColumnDescriptor(None, row_type)))
    datum = ArrayDatum(
        (
            RowDatum((ScalarDatum("t1"), ScalarDatum("20"))),
            RowDatum((ScalarDatum("t2"), NullDatum())),
        )
    )

    assert decode_value(descriptor, datum) == [
        {"value": [{"sensor": "t1"}, {"reading": "20"}]},
        {"value": [{"sensor": "t2"}, {"reading": NULL_MARKER}]},
    ]


def test_time_series_inside_row_field():
    series = ColumnDescriptor("series", TimeSeriesType(_scalar()))
    descriptor = ColumnDescriptor("row", RowType((_scalar("id"), series)))
    datum = RowDatum(
        (
            ScalarDatum("d1"),
            TimeSeriesDatum((TimeSeriesPoint("t0", ScalarDatum("1")),)),
        )
    )

    assert decode_value(descriptor, datum) == [
        {"id": "d1"},
        {"series": [{"time": "t0", "value": "1"}]},
    ]


@pytest.mark.parametrize(
    "descriptor, datum",
    [
        (_scalar("x"), ArrayDatum(())),
        (ColumnDescriptor("x", ArrayType(_scalar())), ScalarDatum("1")),
        (ColumnDescriptor("x", RowType((_scalar("a"),))), ArrayDatum(())),
        (ColumnDescriptor("x", TimeSeriesType(_scalar())), RowDatum(())),
    ],
)
def test_type_mismatch_fails_loudly(descriptor, datum):
    """The decoder never coerces a datum that disagrees with its column type."""
    with pytest.raises(MalformedPageError) as exc_info:
        decode_value(descriptor, datum)

    assert exc_info.value.reason_code == WIRE_TYPE_MISMATCH
    assert exc_info.value.column == "x"


def test_nested_row_width_mismatch_is_malformed():
    descriptor = ColumnDescriptor("row", RowType((_scalar("a"), _scalar("b"))))

    with pytest.raises(MalformedPageError) as exc_info:
        decode_value(descriptor, RowDatum((ScalarDatum("1"),)))

    assert exc_info.value.reason_code == WIRE_ROW_WIDTH_MISMATCH


def test_depth_limit_is_enforced():
    descriptor = _scalar()
    datum = ScalarDatum("leaf")
    for _ in range(4):
        descriptor = ColumnDescriptor(None, ArrayType(descriptor))
        datum = ArrayDatum((datum,))

    assert decode_value(descriptor, datum, max_depth=4) == [
        {"value": [{"value": [{"value": [{"value": "leaf"}]}]}]}
    ]
    with pytest.raises(MalformedPageError) as exc_info:
        decode_value(descriptor, datum, max_depth=3)

    assert exc_info.value.reason_code == WIRE_DEPTH_EXCEEDED


def test_decoding_is_pure():
    descriptor = ColumnDescriptor("series", TimeSeriesType(_scalar()))
    datum = TimeSeriesDatum((TimeSeriesPoint("t0", ScalarDatum("1")),))

    first = decode_value(descriptor, datum)
    second = decode_value(descriptor, datum)

    assert first == second
    assert first is not second
