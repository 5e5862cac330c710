"""Unit test environment helpers."""

import pytest


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Keep unit tests independent of AWS and OTEL settings on the host."""
    for name in (
        "DAL_TRACE_QUERIES",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "TIMESTREAM_QUERY_COST_PER_GB",
        "TIMESTREAM_QUERY_COST_LIMIT",
        "TIMESTREAM_BYTES_PER_GB",
        "TIMESTREAM_DATABASE",
        "TIMESTREAM_TABLE",
        "TIMESTREAM_MAX_DECODE_DEPTH",
        "TIMESTREAM_RECENT_WINDOW",
        "TIMESTREAM_RECENT_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    yield
