import pytest

from telemetry_api.queries import QueryParameterError, quote_identifier, recently_added_data_sql


def test_recently_added_data_sql_defaults():
    assert recently_added_data_sql("SensorData", "ApplicationData") == (
        'SELECT * FROM "SensorData"."ApplicationData" '
        "WHERE time between ago(15m) and now() ORDER BY time DESC LIMIT 15"
    )


def test_recently_added_data_sql_custom_window_and_limit():
    sql = recently_added_data_sql("db", "tbl", window="2h", limit=100)

    assert "ago(2h)" in sql
    assert sql.endswith("LIMIT 100")


def test_identifiers_escape_embedded_quotes():
    assert quote_identifier('odd"name') == '"odd""name"'


@pytest.mark.parametrize("window", ["", "15", "15 minutes", "1w", "5m; DROP"])
def test_invalid_window_is_rejected(window):
    with pytest.raises(QueryParameterError, match="time window"):
        recently_added_data_sql("db", "tbl", window=window)


@pytest.mark.parametrize("limit", [0, -5, True, "10"])
def test_invalid_limit_is_rejected(limit):
    with pytest.raises(QueryParameterError, match="limit"):
        recently_added_data_sql("db", "tbl", limit=limit)


def test_empty_identifier_is_rejected():
    with pytest.raises(QueryParameterError):
        recently_added_data_sql("", "tbl")


def test_parameter_error_is_a_value_error():
    assert issubclass(QueryParameterError, ValueError)
