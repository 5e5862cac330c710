import pytest

from common.config.env import get_env_bool, get_env_float, get_env_int, get_env_str


def test_missing_values_use_defaults(monkeypatch):
    monkeypatch.delenv("SENSOR_TEST_VAR", raising=False)

    assert get_env_str("SENSOR_TEST_VAR", "x") == "x"
    assert get_env_int("SENSOR_TEST_VAR", 3) == 3
    assert get_env_float("SENSOR_TEST_VAR", 0.5) == 0.5
    assert get_env_bool("SENSOR_TEST_VAR", True) is True


def test_required_missing_value_raises(monkeypatch):
    monkeypatch.delenv("SENSOR_TEST_VAR", raising=False)

    with pytest.raises(KeyError, match="SENSOR_TEST_VAR"):
        get_env_str("SENSOR_TEST_VAR", required=True)


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("ON", True), ("1", True), ("no", False), ("", False), (" off ", False)],
)
def test_bool_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("SENSOR_TEST_VAR", raw)

    assert get_env_bool("SENSOR_TEST_VAR") is expected


def test_numeric_parsing_errors_name_the_variable(monkeypatch):
    monkeypatch.setenv("SENSOR_TEST_VAR", "abc")

    with pytest.raises(ValueError, match="SENSOR_TEST_VAR"):
        get_env_int("SENSOR_TEST_VAR")
    with pytest.raises(ValueError, match="SENSOR_TEST_VAR"):
        get_env_float("SENSOR_TEST_VAR")
    with pytest.raises(ValueError, match="SENSOR_TEST_VAR"):
        get_env_bool("SENSOR_TEST_VAR")
