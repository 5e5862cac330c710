from dataclasses import dataclass

from common.config.env import get_env_int, get_env_str
from dal.timestream.wire import DEFAULT_MAX_DEPTH

DEFAULT_DATABASE = "SensorData"
DEFAULT_TABLE = "ApplicationData"


@dataclass(frozen=True)
class TimestreamConfig:
    """Configuration required for Timestream query access."""

    region: str = "us-east-1"
    database: str = DEFAULT_DATABASE
    table: str = DEFAULT_TABLE
    query_timeout_seconds: int = 30
    max_decode_depth: int = DEFAULT_MAX_DEPTH
    recent_window: str = "15m"
    recent_limit: int = 15

    @classmethod
    def from_env(cls) -> "TimestreamConfig":
        """Load Timestream config from environment variables."""
        config = cls(
            region=get_env_str("AWS_REGION", "us-east-1"),
            database=get_env_str("TIMESTREAM_DATABASE", DEFAULT_DATABASE),
            table=get_env_str("TIMESTREAM_TABLE", DEFAULT_TABLE),
            query_timeout_seconds=get_env_int("TIMESTREAM_QUERY_TIMEOUT_SECONDS", 30),
            max_decode_depth=get_env_int("TIMESTREAM_MAX_DECODE_DEPTH", DEFAULT_MAX_DEPTH),
            recent_window=get_env_str("TIMESTREAM_RECENT_WINDOW", "15m"),
            recent_limit=get_env_int("TIMESTREAM_RECENT_LIMIT", 15),
        )

        invalid = [
            name
            for name, value in {
                "AWS_REGION": config.region,
                "TIMESTREAM_DATABASE": config.database,
                "TIMESTREAM_TABLE": config.table,
            }.items()
            if not value or not value.strip()
        ]
        if config.max_decode_depth <= 0:
            invalid.append("TIMESTREAM_MAX_DECODE_DEPTH")
        if config.recent_limit <= 0:
            invalid.append("TIMESTREAM_RECENT_LIMIT")
        if invalid:
            raise ValueError(
                f"Timestream config has invalid values: {', '.join(invalid)}. "
                "Names must be non-empty and limits must be greater than zero."
            )
        return config
