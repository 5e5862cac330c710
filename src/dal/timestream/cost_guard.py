"""Budget check converting bytes metered into an estimated query cost."""

from __future__ import annotations

from dataclasses import dataclass

from common.config.env import get_env_float, get_env_int
from dal.timestream.errors import CostExceededError

ONE_GB_IN_BYTES = 1024**3
DEFAULT_COST_PER_GB = 0.01
DEFAULT_COST_LIMIT = 0.1


@dataclass(frozen=True)
class CostPolicy:
    """Pricing and budget used to bound a single query invocation."""

    cost_per_gb: float = DEFAULT_COST_PER_GB
    cost_limit: float = DEFAULT_COST_LIMIT
    bytes_per_gb: int = ONE_GB_IN_BYTES

    def __post_init__(self) -> None:
        """Reject policies that cannot produce a meaningful estimate."""
        if self.bytes_per_gb <= 0:
            raise ValueError("bytes_per_gb must be greater than zero.")
        if self.cost_per_gb < 0:
            raise ValueError("cost_per_gb must be non-negative.")
        if self.cost_limit < 0:
            raise ValueError("cost_limit must be non-negative.")

    @classmethod
    def from_env(cls) -> "CostPolicy":
        """Load the cost policy from environment variables."""
        return cls(
            cost_per_gb=get_env_float("TIMESTREAM_QUERY_COST_PER_GB", DEFAULT_COST_PER_GB),
            cost_limit=get_env_float("TIMESTREAM_QUERY_COST_LIMIT", DEFAULT_COST_LIMIT),
            bytes_per_gb=get_env_int("TIMESTREAM_BYTES_PER_GB", ONE_GB_IN_BYTES),
        )

    def estimate_cost(self, bytes_metered: int) -> float:
        """Return the dollar estimate for a cumulative metered byte count."""
        return bytes_metered / self.bytes_per_gb * self.cost_per_gb

    def is_exceeded(self, bytes_metered: int) -> bool:
        """Return True when the estimate is strictly above the budget."""
        return self.estimate_cost(bytes_metered) > self.cost_limit


def enforce_cost_limit(bytes_metered: int, policy: CostPolicy) -> float:
    """Return the estimated cost, or raise once it crosses the budget."""
    if policy.is_exceeded(bytes_metered):
        raise CostExceededError(
            estimated_cost=policy.estimate_cost(bytes_metered),
            cost_limit=policy.cost_limit,
            bytes_metered=bytes_metered,
        )
    return policy.estimate_cost(bytes_metered)
