"""Provider-aware classification of query execution failures."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

RETRYABLE_CATEGORIES = frozenset(
    {
        "timeout",
        "connectivity",
        "throttling",
        "resource_exhausted",
        "transient",
    }
)

# AWS service error codes returned in ClientError.response["Error"]["Code"].
_AWS_ERROR_CODE_CATEGORIES: dict[str, str] = {
    "ThrottlingException": "throttling",
    "ValidationException": "syntax",
    "AccessDeniedException": "auth",
    "UnrecognizedClientException": "auth",
    "InvalidEndpointException": "connectivity",
    "InternalServerException": "transient",
    "ServiceUnavailableException": "transient",
    "ConflictException": "transient",
    "ResourceNotFoundException": "schema_drift",
    "ServiceQuotaExceededException": "resource_exhausted",
    "QueryExecutionException": "unknown",
}


@dataclass(frozen=True)
class ErrorClassification:
    """Structured provider-aware error classification."""

    category: str
    provider: str
    is_retryable: bool
    retry_after_seconds: Optional[float] = None


def classify_error_info(provider: str, exc: Exception) -> ErrorClassification:
    """Classify an error into a provider-aware category with retryability."""
    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()
    provider = (provider or "unknown").lower()
    retry_after = _extract_retry_after_seconds(message)

    aws_code = aws_error_code(exc)
    if aws_code and aws_code in _AWS_ERROR_CODE_CATEGORIES:
        category = _AWS_ERROR_CODE_CATEGORIES[aws_code]
        if category != "unknown":
            return _classification(category, provider, retry_after)

    if isinstance(exc, TimeoutError) or _matches_any(message, ("timeout", "timed out")):
        return _classification("timeout", provider, retry_after)
    if _matches_any(
        message,
        (
            "could not connect",
            "connection refused",
            "connection reset",
            "endpoint url",
            "network",
            "dns",
        ),
    ):
        return _classification("connectivity", provider, retry_after)
    if _matches_any(
        message,
        ("access denied", "not authorized", "unauthorized", "security token", "credentials"),
    ):
        return _classification("auth", provider, retry_after)
    if _matches_any(
        message, ("syntax error", "parse error", "invalid query", "mismatched input")
    ):
        return _classification("syntax", provider, retry_after)
    if _matches_any(message, ("rate exceeded", "too many requests", "throttl")):
        return _classification("throttling", provider, retry_after)
    if _matches_any(message, ("service unavailable", "temporarily unavailable")):
        return _classification("transient", provider, retry_after)
    if class_name in {"connectionerror", "endpointconnectionerror"}:
        return _classification("connectivity", provider, retry_after)

    return _classification("unknown", provider, retry_after)


def aws_error_code(exc: Exception) -> Optional[str]:
    """Return the AWS error code carried by a botocore ClientError, if any."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    error = response.get("Error") or {}
    code = error.get("Code")
    return str(code) if code else None


def _matches_any(text: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in text for fragment in fragments)


def _classification(
    category: str, provider: str, retry_after: Optional[float]
) -> ErrorClassification:
    return ErrorClassification(
        category=category,
        provider=provider,
        is_retryable=category in RETRYABLE_CATEGORIES,
        retry_after_seconds=retry_after,
    )


def _extract_retry_after_seconds(message: str) -> Optional[float]:
    match = re.search(r"retry after\s+(\d+(?:\.\d+)?)", message)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None
