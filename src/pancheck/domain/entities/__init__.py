from .check import (
    CheckFailure,
    CheckResult,
    FailureKind,
    Platform,
    ProviderResponse,
    ShareIdentifier,
    ShareTarget,
)

__all__ = [
    "CheckFailure",
    "CheckResult",
    "FailureKind",
    "Platform",
    "ProviderResponse",
    "ShareIdentifier",
    "ShareTarget",
]
