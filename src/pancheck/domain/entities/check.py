"""Domain entities for share-link checks.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Platform(str, Enum):
    """Cloud-storage platforms with a checker implementation."""

    BAIDU = "baidu"


class FailureKind(str, Enum):
    """Stable classification of a failed check."""

    MALFORMED_INPUT = "malformed_input"
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    VERIFICATION_FAILED = "verification_failed"
    MALFORMED_VERIFICATION_RESPONSE = "malformed_verification_response"
    NETWORK_FAILURE = "network_failure"
    UNPARSABLE_RESPONSE = "unparsable_response"
    PROVIDER_REJECTED = "provider_rejected"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check of one share link.

    ``provider_code`` keeps the raw provider code whenever the provider
    answered with one, so dead links stay diagnosable after rendering.
    """

    valid: bool
    failure_reason: str = ""
    duration_ms: int = 0
    is_rate_limited: bool = False
    failure_kind: FailureKind | None = None
    provider_code: int | None = None

    @classmethod
    def ok(cls, duration_ms: int = 0) -> CheckResult:
        return cls(valid=True, duration_ms=duration_ms)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        reason: str,
        *,
        duration_ms: int = 0,
        is_rate_limited: bool = False,
        provider_code: int | None = None,
    ) -> CheckResult:
        return cls(
            valid=False,
            failure_reason=reason,
            duration_ms=duration_ms,
            is_rate_limited=is_rate_limited,
            failure_kind=kind,
            provider_code=provider_code,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "valid": self.valid,
            "failure_reason": self.failure_reason,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "provider_code": self.provider_code,
            "duration_ms": self.duration_ms,
            "is_rate_limited": self.is_rate_limited,
        }


@dataclass(frozen=True)
class ShareIdentifier:
    """Share identifier as embedded in the URL plus its API-facing short form."""

    full_id: str
    short_id: str


@dataclass(frozen=True)
class ShareTarget:
    """Everything a checker needs to probe one share, derived from raw text."""

    url: str  # normalized share URL, also sent as Referer
    identifier: ShareIdentifier
    password: str = ""  # extraction code; empty for public shares


@dataclass(frozen=True)
class ProviderResponse:
    """Provider answer reduced to what classification needs.

    ``code == 0`` means success; any other value is a provider-defined
    failure class. ``extra`` holds the remaining payload fields untouched.
    """

    code: int
    message: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.code == 0


class CheckFailure(Exception):
    """Raised by pipeline stages; converted into a ``CheckResult`` by the checker."""

    def __init__(
        self,
        kind: FailureKind,
        reason: str,
        *,
        provider_code: int | None = None,
        rate_limited: bool = False,
    ) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason
        self.provider_code = provider_code
        self.rate_limited = rate_limited

    def to_result(self, duration_ms: int = 0) -> CheckResult:
        return CheckResult.failed(
            self.kind,
            self.reason,
            duration_ms=duration_ms,
            is_rate_limited=self.rate_limited,
            provider_code=self.provider_code,
        )
