"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .defaults import DEFAULT_ACCEPT_LANGUAGE, DEFAULT_USER_AGENT

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
Locale = Literal["en", "zh"]


class PlatformConfig(BaseModel):
    """Per-platform checker settings (YAML section named after the platform)."""

    enabled: bool = Field(
        default=True,
        description="Register a checker for this platform.",
    )
    concurrency_limit: int = Field(
        default=5,
        description="Max simultaneously in-flight checks for this platform.",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Deadline for one check's network interaction (seconds).",
    )
    min_interval_seconds: float = Field(
        default=0.5,
        description="Minimum spacing between outgoing requests (seconds). 0 = off.",
    )

    @field_validator("concurrency_limit")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("concurrency_limit must be >= 1")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v

    @field_validator("min_interval_seconds")
    @classmethod
    def _validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/<platform>).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="pancheck", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )
    locale: Locale = Field(
        default="en",
        description="Language of rendered failure reasons.",
    )

    # HTTP (YAML section: http.*)
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Browser User-Agent presented to providers.",
    )
    http_accept_language: str = Field(
        default=DEFAULT_ACCEPT_LANGUAGE,
        validation_alias=AliasChoices(
            "http_accept_language",
            AliasPath("http", "accept_language"),
        ),
        description="Accept-Language header for provider requests.",
    )
    http_request_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_request_timeout_seconds",
            AliasPath("http", "request_timeout_seconds"),
        ),
        description="Per-request timeout beneath the per-check deadline.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Platforms
    baidu: PlatformConfig = Field(default_factory=PlatformConfig)

    @field_validator("http_request_timeout_seconds")
    @classmethod
    def _validate_request_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_request_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "locale": self.locale,
            "http": {
                "user_agent": self.http_user_agent,
                "accept_language": self.http_accept_language,
                "request_timeout_seconds": self.http_request_timeout_seconds,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "baidu": self.baidu.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read PANCHECK_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - PANCHECK_LOG_LEVEL
    - PANCHECK_HTTP_REQUEST_TIMEOUT_SECONDS
    - PANCHECK_BAIDU_CONCURRENCY_LIMIT
    - PANCHECK_BAIDU_MIN_INTERVAL_SECONDS
    """

    model_config = SettingsConfigDict(
        env_prefix="PANCHECK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None
    locale: Optional[Locale] = None

    http_user_agent: Optional[str] = None
    http_accept_language: Optional[str] = None
    http_request_timeout_seconds: Optional[float] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    baidu_enabled: Optional[bool] = None
    baidu_concurrency_limit: Optional[int] = None
    baidu_timeout_seconds: Optional[float] = None
    baidu_min_interval_seconds: Optional[float] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
