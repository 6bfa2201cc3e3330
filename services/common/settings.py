from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


AUTHORIZATION_PATH = "/protocol/openid-connect/auth"
TOKEN_PATH = "/protocol/openid-connect/token"

LOG_LEVELS = frozenset(
    {"CRITICAL", "FATAL", "ERROR", "WARNING", "WARN", "INFO", "DEBUG", "NOTSET"}
)


class ConfigurationError(RuntimeError):
    """Raised when required startup configuration is missing or invalid."""


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise ConfigurationError(f"{name} is not configured")
    return value


@dataclass(frozen=True, slots=True)
class AuthOptions:
    """Identity provider settings used to document the OAuth2 flow."""

    authority: str
    api_scope: str

    @property
    def authorization_url(self) -> str:
        return self.authority + AUTHORIZATION_PATH

    @property
    def token_url(self) -> str:
        return self.authority + TOKEN_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthOptions":
        env = os.environ if environ is None else environ
        return cls(
            authority=_require(env, "AUTH_AUTHORITY"),
            api_scope=_require(env, "AUTH_API_SCOPE"),
        )


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Process-wide settings, built once at startup and passed to consumers."""

    auth: AuthOptions
    swagger_ui_client_id: Optional[str] = None
    service_name: str = "TemplateApp API"
    version: str = "1.0.0"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        level = self.log_level.upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL is invalid: {self.log_level!r}")
        object.__setattr__(self, "log_level", level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Build settings from environment variables.

        ``SWAGGERUI_CLIENTID`` is read but not enforced here; the Swagger UI
        wiring rejects a missing value when it is installed.
        """

        env = os.environ if environ is None else environ
        return cls(
            auth=AuthOptions.from_env(env),
            swagger_ui_client_id=env.get("SWAGGERUI_CLIENTID") or None,
            log_level=env.get("LOG_LEVEL") or "INFO",
        )


__all__ = ["AppSettings", "AuthOptions", "ConfigurationError"]
