"""
Configuration for PIP clients: endpoint tables, API roots and env settings.
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Protocol

from .errors import ConfigurationError

SERVICE_NAME = "pip"

DEFAULT_API_ROOT = "https://pip.liquid-state.com"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_ATTEMPTS = 1

# Endpoint paths used when the client is given an API root
USER_ENDPOINTS: Mapping[str, str] = MappingProxyType({
    "registerWithoutCode": "/api/v1/users/",
    "validateCode":        "/api/v1/codes/exchange/",
    "registerCode":        "/api/v1/codes/register/",
    "objectTypes":         "/api/v1/object_types/",
    "acceptables":         "/api/v1/acceptables/",
    "acceptances":         "/api/v1/acceptances/",
    "appUser":             "/api/admin/v1/users/",
})

ADMIN_ENDPOINTS: Mapping[str, str] = MappingProxyType({
    "validateCode": "/api/v1/codes/exchange/",
    "registerCode": "/api/v1/codes/register/",
    "objectTypes":  "/api/v1/object_types/",
    "acceptables":  "/api/v1/acceptables/",
    "acceptances":  "/api/v1/acceptances/",
    "users":        "/api/admin/v1/users/",
    "app":          "/api/admin/v1/apps/",
    "code":         "/api/admin/v1/codes/",
})

ENV_API_ROOT = "PIP_API_ROOT"
ENV_JWT = "PIP_JWT"
ENV_API_KEY = "PIP_API_KEY"
ENV_TIMEOUT_SECONDS = "PIP_TIMEOUT_SECONDS"
ENV_RETRY_ATTEMPTS = "PIP_RETRY_ATTEMPTS"


class UrlLocator(Protocol):
    """Service locator that knows the full URL of every PIP endpoint."""

    def get_url(self, service: str, endpoint: str) -> str:
        ...


def normalize_api_root(api_root: str) -> str:
    return api_root.rstrip("/")


@dataclass(frozen=True)
class ClientOptions:
    """Where a client sends its requests.

    Either ``api_root`` or ``locator`` must be supplied; the locator wins
    when both are present.
    """

    api_root: str | None = None
    locator: UrlLocator | None = None
    endpoints: Mapping[str, str] = field(default_factory=lambda: USER_ENDPOINTS)

    def __post_init__(self):
        if not self.api_root and self.locator is None:
            raise ConfigurationError(
                "You must provide either an api_root or a locator to create a pip client"
            )
        if self.api_root:
            object.__setattr__(self, "api_root", normalize_api_root(self.api_root))

    def url_for(self, name: str) -> str:
        """Resolve an endpoint name to its absolute URL."""
        result = None
        if self.locator is not None:
            result = self.locator.get_url(SERVICE_NAME, name)
        elif name in self.endpoints:
            result = f"{self.api_root}{self.endpoints[name]}"
        if not result:
            raise ConfigurationError(f"Unable to get url for pip client, endpoint: {name}")
        return result


@dataclass(frozen=True)
class Settings:
    """Settings resolved from the process environment."""

    api_root: str | None = None
    jwt: str | None = None
    api_key: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS


def _str_env(name: str) -> str | None:
    raw = os.environ.get(name, "").strip()
    return raw or None


def _to_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _to_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings_from_env() -> Settings:
    """Read ``PIP_*`` environment variables into a ``Settings`` value."""
    api_root = _str_env(ENV_API_ROOT)
    return Settings(
        api_root=normalize_api_root(api_root) if api_root else None,
        jwt=_str_env(ENV_JWT),
        api_key=_str_env(ENV_API_KEY),
        timeout_seconds=_to_float_env(ENV_TIMEOUT_SECONDS, DEFAULT_TIMEOUT_SECONDS),
        retry_attempts=_to_int_env(ENV_RETRY_ATTEMPTS, DEFAULT_RETRY_ATTEMPTS),
    )
