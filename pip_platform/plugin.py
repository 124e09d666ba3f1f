"""Host application plugin that wires a PIP client and service together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Protocol

from .auth import IdentityOptions
from .client import PIPClient
from .config import SERVICE_NAME, UrlLocator, load_settings_from_env
from .errors import ConfigurationError
from .ports import IdentityProvider
from .service import PIPService
from .transport import HTTPTransport

logger = logging.getLogger(__name__)


class HostApp(Protocol):
    """The parts of a host application the plugin relies on."""

    async def locator(self) -> UrlLocator:
        ...

    async def configuration(self, name: str) -> dict[str, Any]:
        ...

    def identity_for_service(self, service: str) -> IdentityProvider:
        ...


@dataclass(frozen=True)
class PluginConfig:
    api_root: str | None = None
    api_root_config_name: str | None = None
    use_als: bool = False
    jwt: str | None = None
    use_identity: bool = True


@dataclass
class PluginBundle:
    client: PIPClient
    service: PIPService


class PIPPlugin:
    key = SERVICE_NAME

    def __init__(self, config: PluginConfig, *, transport: HTTPTransport | None = None):
        self.config = config
        self.transport = transport
        self._api_root: str | None = None
        self._api_root_loaded = False

    @classmethod
    def configure(cls, customise: Callable[[PluginConfig], PluginConfig]) -> "PIPPlugin":
        return cls(customise(PluginConfig()))

    @classmethod
    def from_env(cls) -> "PIPPlugin":
        """Build a plugin from ``PIP_*`` environment variables."""
        settings = load_settings_from_env()
        transport = HTTPTransport(
            timeout_seconds=settings.timeout_seconds,
            retry_attempts=settings.retry_attempts,
        )
        config = PluginConfig(api_root=settings.api_root, jwt=settings.jwt, use_identity=False)
        return cls(config, transport=transport)

    async def use(self, app: HostApp | None = None) -> PluginBundle:
        config = self.config
        locator: UrlLocator | None = None

        if config.use_als:
            if app is None:
                raise ConfigurationError("use_als requires a host app providing a locator")
            locator = await app.locator()
        elif config.api_root_config_name:
            if app is None:
                raise ConfigurationError("api_root_config_name requires a host app providing configuration")
            # Loaded once per plugin instance.
            if not self._api_root_loaded:
                values = await app.configuration(config.api_root_config_name)
                self._api_root = values.get(config.api_root_config_name)
                self._api_root_loaded = True
            if self._api_root:
                config = replace(config, api_root=self._api_root)

        identity = IdentityOptions(jwt=config.jwt)
        if config.use_identity and not config.jwt and app is not None:
            identity.identity_provider = app.identity_for_service(SERVICE_NAME)

        client = PIPClient(api_root=config.api_root, locator=locator, transport=self.transport)
        service = PIPService(client, identity)
        logger.debug("PIP plugin ready (locator=%s, api_root=%s)", locator is not None, config.api_root)
        return PluginBundle(client=client, service=service)
