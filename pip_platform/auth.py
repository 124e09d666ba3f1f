"""Token supplier: resolves and caches the bearer token for PIP requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .errors import AuthError
from .ports import IdentityProvider

logger = logging.getLogger(__name__)

JWT_CREDENTIAL = "jwt"


@dataclass
class IdentityOptions:
    """Token sources, checked in order: static ``jwt`` then ``identity_provider``."""

    jwt: str | None = None
    identity_provider: IdentityProvider | None = None


class TokenSupplier:
    """Two-state token cache: unresolved until the first token is acquired.

    Once resolved the token is kept for the supplier's lifetime; construct a
    new supplier to force re-resolution.
    """

    def __init__(self, identity: IdentityOptions | None = None):
        self.identity = identity or IdentityOptions()
        self._token: str | None = None
        self._lock = asyncio.Lock()

    @property
    def resolved(self) -> bool:
        return self._token is not None

    async def token(self) -> str:
        """Return the cached token, resolving it on first use."""
        if self._token is not None:
            return self._token
        async with self._lock:
            if self._token is None:
                self._token = await self._resolve()
        return self._token

    async def update(self, token: str) -> None:
        """Adopt ``token`` and hand it to the identity delegate, if any."""
        provider = self.identity.identity_provider
        if provider is not None:
            await provider.update(token, {JWT_CREDENTIAL: token})
        async with self._lock:
            self._token = token

    async def _resolve(self) -> str:
        if self.identity.jwt:
            return self.identity.jwt
        provider = self.identity.identity_provider
        if provider is not None:
            identity = await provider.get_identity()
            token = (identity.credentials or {}).get(JWT_CREDENTIAL) if identity else None
            if token:
                logger.debug("Resolved PIP token from identity provider")
                return token
        raise AuthError("Unable to access pip, no valid authentication mechanism!")
