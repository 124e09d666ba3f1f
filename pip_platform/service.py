"""Service facade that injects the current token into every PIP call."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from contracts.v1.schemas import PIPObject, PIPUser

from .acceptable import PIPAcceptable
from .auth import IdentityOptions, TokenSupplier
from .errors import AuthError
from .form import PIPForm
from .ports import PrivateInformationProvider
from .transport import HTTPTransport, PIPResponse

logger = logging.getLogger(__name__)


class PIPService:
    """Single API surface over a ``PrivateInformationProvider``."""

    def __init__(
        self,
        pip: PrivateInformationProvider,
        identity: IdentityOptions | None = None,
        *,
        transport: HTTPTransport | None = None,
    ):
        self.pip = pip
        self.tokens = TokenSupplier(identity)
        self.transport = transport or getattr(pip, "transport", None) or HTTPTransport()

    async def form(self, form_id: str) -> PIPForm:
        return PIPForm(form_id, self.pip, await self.tokens.token())

    async def acceptable(self, acceptable_id: str) -> PIPAcceptable:
        return PIPAcceptable(acceptable_id, self.pip, await self.tokens.token())

    async def authenticate_via_code(self, code: str) -> str:
        """Exchange ``code`` for a token and make it the current token."""
        jwt = await self.pip.validate_code(code)
        await self.tokens.update(jwt)
        return jwt

    async def consume_code(self, code: str, user_id: str) -> None:
        await self.pip.consume_code(code, user_id, await self.tokens.token())

    async def register(self) -> None:
        await self.pip.register(await self.tokens.token())

    async def get_user(self, sub: str) -> PIPUser | None:
        page = await self.pip.get_user(sub, await self.tokens.token())
        if not page.results:
            return None
        return PIPUser.model_validate(page.results[0])

    async def get_user_data(self, data_type: str, include_null_app_user: bool = False) -> PIPObject:
        jwt = await self.tokens.token()
        object_type = await self.pip.get_object_type(data_type, jwt)
        return await self.pip.get_latest_object_for_type(object_type, jwt, include_null_app_user)

    async def put_user_data(self, data_type: str, data: Any, status: str | None = None) -> PIPObject:
        jwt = await self.tokens.token()
        object_type = await self.pip.get_object_type(data_type, jwt)
        return await self.pip.update_object(object_type, data, jwt, status)

    async def edit_user_data(self, existing: PIPObject, data: Any, status: str | None = None) -> PIPObject:
        return await self.pip.edit_object(existing, data, await self.tokens.token(), status)

    async def delete_user_data(self, existing: PIPObject) -> PIPObject:
        return await self.pip.delete_object(existing, await self.tokens.token())

    async def raw(
        self,
        url: str,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        data: bytes | str | None = None,
    ) -> PIPResponse:
        """Call PIP directly with a fully qualified URL.

        Only adds an ``Authorization`` header when one is missing and a token
        can be resolved; the response is returned whatever its status.
        """
        request_headers = dict(headers or {})
        if not any(name.lower() == "authorization" for name in request_headers):
            try:
                jwt = await self.tokens.token()
            except AuthError as e:
                logger.warning("Sending unauthenticated raw PIP request: %s", e)
            else:
                request_headers["Authorization"] = f"Bearer {jwt}"

        body = data.encode("utf-8") if isinstance(data, str) else data
        return await self.transport.send(method, url, headers=request_headers, data=body)
