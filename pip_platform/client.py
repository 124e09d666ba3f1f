"""HTTP client for the PIP API as seen by an authenticated end user."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from contracts.v1.schemas import (
    AcceptableContent,
    AcceptableVersion,
    AppUserAcceptable,
    ObjectType,
    Page,
    PIPObject,
    acceptance_version_url,
)

from .config import ClientOptions, UrlLocator
from .errors import AuthError, NotFoundError, TransportError
from .pagination import any_result
from .transport import JSON_HEADERS, HTTPTransport, bearer_headers

logger = logging.getLogger(__name__)

LATEST = "latest"


def build_objects_url(base_url: str, version: str | int | None = None, app_user: str | None = None) -> str:
    """Build the instance collection URL for an object type.

    ``version="latest"`` addresses the server-resolved current object, any
    other version becomes an exact ``?version=`` match, and no version lists
    every object.
    """
    if version == LATEST:
        url = f"{base_url}{LATEST}/"
        if app_user:
            url = f"{url}?{urlencode({'app_user': app_user})}"
        return url
    if version is not None and version != "":
        return f"{base_url}?{urlencode({'version': version})}"
    return base_url


def _require_token(jwt: str | None) -> str:
    if not jwt:
        raise AuthError("Unable to access pip, no valid authentication mechanism!")
    return jwt


class PIPClient:
    """User-scoped PIP client; every authenticated call takes the caller's jwt."""

    def __init__(
        self,
        *,
        api_root: str | None = None,
        locator: UrlLocator | None = None,
        transport: HTTPTransport | None = None,
        options: ClientOptions | None = None,
    ):
        self.options = options or ClientOptions(api_root=api_root, locator=locator)
        self.transport = transport or HTTPTransport()

    # ------------------------------------------------------------------
    # Codes and registration
    # ------------------------------------------------------------------

    async def validate_code(self, code: str) -> str:
        """Exchange a one-time code for a jwt."""
        url = self.options.url_for("validateCode")
        body = await self.transport.request_json("POST", url, headers=JSON_HEADERS, payload={"code": code})
        logger.info("Exchanged one-time code for a PIP token")
        return body["jwt"]

    async def consume_code(self, code: str, app_user_id: str, jwt: str) -> None:
        url = self.options.url_for("registerCode")
        await self.transport.request_json(
            "POST",
            url,
            headers=bearer_headers(_require_token(jwt)),
            payload={"app_user_id": app_user_id, "code": code},
        )

    async def register(self, jwt: str) -> None:
        url = self.options.url_for("registerWithoutCode")
        await self.transport.request_json("POST", url, headers=JSON_HEADERS, payload={"jwt": jwt})

    async def get_user(self, sub: str, jwt: str) -> Page:
        url = f"{self.options.url_for('appUser')}?{urlencode({'app_user_id': sub})}"
        body = await self._get(url, jwt)
        return Page.model_validate(body)

    # ------------------------------------------------------------------
    # Object types and objects
    # ------------------------------------------------------------------

    async def get_object_type(self, key: str, jwt: str) -> ObjectType:
        """Fetch an object type; children and parents come back as bare keys."""
        url = f"{self.options.url_for('objectTypes')}{key}/"
        try:
            body = await self._get(url, jwt)
        except NotFoundError:
            raise
        except TransportError as e:
            if e.response is None:
                raise
            raise NotFoundError(
                f"object type {key!r} could not be loaded: {e.detail}",
                status_code=e.status_code,
                response=e.response,
            ) from e
        return ObjectType.model_validate(body)

    async def describe_versions_for_type(
        self,
        type_key: str,
        jwt: str,
        app_user: str | None = None,
        app_user_object_types: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        url = f"{self.options.url_for('objectTypes')}{type_key}/describe_versions/"
        if app_user:
            params = {"app_user": app_user}
            if app_user_object_types:
                params["app_user_object_types"] = ",".join(app_user_object_types)
            url = f"{url}?{urlencode(params, safe=',')}"
        return await self._get(url, jwt)

    async def get_objects_for_type(
        self,
        object_type: ObjectType | str,
        jwt: str,
        version: str | int | None = None,
    ) -> list[PIPObject]:
        url = build_objects_url(self._objects_base(object_type), version)
        body = await self._get(url, jwt)
        if version == LATEST and isinstance(body, dict):
            body = [body]
        return [PIPObject.model_validate(item) for item in body or []]

    async def get_latest_object_for_type(
        self,
        object_type: ObjectType | str,
        jwt: str,
        include_null_app_user: bool = False,
    ) -> PIPObject:
        url = build_objects_url(self._objects_base(object_type), LATEST)
        if include_null_app_user:
            url = f"{url}?include_null_app_user=1"
        body = await self._get(url, jwt)
        return PIPObject.model_validate(body)

    async def update_object(
        self,
        object_type: ObjectType,
        data: Any,
        jwt: str,
        status: str | None = None,
    ) -> PIPObject:
        """Store ``data`` as a new object version under ``object_type``."""
        body = await self.transport.request_json(
            "POST",
            object_type.objects,
            headers=bearer_headers(_require_token(jwt)),
            payload=_object_payload(data, status),
        )
        return PIPObject.model_validate(body)

    async def edit_object(
        self,
        existing: PIPObject,
        data: Any,
        jwt: str,
        status: str | None = None,
    ) -> PIPObject:
        """Replace ``existing`` in place at its own locator."""
        body = await self.transport.request_json(
            "PUT",
            existing.url,
            headers=bearer_headers(_require_token(jwt)),
            payload=_object_payload(data, status),
        )
        return PIPObject.model_validate(body)

    async def delete_object(self, existing: PIPObject, jwt: str) -> PIPObject:
        body = await self.transport.request_json(
            "DELETE",
            existing.url,
            headers=bearer_headers(_require_token(jwt)),
        )
        if not body:
            return existing
        return PIPObject.model_validate(body)

    # ------------------------------------------------------------------
    # Acceptables
    # ------------------------------------------------------------------

    async def get_acceptable(
        self,
        acceptable_id: str,
        jwt: str,
        languages: list[str] | None = None,
    ) -> AppUserAcceptable:
        """Fetch the user's view of an acceptable, localized server-side."""
        url = f"{self.options.url_for('acceptables')}{acceptable_id}/"
        if languages:
            url = f"{url}?{urlencode({'language': ','.join(languages)}, safe=',')}"
        body = await self._get(url, jwt)
        return AppUserAcceptable.model_validate(body)

    async def send_acceptance(
        self,
        acceptable: AppUserAcceptable,
        jwt: str,
        content: AcceptableContent | None = None,
    ) -> Any:
        payload = {"version": acceptable.latest_version.uuid}
        if content is not None:
            payload["content"] = content.uuid
        body = await self.transport.request_json(
            "POST",
            self.options.url_for("acceptances"),
            headers=bearer_headers(_require_token(jwt)),
            payload=payload,
        )
        logger.info(
            "Recorded acceptance of %s version %d",
            acceptable.uuid,
            acceptable.latest_version.number,
        )
        return body

    async def user_has_accepted(self, version: AcceptableVersion, jwt: str) -> bool:
        """Walk the caller's acceptance history looking for a record of ``version``."""
        _require_token(jwt)

        async def _get_page(url: str) -> Any:
            return await self._get(url, jwt)

        def _matches(result: dict[str, Any]) -> bool:
            return acceptance_version_url(result) == version.url

        return await any_result(_get_page, self.options.url_for("acceptances"), _matches)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get(self, url: str, jwt: str) -> Any:
        return await self.transport.request_json("GET", url, headers=bearer_headers(_require_token(jwt)))

    def _objects_base(self, object_type: ObjectType | str) -> str:
        if isinstance(object_type, ObjectType):
            return object_type.objects
        return f"{self.options.url_for('objectTypes')}{object_type}/objects/"


def _object_payload(data: Any, status: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"json": data}
    if status is not None:
        payload["status"] = status
    return payload
