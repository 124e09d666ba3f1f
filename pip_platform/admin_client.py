"""HTTP client for PIP administration, authenticated by jwt or API key."""

from __future__ import annotations

import json
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

from contracts.v1.schemas import (
    READY_STATUS,
    AcceptableContent,
    AcceptableItem,
    AcceptableVersion,
    ObjectType,
    PIPObject,
    acceptance_version_url,
)

from .client import LATEST, build_objects_url
from .config import ADMIN_ENDPOINTS, DEFAULT_API_ROOT, ClientOptions, load_settings_from_env
from .errors import AuthError, ContentLoadError, TransportError
from .pagination import any_result
from .transport import JSON_HEADERS, HTTPTransport

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


@dataclass(frozen=True)
class AdminIdentity:
    jwt: str | None = None
    api_key: str | None = None


def select_version(versions: list[dict[str, Any]], only_ready: bool) -> dict[str, Any] | None:
    """Pick the newest applicable version from a newest-first listing.

    Returns ``None`` when no version applies.
    """
    for version in versions:
        if not only_ready or version.get("status") == READY_STATUS:
            return version
    return None


def _results(body: Any) -> list[dict[str, Any]]:
    """Unwrap a paginated envelope; plain lists pass through."""
    if isinstance(body, dict):
        return body.get("results") or []
    return body or []


def generate_code(length: int = CODE_LENGTH) -> str:
    """Random upper-case alphanumeric registration code."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class PIPAdminClient:
    """Admin-scoped PIP client bound to a single identity."""

    def __init__(
        self,
        identity: AdminIdentity,
        *,
        api_root: str = DEFAULT_API_ROOT,
        endpoints: Mapping[str, str] = ADMIN_ENDPOINTS,
        transport: HTTPTransport | None = None,
    ):
        self.identity = identity
        self.options = ClientOptions(api_root=api_root, endpoints=endpoints)
        self.transport = transport or HTTPTransport()

    @classmethod
    def from_env(cls) -> "PIPAdminClient":
        """Build an admin client from ``PIP_*`` environment variables."""
        settings = load_settings_from_env()
        transport = HTTPTransport(
            timeout_seconds=settings.timeout_seconds,
            retry_attempts=settings.retry_attempts,
        )
        return cls(
            AdminIdentity(jwt=settings.jwt, api_key=settings.api_key),
            api_root=settings.api_root or DEFAULT_API_ROOT,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Apps, users and codes
    # ------------------------------------------------------------------

    async def get_app(self, app_token: str) -> dict[str, Any]:
        return await self._request("GET", f"{self.options.url_for('app')}{app_token}/")

    async def get_app_user(self, app_user_id: str) -> dict[str, Any]:
        url = f"{self.options.url_for('users')}?{urlencode({'app_user_id': app_user_id})}"
        return await self._request("GET", url)

    async def create_app_user(
        self,
        app_uuid: str,
        app_user_id: str,
        user_type: str | None = None,
        code: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            self.options.url_for("users"),
            {
                "app": app_uuid,
                "app_user_id": app_user_id,
                "user_type": user_type or "",
                "code": code or "",
            },
        )

    async def create_code_for_app_user(self, user_id: str) -> dict[str, Any]:
        """Issue a fresh registration code for ``user_id``."""
        code = generate_code()
        body = await self._request("POST", self.options.url_for("code"), {"app_user": user_id, "code": code})
        return body if isinstance(body, dict) else {"app_user": user_id, "code": code}

    # ------------------------------------------------------------------
    # Object types and objects
    # ------------------------------------------------------------------

    async def list_object_types(self) -> list[ObjectType]:
        body = await self._request("GET", self.options.url_for("objectTypes"))
        return [ObjectType.model_validate(item) for item in _results(body)]

    async def get_object_type(self, key: str) -> ObjectType:
        body = await self._request("GET", f"{self.options.url_for('objectTypes')}{key}/")
        return ObjectType.model_validate(body)

    async def create_object_type(
        self,
        name: str,
        app: str,
        parents: list[str] | None = None,
        children: list[str] | None = None,
    ) -> ObjectType:
        body = await self._request(
            "POST",
            self.options.url_for("objectTypes"),
            {"name": name, "app": app, "children": children or [], "parents": parents or []},
        )
        return ObjectType.model_validate(body)

    async def get_objects_for_type(
        self,
        object_type: ObjectType | str,
        version: str | int | None = None,
        app_user: str | None = None,
    ) -> list[PIPObject]:
        url = build_objects_url(self._objects_base(object_type), version, app_user)
        body = await self._request("GET", url)
        if isinstance(body, dict):
            body = [body]
        return [PIPObject.model_validate(item) for item in body or []]

    async def describe_versions_for_type(
        self,
        type_key: str,
        app_user: str | None = None,
        app_user_object_types: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        url = f"{self.options.url_for('objectTypes')}{type_key}/describe_versions/"
        if app_user:
            params = {"app_user": app_user}
            if app_user_object_types:
                params["app_user_object_types"] = ",".join(app_user_object_types)
            url = f"{url}?{urlencode(params, safe=',')}"
        return await self._request("GET", url)

    async def get_latest_objects_for_users(
        self,
        object_type: ObjectType | str,
        app_users: list[str] | None,
    ) -> list[PIPObject]:
        base = self._objects_base(object_type)
        if app_users and len(app_users) == 1:
            url = build_objects_url(base, LATEST, app_users[0])
        elif app_users:
            url = f"{build_objects_url(base, LATEST)}?{urlencode({'app_users': json.dumps(app_users)})}"
        else:
            url = build_objects_url(base, LATEST)
        body = await self._request("GET", url)
        if isinstance(body, dict):
            body = [body]
        return [PIPObject.model_validate(item) for item in body or []]

    async def create_object(
        self,
        object_type: ObjectType | str,
        data: Any,
        app_user: str | None = None,
    ) -> PIPObject:
        body = await self._request(
            "POST",
            self._objects_base(object_type),
            {"app_user": app_user or None, "json": data},
        )
        return PIPObject.model_validate(body)

    # ------------------------------------------------------------------
    # Acceptables
    # ------------------------------------------------------------------

    async def get_acceptable_item(self, acceptable_id: str) -> AcceptableItem:
        body = await self._request("GET", f"{self.options.url_for('acceptables')}{acceptable_id}/")
        return AcceptableItem.model_validate(body)

    async def get_acceptable(self, acceptable_id: str, only_ready: bool = False) -> AcceptableVersion | None:
        """Resolve the newest (optionally ready-only) version with its content.

        Returns ``None`` when the acceptable has no applicable version yet.
        """
        url = f"{self.options.url_for('acceptables')}{acceptable_id}/versions/"
        body = await self._request("GET", url)
        selected = select_version(_results(body), only_ready)
        if selected is None:
            logger.debug("Acceptable %s has no applicable version (only_ready=%s)", acceptable_id, only_ready)
            return None

        version = dict(selected)
        content_url = version.pop("content", None)
        version["content"] = await self._load_content(content_url) if isinstance(content_url, str) else content_url or []
        return AcceptableVersion.model_validate(version)

    async def current_user_has_accepted(self, version: AcceptableVersion) -> bool:
        """Walk the acceptance history looking for a record of ``version``."""

        def _matches(result: dict[str, Any]) -> bool:
            return acceptance_version_url(result) == version.url

        return await any_result(self._get_page, self.options.url_for("acceptances"), _matches)

    async def send_acceptance(
        self,
        version: AcceptableVersion,
        content: AcceptableContent | None = None,
    ) -> Any:
        payload = {"version": version.uuid}
        if content is not None:
            payload["content"] = content.uuid
        body = await self._request("POST", self.options.url_for("acceptances"), payload)
        logger.info("Recorded acceptance of version %s (number %d)", version.uuid, version.number)
        return body

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_content(self, url: str) -> list[AcceptableContent]:
        try:
            body = await self._request("GET", url)
        except TransportError as e:
            raise ContentLoadError(f"Unable to load acceptable content from {url}: {e}") from e
        return [AcceptableContent.model_validate(item) for item in _results(body)]

    async def _get_page(self, url: str) -> Any:
        return await self._request("GET", url)

    async def _request(self, method: str, url: str, payload: Any = None) -> Any:
        return await self.transport.request_json(method, url, headers=self._headers(), payload=payload)

    def _headers(self) -> dict[str, str]:
        if self.identity.jwt:
            auth = f"Bearer {self.identity.jwt}"
        elif self.identity.api_key:
            auth = f"Token {self.identity.api_key}"
        else:
            raise AuthError("Unable to access pip admin, no jwt or api key configured")
        return {"Authorization": auth, **JSON_HEADERS}

    def _objects_base(self, object_type: ObjectType | str) -> str:
        if isinstance(object_type, ObjectType):
            return object_type.objects
        return f"{self.options.url_for('objectTypes')}{object_type}/objects/"
