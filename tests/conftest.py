"""
Shared fixtures for PIP client tests.
"""

import io
import itertools
import json
from typing import Any
from unittest.mock import AsyncMock
from urllib import error

import pytest

from contracts.v1.schemas import ObjectType, PIPObject
from pip_platform.errors import NotFoundError
from pip_platform.transport import PIPResponse

API_ROOT = "http://pip.local"


class _FakeHTTPResponse:
    def __init__(self, payload: Any, status: int = 200):
        self.status = status
        self.headers = {"Content-Type": "application/json"}
        self._raw = json.dumps(payload).encode("utf-8") if payload is not None else b""

    def read(self):
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakePIPServer:
    """Stand-in for ``urllib.request.urlopen`` that routes by method and URL.

    Unrouted requests answer 404. Every request is recorded in ``requests``
    as ``{"method", "url", "headers", "json"}``.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[dict[str, Any]] = []

    def add(self, method: str, url: str, payload: Any = None, status: int = 200) -> None:
        self.routes[(method, url)] = (status, payload)

    def calls(self, method: str, url: str) -> list[dict[str, Any]]:
        return [r for r in self.requests if r["method"] == method and r["url"] == url]

    def __call__(self, req, timeout=0):
        method = req.get_method()
        url = req.full_url
        self.requests.append(
            {
                "method": method,
                "url": url,
                "headers": {k.lower(): v for k, v in req.header_items()},
                "json": json.loads(req.data) if req.data else None,
            }
        )
        status, payload = self.routes.get((method, url), (404, {"detail": "Not found."}))
        if status >= 400:
            raise error.HTTPError(
                url=url,
                code=status,
                msg="Error",
                hdrs=None,
                fp=io.BytesIO(json.dumps(payload).encode("utf-8")),
            )
        return _FakeHTTPResponse(payload, status)


@pytest.fixture
def pip_server(monkeypatch):
    """Patch ``urlopen`` with a routable fake PIP backend."""
    server = FakePIPServer()
    monkeypatch.setattr("urllib.request.urlopen", server)
    return server


def make_object_type(slug: str, children: list[str] | None = None, root: str = API_ROOT) -> dict:
    """Object type payload as the backend sends it (children as locators)."""
    base = f"{root}/api/v1/object_types/"
    return {
        "url": f"{base}{slug}/",
        "uuid": f"uuid-{slug}",
        "slug": slug,
        "name": slug.replace("-", " ").title(),
        "children": [f"{base}{child}/" for child in children or []],
        "parents": [],
        "objects": f"{base}{slug}/objects/",
    }


def make_object(slug: str, data: Any, version: int = 1, app_user: str | None = "user-1") -> dict:
    return {
        "url": f"{API_ROOT}/api/v1/objects/{slug}-{version}/",
        "uuid": f"obj-{slug}-{version}",
        "version": version,
        "app_user": app_user,
        "json": data,
    }


class InMemoryPIP:
    """In-memory ``PrivateInformationProvider`` keyed by object type slug."""

    def __init__(self, types: dict[str, list[str]] | None = None):
        self.types = {
            slug: ObjectType.model_validate(make_object_type(slug, children))
            for slug, children in (types or {}).items()
        }
        self.objects: dict[str, list[PIPObject]] = {}
        self._ids = itertools.count(1)
        self.validate_code = AsyncMock(return_value="jwt-from-code")
        self.consume_code = AsyncMock(return_value=None)
        self.register = AsyncMock(return_value=None)
        self.get_user = AsyncMock()
        self.get_acceptable = AsyncMock()
        self.send_acceptance = AsyncMock(return_value={})
        self.user_has_accepted = AsyncMock(return_value=False)
        self.seen_tokens: list[str] = []

    async def get_object_type(self, key, jwt):
        self.seen_tokens.append(jwt)
        if key not in self.types:
            raise NotFoundError(f"object type {key!r} not found", status_code=404)
        return self.types[key]

    async def get_objects_for_type(self, object_type, jwt, version=None):
        slug = object_type.slug if isinstance(object_type, ObjectType) else object_type
        return list(self.objects.get(slug, []))

    async def get_latest_object_for_type(self, object_type, jwt, include_null_app_user=False):
        self.seen_tokens.append(jwt)
        slug = object_type.slug if isinstance(object_type, ObjectType) else object_type
        stored = self.objects.get(slug)
        if not stored:
            raise NotFoundError(f"no objects for {slug!r}", status_code=404)
        return max(stored, key=lambda obj: obj.version)

    async def update_object(self, object_type, data, jwt, status=None):
        self.seen_tokens.append(jwt)
        stored = self.objects.setdefault(object_type.slug, [])
        obj = PIPObject(
            url=f"{object_type.objects}{next(self._ids)}/",
            uuid=f"obj-{object_type.slug}-{len(stored) + 1}",
            version=len(stored) + 1,
            app_user="user-1",
            data=data,
            status=status,
        )
        stored.append(obj)
        return obj

    async def edit_object(self, existing, data, jwt, status=None):
        return existing.model_copy(update={"data": data, "status": status})

    async def delete_object(self, existing, jwt):
        return existing


@pytest.fixture
def in_memory_pip():
    """Factory for an ``InMemoryPIP`` seeded with ``{slug: [child slugs]}``."""
    return InMemoryPIP


@pytest.fixture
def fake_transport():
    """Transport double whose ``send`` returns a canned 200 response."""
    transport = AsyncMock()
    transport.send = AsyncMock(return_value=PIPResponse(status=200, url="http://raw", body=b"{}"))
    return transport


@pytest.fixture
def api_root():
    return API_ROOT


@pytest.fixture
def object_type_payload():
    """Factory for backend object type payloads; see ``make_object_type``."""
    return make_object_type


@pytest.fixture
def object_payload():
    """Factory for backend object payloads; see ``make_object``."""
    return make_object
