"""Capability ports implemented by PIP backends and identity delegates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from contracts.v1.schemas import (
    AcceptableContent,
    AcceptableVersion,
    AppUserAcceptable,
    ObjectType,
    Page,
    PIPObject,
)


class PrivateInformationProvider(Protocol):
    """Operations a PIP backend offers to an authenticated end user.

    The HTTP ``PIPClient`` implements this; tests substitute in-memory fakes.
    """

    async def validate_code(self, code: str) -> str:
        ...

    async def consume_code(self, code: str, app_user_id: str, jwt: str) -> None:
        ...

    async def register(self, jwt: str) -> None:
        ...

    async def get_user(self, sub: str, jwt: str) -> Page:
        ...

    async def get_object_type(self, key: str, jwt: str) -> ObjectType:
        ...

    async def get_objects_for_type(
        self, object_type: ObjectType | str, jwt: str, version: str | int | None = None
    ) -> list[PIPObject]:
        ...

    async def get_latest_object_for_type(
        self, object_type: ObjectType | str, jwt: str, include_null_app_user: bool = False
    ) -> PIPObject:
        ...

    async def update_object(
        self, object_type: ObjectType, data: Any, jwt: str, status: str | None = None
    ) -> PIPObject:
        ...

    async def edit_object(
        self, existing: PIPObject, data: Any, jwt: str, status: str | None = None
    ) -> PIPObject:
        ...

    async def delete_object(self, existing: PIPObject, jwt: str) -> PIPObject:
        ...

    async def get_acceptable(
        self, acceptable_id: str, jwt: str, languages: list[str] | None = None
    ) -> AppUserAcceptable:
        ...

    async def send_acceptance(
        self,
        acceptable: AppUserAcceptable,
        jwt: str,
        content: AcceptableContent | None = None,
    ) -> Any:
        ...

    async def user_has_accepted(self, version: AcceptableVersion, jwt: str) -> bool:
        ...


@dataclass
class Identity:
    """Identity as held by an external identity provider."""

    identifier: str | None = None
    credentials: dict[str, str] = field(default_factory=dict)


class IdentityProvider(Protocol):
    """External identity delegate scoped to the PIP service."""

    async def get_identity(self) -> Identity:
        """Return the cached identity without re-authenticating."""
        ...

    async def update(self, identifier: str, credentials: dict[str, str]) -> None:
        ...
