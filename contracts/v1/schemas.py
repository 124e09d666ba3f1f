"""Pydantic contracts for the v1 private information (PIP) API."""

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

READY_STATUS = "ready"


class _WireModel(BaseModel):
    """Base model that keeps unknown backend fields around for inspection."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


def object_type_key(locator: str) -> str:
    """Reduce an object type locator to its bare key.

    ``https://pip/api/v1/object_types/form-data/`` and ``.../form-data``
    both become ``form-data``; bare keys pass through unchanged.
    """
    return locator.rstrip("/").rsplit("/", 1)[-1]


def acceptance_version_url(record: Mapping[str, Any]) -> str | None:
    """Locator of the version an acceptance record refers to.

    The backend sends either the bare locator or a nested version object;
    the rest of the record is not inspected.
    """
    version = record.get("version")
    if isinstance(version, str):
        return version
    if isinstance(version, Mapping):
        url = version.get("url")
        return url if isinstance(url, str) else None
    return None


class ObjectType(_WireModel):
    url: str
    uuid: str
    slug: str
    name: str = ""
    children: list[str] = Field(default_factory=list)
    parents: list[str] = Field(default_factory=list)
    objects: str

    @field_validator("children", "parents")
    @classmethod
    def _normalize_keys(cls, value: list[str]) -> list[str]:
        return [object_type_key(item) for item in value]


class PIPObject(_WireModel):
    url: str
    uuid: str
    version: int
    app_user: str | None = None
    data: Any = Field(default=None, alias="json")
    status: str | None = None


class AcceptableContent(_WireModel):
    uuid: str
    url: str | None = None
    language_code: str
    display_name: str = ""
    content: str | None = None
    data: Any = None
    status: str | None = None


class AcceptableVersion(_WireModel):
    url: str
    uuid: str
    number: int
    status: str | None = None
    content: list[AcceptableContent] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.status == READY_STATUS


class AcceptanceVersionRef(_WireModel):
    """Version summary embedded in a user's latest acceptance."""

    url: str | None = None
    uuid: str | None = None
    number: int


class AcceptanceRecord(_WireModel):
    url: str | None = None
    uuid: str | None = None
    app_user: str | None = None
    version: AcceptanceVersionRef | str
    content: str | None = None
    created: datetime | None = None

    @property
    def version_url(self) -> str | None:
        """Locator of the accepted version, whichever shape the backend sent."""
        if isinstance(self.version, str):
            return self.version
        return self.version.url


class AcceptableItem(_WireModel):
    url: str
    uuid: str
    name: str = ""
    default_content_language_code: str


class AppUserAcceptable(_WireModel):
    url: str
    uuid: str
    name: str = ""
    latest_version: AcceptableVersion
    latest_acceptance: AcceptanceRecord | None = None


class Page(_WireModel):
    results: list[dict[str, Any]] = Field(default_factory=list)
    next: str | None = None
    previous: str | None = None
    count: int | None = None


class PIPUser(_WireModel):
    url: str | None = None
    uuid: str
    app_user_id: str
    app: str | None = None
    user_type: str | None = None


class FormSchema(_WireModel):
    title: str | None = None
    json_schema: dict[str, Any] = Field(default_factory=dict, alias="schema")
    ui_schema: dict[str, Any] = Field(default_factory=dict, alias="uiSchema")


class FormData(_WireModel):
    data: Any = Field(default_factory=dict)
    extra_data: dict[str, Any] = Field(default_factory=dict, alias="extraData")


class FormResponse(_WireModel):
    title: str | None = None
    json_schema: dict[str, Any] = Field(default_factory=dict, alias="schema")
    ui_schema: dict[str, Any] = Field(default_factory=dict, alias="uiSchema")
    data: Any = Field(default_factory=dict)
    extra_data: dict[str, Any] = Field(default_factory=dict, alias="extraData")
    translations: dict[str, Any] = Field(default_factory=dict)
