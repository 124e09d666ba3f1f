"""v1 wire contracts for the private information (PIP) API."""

__version__ = "1.0.0"

from .schemas import (
    READY_STATUS,
    AcceptableContent,
    AcceptableItem,
    AcceptableVersion,
    AcceptanceRecord,
    AcceptanceVersionRef,
    AppUserAcceptable,
    FormData,
    FormResponse,
    FormSchema,
    ObjectType,
    Page,
    PIPObject,
    PIPUser,
    acceptance_version_url,
    object_type_key,
)

__all__ = [
    "__version__",
    "READY_STATUS",
    "AcceptableContent",
    "AcceptableItem",
    "AcceptableVersion",
    "AcceptanceRecord",
    "AcceptanceVersionRef",
    "AppUserAcceptable",
    "FormData",
    "FormResponse",
    "FormSchema",
    "ObjectType",
    "Page",
    "PIPObject",
    "PIPUser",
    "acceptance_version_url",
    "object_type_key",
]
