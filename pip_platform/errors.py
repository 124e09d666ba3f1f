"""Exception hierarchy for PIP client failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transport import PIPResponse


class PIPError(Exception):
    """Base exception for PIP client failures."""


class ConfigurationError(PIPError):
    """Raised when a client cannot resolve where to send a request."""


class AuthError(PIPError):
    """Raised when no valid authentication mechanism is available."""


class TransportError(PIPError):
    """Raised for non-success HTTP responses or connection failures.

    ``response`` holds the original ``PIPResponse`` for inspection, or
    ``None`` when the request never produced one.
    """

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        response: PIPResponse | None = None,
    ):
        prefix = f"PIP API error {status_code}" if status_code is not None else "PIP API error"
        super().__init__(f"{prefix}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.response = response


class NotFoundError(TransportError):
    """Raised when the backend reports the requested resource is missing."""


class ContentLoadError(PIPError):
    """Raised when a selected acceptable version's content cannot be loaded."""


class NoMatchError(PIPError):
    """Raised when no content variant matches the requested languages."""


class NoVersionError(PIPError):
    """Raised when an acceptable has no applicable version to act on."""


class FormSubmissionError(PIPError):
    """Raised when form data cannot be submitted."""
