"""Client library for the private information (PIP) backend."""

__version__ = "1.0.0"

from .acceptable import PIPAcceptable, PIPAdminAcceptable, resolve_content
from .admin_client import AdminIdentity, PIPAdminClient, select_version
from .auth import IdentityOptions, TokenSupplier
from .client import PIPClient
from .config import ADMIN_ENDPOINTS, DEFAULT_API_ROOT, USER_ENDPOINTS, ClientOptions, load_settings_from_env
from .errors import (
    AuthError,
    ConfigurationError,
    ContentLoadError,
    FormSubmissionError,
    NoMatchError,
    NotFoundError,
    NoVersionError,
    PIPError,
    TransportError,
)
from .form import PIPForm
from .plugin import PIPPlugin, PluginBundle, PluginConfig
from .ports import Identity, IdentityProvider, PrivateInformationProvider
from .service import PIPService
from .transport import HTTPTransport, PIPResponse

__all__ = [
    "__version__",
    "ADMIN_ENDPOINTS",
    "DEFAULT_API_ROOT",
    "USER_ENDPOINTS",
    "AdminIdentity",
    "AuthError",
    "ClientOptions",
    "ConfigurationError",
    "ContentLoadError",
    "FormSubmissionError",
    "HTTPTransport",
    "Identity",
    "IdentityOptions",
    "IdentityProvider",
    "NoMatchError",
    "NoVersionError",
    "NotFoundError",
    "PIPAcceptable",
    "PIPAdminAcceptable",
    "PIPAdminClient",
    "PIPClient",
    "PIPError",
    "PIPForm",
    "PIPPlugin",
    "PIPResponse",
    "PIPService",
    "PluginBundle",
    "PluginConfig",
    "PrivateInformationProvider",
    "TokenSupplier",
    "TransportError",
    "load_settings_from_env",
    "resolve_content",
    "select_version",
]
