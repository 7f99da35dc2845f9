"""Request pipeline setup helpers for FastAPI services.

CORS policy, API version negotiation, JSON serialization defaults and
client-certificate forwarding, each configured once at startup from an
explicit :class:`~servicekit.core.config.Configuration`.
"""

from .core.config import Configuration, ConfigurationError
from .core.parsing import split_delimited
from .services.cert_forwarding import (
    DEFAULT_CERTIFICATE_HEADER,
    BufferPool,
    add_arr_client_cert_forwarding,
    decode_certificate_header,
    get_client_certificate,
)
from .services.cors import CorsPolicy, add_default_cors_policy, build_cors_policy
from .services.json_options import OmitNullJSONResponse, add_controllers_with_default_json_options
from .services.versioning import ApiVersion, ApiVersioningOptions, configure_versioning, get_api_version

__all__ = [
    "ApiVersion",
    "ApiVersioningOptions",
    "BufferPool",
    "Configuration",
    "ConfigurationError",
    "CorsPolicy",
    "DEFAULT_CERTIFICATE_HEADER",
    "OmitNullJSONResponse",
    "add_arr_client_cert_forwarding",
    "add_controllers_with_default_json_options",
    "add_default_cors_policy",
    "build_cors_policy",
    "configure_versioning",
    "decode_certificate_header",
    "get_api_version",
    "get_client_certificate",
    "split_delimited",
]
