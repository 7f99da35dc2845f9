import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI

from .core.config import Configuration
from .core.middleware import global_exception_handler, log_requests
from .services.cert_forwarding import (
    DEFAULT_CERTIFICATE_HEADER,
    add_arr_client_cert_forwarding,
    get_client_certificate,
)
from .services.cors import add_default_cors_policy
from .services.json_options import add_controllers_with_default_json_options
from .services.versioning import ApiVersion, configure_versioning, get_api_version


logger = logging.getLogger(__name__)

SIGNALR_KEY = "CorsPolicy:SignalR"
CERTIFICATE_HEADER_KEY = "CertificateForwarding:Header"
CERTIFICATE_STRICT_KEY = "CertificateForwarding:Strict"


def create_app(configuration: Optional[Configuration] = None, *, signalr: Optional[bool] = None) -> FastAPI:
    """Build the API with the default request pipeline.

    JSON defaults must be applied before any route is registered.
    """
    if configuration is None:
        configuration = Configuration.from_env()
    if signalr is None:
        signalr = configuration.get_bool(SIGNALR_KEY, False)

    app = FastAPI(title="Service API")

    add_controllers_with_default_json_options(app)

    # Registered innermost first; CORS must wrap everything else
    app.middleware("http")(log_requests)
    add_arr_client_cert_forwarding(
        app,
        configuration.get_value(CERTIFICATE_HEADER_KEY) or DEFAULT_CERTIFICATE_HEADER,
        strict=configuration.get_bool(CERTIFICATE_STRICT_KEY, False),
    )
    configure_versioning(app)
    add_default_cors_policy(app, configuration, signalr=signalr)

    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/")
    async def root(
        api_version: ApiVersion = Depends(get_api_version),
        certificate=Depends(get_client_certificate),
    ):
        """Return basic API information for the negotiated version."""
        return {
            "service": "Service API",
            "api_version": str(api_version),
            "client_certificate": certificate.subject.rfc4514_string() if certificate is not None else None,
            "timestamp": datetime.now().isoformat(),
        }

    logger.debug("Application pipeline configured")
    return app
