import logging
from dataclasses import dataclass, field
from typing import Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.config import Configuration, ConfigurationError
from ..core.parsing import split_delimited


logger = logging.getLogger(__name__)

ORIGINS_KEY = "CorsPolicy:Origins"
METHODS_KEY = "CorsPolicy:Methods"

ORIGINS_DELIMITER = ";"
METHODS_DELIMITER = ","

WILDCARD = "*"


@dataclass(frozen=True)
class CorsPolicy:
    """Default cross-origin policy for every incoming request.

    Empty ``origins`` or ``methods`` mean "allow any".
    """

    origins: Tuple[str, ...] = field(default_factory=tuple)
    methods: Tuple[str, ...] = field(default_factory=tuple)
    allow_credentials: bool = False
    allow_any_header: bool = True

    @property
    def allow_any_origin(self) -> bool:
        return not self.origins

    @property
    def allow_any_method(self) -> bool:
        return not self.methods

    def is_origin_allowed(self, origin: str) -> bool:
        return self.allow_any_origin or origin in self.origins

    def middleware_options(self) -> dict:
        return {
            "allow_origins": list(self.origins) or [WILDCARD],
            "allow_methods": list(self.methods) or [WILDCARD],
            "allow_headers": [WILDCARD],
            "allow_credentials": self.allow_credentials,
        }


def build_cors_policy(configuration: Configuration, signalr: bool = False) -> CorsPolicy:
    """Build the default CORS policy from ``CorsPolicy:*`` configuration.

    Credentialed requests (``signalr=True``) require an explicit origin list;
    browsers refuse ``Access-Control-Allow-Origin: *`` together with
    credentials, so that combination fails here rather than per request.
    """
    origins = split_delimited(configuration.get_value(ORIGINS_KEY), ORIGINS_DELIMITER)
    methods = split_delimited(configuration.get_value(METHODS_KEY), METHODS_DELIMITER)

    origins_wildcard = WILDCARD in origins
    if origins_wildcard:
        origins = []

    if signalr and not origins:
        raise ConfigurationError(
            f"{ORIGINS_KEY} must list explicit origins when credentials are allowed"
        )

    if origins_wildcard:
        logger.warning("CorsPolicy Origins contains '*', allowing any origin (insecure!)")
    elif not origins:
        logger.warning("CorsPolicy Origins was not configured, allowing any origin (insecure!)")

    if WILDCARD in methods:
        methods = []
        logger.warning("CorsPolicy Methods contains '*', allowing any method (insecure!)")
    elif not methods:
        logger.warning("CorsPolicy Methods was not configured, allowing any method (insecure!)")

    return CorsPolicy(
        origins=tuple(origins),
        methods=tuple(method.upper() for method in methods),
        allow_credentials=signalr,
    )


def add_default_cors_policy(app: FastAPI, configuration: Configuration, signalr: bool = False) -> CorsPolicy:
    if getattr(app.state, "cors_policy", None) is not None:
        raise ConfigurationError("A default CORS policy is already registered")

    policy = build_cors_policy(configuration, signalr=signalr)
    app.add_middleware(CORSMiddleware, **policy.middleware_options())
    app.state.cors_policy = policy
    return policy
