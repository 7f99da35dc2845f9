import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)

API_VERSION_HEADER = "api-version"

# major[.minor] only; status suffixes ("1.0-beta") and date group
# versions ("2024-01-01") are rejected
_VERSION_PATTERN = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, order=True)
class ApiVersion:
    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: str) -> "ApiVersion":
        match = _VERSION_PATTERN.match(text.strip()) if text else None
        if not match:
            raise ValueError(f"Invalid API version: {text!r}")
        major, minor = match.groups()
        return cls(int(major), int(minor or 0))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class ApiVersioningOptions:
    default_version: ApiVersion = field(default_factory=lambda: ApiVersion(1, 0))
    header_name: str = API_VERSION_HEADER
    assume_default_when_unspecified: bool = True


def read_requested_version(headers: Mapping[str, str], options: ApiVersioningOptions) -> Optional[ApiVersion]:
    """Return the version named by the request header, or None when absent.

    Raises ValueError when the header is present but malformed.
    """
    raw = headers.get(options.header_name)
    if raw is None or not raw.strip():
        return None
    return ApiVersion.parse(raw)


def _version_error(code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": {"code": code, "message": message}})


def configure_versioning(app: FastAPI, options: Optional[ApiVersioningOptions] = None) -> ApiVersioningOptions:
    """Negotiate the API version from the ``api-version`` request header.

    Requests without the header get the default version (1.0). Only the
    header is consulted; URL segments and query strings are ignored.
    """
    options = options or ApiVersioningOptions()

    @app.middleware("http")
    async def _negotiate_api_version(request: Request, call_next: Callable):
        try:
            version = read_requested_version(request.headers, options)
        except ValueError as e:
            logger.info(f"Rejected request {request.method} {request.url.path}: {e}")
            return _version_error("InvalidApiVersion", str(e))

        if version is None:
            if not options.assume_default_when_unspecified:
                return _version_error(
                    "ApiVersionUnspecified",
                    f"An API version is required in the '{options.header_name}' header",
                )
            version = options.default_version

        request.state.api_version = version
        return await call_next(request)

    app.state.api_versioning = options
    return options


def get_api_version(request: Request) -> ApiVersion:
    version = getattr(request.state, "api_version", None)
    if version is None:
        options = getattr(request.app.state, "api_versioning", None) or ApiVersioningOptions()
        version = options.default_version
    return version
