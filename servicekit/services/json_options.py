from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse


def omit_nulls(value: Any) -> Any:
    """Drop ``None``-valued properties from objects, recursively.

    List elements are kept as-is (including ``None``); only object
    properties are removed.
    """
    if isinstance(value, dict):
        return {key: omit_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [omit_nulls(item) for item in value]
    return value


class OmitNullJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return super().render(omit_nulls(content))


def add_controllers_with_default_json_options(app: FastAPI) -> None:
    """Serialize responses of routes registered afterwards without null properties."""
    app.router.default_response_class = OmitNullJSONResponse
