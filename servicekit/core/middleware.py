import logging
import time
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


def _apply_cors_headers(request: Request, response: JSONResponse) -> None:
    # Error responses built here bypass CORSMiddleware
    policy = getattr(request.app.state, "cors_policy", None)
    origin = request.headers.get("origin")
    if policy is None or not origin or not policy.is_origin_allowed(origin):
        return

    if policy.allow_credentials or not policy.allow_any_origin:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
    else:
        response.headers["Access-Control-Allow-Origin"] = "*"
    if policy.allow_credentials:
        response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Methods"] = "*" if policy.allow_any_method else ", ".join(policy.methods)
    response.headers["Access-Control-Allow-Headers"] = "*"


async def log_requests(request: Request, call_next: Callable):
    start_time = time.time()
    request_id = f"{int(time.time() * 1000)}-{id(request)}"

    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        # Only log slow requests (>1s) or errors
        if process_time > 1.0 or response.status_code >= 400:
            logger.info(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} - ERROR: {str(e)} - {process_time:.2f}s")
        raise


async def global_exception_handler(request: Request, exc: Exception):
    request_id = f"{int(time.time() * 1000)}-{id(request)}"
    logger.error(f"[{request_id}] Unhandled exception in {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    response = JSONResponse(status_code=500, content={"detail": "Internal server error"})
    _apply_cors_headers(request, response)
    return response
