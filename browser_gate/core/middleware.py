import logging
import time
from typing import Callable, Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse

from .config import Config
from .models import CompatibilityConfig
from ..services.environment import NavigationMode, RequestEnvironment
from ..services.navigation import BrowserCompatibilityService, DEFAULT_ERROR_PATH


logger = logging.getLogger(__name__)

# Replace-mode handoffs must not be turned into a GET by the client, and
# assign-mode redirects are ordinary "go look over there" navigations.
REDIRECT_STATUS = {
    NavigationMode.REPLACE: 307,
    NavigationMode.ASSIGN: 302,
}


def cors_allowed_origins() -> list[str]:
    return Config.allowed_origins()


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

    origin = request.headers.get("origin")
    response = JSONResponse(status_code=500, content={"detail": "Internal server error"})
    if origin and origin in cors_allowed_origins():
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response


def make_browser_gate(
    config: CompatibilityConfig,
    error_path: str = DEFAULT_ERROR_PATH,
    exempt_paths: Optional[Iterable[str]] = None,
):
    """Build the middleware that runs the navigation policy on page requests."""
    skipped = {error_path, *(exempt_paths or ())}

    async def browser_gate(request: Request, call_next: Callable):
        if request.method != "GET" or request.url.path in skipped:
            return await call_next(request)

        environment = RequestEnvironment(request)
        service = BrowserCompatibilityService(environment, config, error_path)
        navigation = environment.navigation
        if navigation is None:
            return await call_next(request)

        logger.debug(f"{request.url.path} -> {service.outcome.state.value} ({navigation.url})")
        return RedirectResponse(
            url=navigation.url,
            status_code=REDIRECT_STATUS[navigation.mode],
            headers={"X-Navigation-Mode": navigation.mode.value},
        )

    return browser_gate
