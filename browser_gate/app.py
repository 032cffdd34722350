import logging
from datetime import datetime
from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Config
from .core.middleware import global_exception_handler, log_requests, make_browser_gate
from .core.models import CompatibilityConfig
from .services.compatibility import evaluate
from .services.detection import IdentityExtractor
from .services.environment import RequestEnvironment
from .services.navigation import browser_info

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[CompatibilityConfig] = None,
    error_path: Optional[str] = None,
    exempt_paths: Optional[Iterable[str]] = None,
) -> FastAPI:
    """Build the API with the browser compatibility gate installed.

    Args:
        config: Gate configuration; read from the environment when omitted
        error_path: Where unsupported browsers are sent
        exempt_paths: Paths the gate never redirects away from
    """
    compatibility = config or Config.compatibility()
    compatibility.validate()
    error_path = error_path or Config.BROWSER_ERROR_PATH
    exempt_paths = list(exempt_paths) if exempt_paths is not None else Config.exempt_paths()

    app = FastAPI(title="Browser Gate")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    browser_gate = make_browser_gate(compatibility, error_path, exempt_paths)

    @app.middleware("http")
    async def _browser_gate(request, call_next):
        return await browser_gate(request, call_next)

    @app.middleware("http")
    async def _log_requests(request, call_next):
        return await log_requests(request, call_next)

    @app.exception_handler(Exception)
    async def _global_exception_handler(request, exc):
        return await global_exception_handler(request, exc)

    @app.get("/browser-info")
    async def get_browser_info(request: Request):
        """Detected browser identity, for diagnostics."""
        return browser_info(RequestEnvironment(request))

    @app.get(error_path)
    async def browser_error(request: Request):
        """Explain why the browser was turned away.

        The original query string is preserved by the redirect, so it is echoed
        back for whatever page shell renders this.
        """
        identity = IdentityExtractor().extract(RequestEnvironment(request))
        verdict = evaluate(identity, compatibility)
        constraint = verdict.minimum_constraint

        return {
            "status": "unsupported" if not verdict.is_supported else "supported",
            "reason": verdict.reason,
            "browser": identity.to_dict(),
            "minimum_version": str(constraint) if constraint else None,
            "supported_versions": compatibility.to_dict()["minimum_versions"],
            "query": dict(request.query_params),
        }

    @app.get("/health")
    async def health_check():
        """Basic health check for the API."""
        return {
            "status": "healthy",
            "service": "browser-gate",
            "gate_enabled": compatibility.enabled,
            "timestamp": datetime.now().isoformat()
        }

    @app.get("/")
    async def root():
        """Return basic API information."""

        return {
            "service": "Browser Gate",
            "version": "1.0",
            "endpoints": {
                "browser_info": "/browser-info",
                "browser_error": error_path,
                "health": "/health"
            },
            "timestamp": datetime.now().isoformat(),
            "description": "Browser detection and version gating for web front ends"
        }

    return app


app = create_app()
