import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

from .models import BrowserKind, CompatibilityConfig, DEFAULT_COMPATIBILITY_CONFIG


load_dotenv()


_TRUTHY = {"1", "true", "yes", "on"}

_MINIMUM_VERSION_ENV = {
    BrowserKind.CHROME: "BROWSER_MIN_CHROME",
    BrowserKind.FIREFOX: "BROWSER_MIN_FIREFOX",
    BrowserKind.SAFARI: "BROWSER_MIN_SAFARI",
    BrowserKind.EDGE: "BROWSER_MIN_EDGE",
    BrowserKind.SAMSUNG: "BROWSER_MIN_SAMSUNG",
}


def _split_env_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    The browser gate settings fall back to DEFAULT_COMPATIBILITY_CONFIG
    when the corresponding variable is unset.
    """

    BROWSER_ERROR_PATH: str = os.getenv("BROWSER_ERROR_PATH", "/browser-error")

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        merged = _split_env_list(os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000"))
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @staticmethod
    def exempt_paths() -> List[str]:
        return _split_env_list(os.getenv("BROWSER_GATE_EXEMPT_PATHS", "/health,/browser-info"))

    @staticmethod
    def compatibility() -> CompatibilityConfig:
        enabled_env = os.getenv("BROWSER_COMPAT_ENABLED")
        if enabled_env is None:
            enabled = DEFAULT_COMPATIBILITY_CONFIG.enabled
        else:
            enabled = enabled_env.strip().lower() in _TRUTHY

        minimum_versions = {}
        for kind, env_name in _MINIMUM_VERSION_ENV.items():
            minimum_versions[kind] = os.getenv(env_name) or DEFAULT_COMPATIBILITY_CONFIG.minimum_versions[kind]

        return CompatibilityConfig(enabled=enabled, minimum_versions=minimum_versions)

    @classmethod
    def validate(cls) -> None:
        if not cls.BROWSER_ERROR_PATH.startswith("/"):
            raise ValueError("BROWSER_ERROR_PATH must be an absolute path")
        cls.compatibility().validate()
