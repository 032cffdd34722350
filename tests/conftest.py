import pathlib
import sys
from typing import List, Optional, Tuple

import pytest

# Ensure project root is on sys.path so 'import browser_gate' works when pytest
# runs from a different working directory without an installed package.
_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from browser_gate.core.models import BrandVersion, ClientHints, CompatibilityConfig, DEFAULT_COMPATIBILITY_CONFIG
from browser_gate.services.environment import NavigationMode


CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
CHROME_OLD = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/85.0.4183.83 Safari/537.36"
)
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15"
)
SAFARI_IPHONE_OLD = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 13_7 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/13.1.2 Mobile/15E148 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
EDGE_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
OPERA_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 OPR/106.0.0.0"
)
SAMSUNG_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13; SM-S918B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)
LINE_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148 Safari Line/12.5.0"
)
LINE_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.6045.163 Mobile Safari/537.36 Line/13.20.1/IAB"
)
CURL = "curl/8.4.0"


def hints(*brands: Tuple[str, str], platform: Optional[str] = None, mobile: Optional[bool] = None) -> ClientHints:
    return ClientHints(
        brands=[BrandVersion(brand=name, version=version) for name, version in brands],
        platform=platform,
        mobile=mobile,
    )


class FakeEnvironment:
    """In-memory HostEnvironment that records navigation requests."""

    def __init__(
        self,
        url: str = "https://example.com/",
        user_agent: str = "",
        client_hints: Optional[ClientHints] = None,
        hints_error: Optional[Exception] = None,
        cookie_enabled: bool = True,
    ):
        self.url = url
        self.ua = user_agent
        self.hints = client_hints
        self.hints_error = hints_error
        self.cookies = cookie_enabled
        self.navigations: List[Tuple[str, NavigationMode]] = []

    def current_url(self) -> str:
        return self.url

    def user_agent(self) -> str:
        return self.ua

    def client_hints(self) -> Optional[ClientHints]:
        if self.hints_error is not None:
            raise self.hints_error
        return self.hints

    def cookie_enabled(self) -> bool:
        return self.cookies

    def navigate(self, url: str, mode: NavigationMode) -> None:
        self.navigations.append((url, mode))


@pytest.fixture
def config() -> CompatibilityConfig:
    return DEFAULT_COMPATIBILITY_CONFIG


@pytest.fixture
def disabled_config() -> CompatibilityConfig:
    return CompatibilityConfig(enabled=False, minimum_versions=DEFAULT_COMPATIBILITY_CONFIG.minimum_versions)
