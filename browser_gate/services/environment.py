"""Host environment capability and its HTTP request implementation.

The gate only ever reads the current URL, the user-agent string and the
optional client hints, and writes at most one navigation request. Keeping
that surface behind ``HostEnvironment`` lets the policy run against a
Starlette request in production and a plain fake in tests.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from fastapi import Request

from ..core.models import BrandVersion, ClientHints


logger = logging.getLogger(__name__)


class NavigationMode(str, Enum):
    REPLACE = "replace"
    ASSIGN = "assign"


@dataclass(frozen=True)
class NavigationRequest:
    url: str
    mode: NavigationMode


class ClientHintsError(ValueError):
    """Raised when a Sec-CH-UA style header cannot be parsed."""


class HostEnvironment(Protocol):
    def current_url(self) -> str: ...

    def user_agent(self) -> str: ...

    def client_hints(self) -> Optional[ClientHints]: ...

    def cookie_enabled(self) -> bool: ...

    def navigate(self, url: str, mode: NavigationMode) -> None: ...


# "Google Chrome";v="120"
_BRAND_ENTRY = re.compile(r'^\s*"(?P<brand>(?:[^"\\]|\\.)*)"\s*;\s*v\s*=\s*"(?P<version>[^"]*)"\s*$')


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_brand_list(header: str) -> List[BrandVersion]:
    brands = []
    for entry in header.split(","):
        if not entry.strip():
            continue
        match = _BRAND_ENTRY.match(entry)
        if not match:
            raise ClientHintsError(f"Malformed brand entry: {entry.strip()!r}")
        brands.append(BrandVersion(brand=match.group("brand"), version=match.group("version")))
    return brands


def parse_mobile_flag(header: Optional[str]) -> Optional[bool]:
    if header is None:
        return None
    value = header.strip()
    if value == "?1":
        return True
    if value == "?0":
        return False
    raise ClientHintsError(f"Malformed mobile hint: {value!r}")


def parse_client_hints(
    brands_header: Optional[str],
    platform_header: Optional[str] = None,
    mobile_header: Optional[str] = None,
) -> Optional[ClientHints]:
    """Build ClientHints from raw header values.

    Returns None when the brand list is absent; raises ClientHintsError when
    any present header is malformed.
    """
    if brands_header is None:
        return None
    return ClientHints(
        brands=parse_brand_list(brands_header),
        platform=_unquote(platform_header) if platform_header is not None else None,
        mobile=parse_mobile_flag(mobile_header),
    )


class RequestEnvironment:
    """HostEnvironment backed by an incoming HTTP request.

    Navigation is recorded rather than performed; the middleware turns the
    recorded request into a redirect response.
    """

    def __init__(self, request: Request):
        self._request = request
        self.navigation: Optional[NavigationRequest] = None

    def current_url(self) -> str:
        return str(self._request.url)

    def user_agent(self) -> str:
        return self._request.headers.get("user-agent", "")

    def client_hints(self) -> Optional[ClientHints]:
        headers = self._request.headers
        return parse_client_hints(
            headers.get("sec-ch-ua"),
            headers.get("sec-ch-ua-platform"),
            headers.get("sec-ch-ua-mobile"),
        )

    def cookie_enabled(self) -> bool:
        return "cookie" in self._request.headers

    def navigate(self, url: str, mode: NavigationMode) -> None:
        if self.navigation is not None:
            raise RuntimeError("Navigation already requested for this request")
        self.navigation = NavigationRequest(url=url, mode=mode)
