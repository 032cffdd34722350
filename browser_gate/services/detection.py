"""Browser identity detection.

Two strategies, tried in order:

1. Client hints (Sec-CH-UA brand list), which can tell Chromium forks such
   as Brave apart from Chrome.
2. User-agent string heuristics, a priority-ordered rule table.

Hint failures are never fatal; detection always falls through to the
user-agent rules.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..core.models import BrowserIdentity, BrowserKind, ClientHints, Platform
from .environment import HostEnvironment


logger = logging.getLogger(__name__)

DESKTOP_MARKERS = ("Windows", "Linux", "Macintosh", "Mac OS")
MOBILE_MARKERS = ("Mobile", "Tablet", "Android", "iPhone", "iPad")

# Chromium-based browsers that ship their own detection rules or must not
# pass as Chrome/LINE.
CHROMIUM_FORK_MARKERS = ("Edg", "OPR", "SamsungBrowser", "Brave")

UNKNOWN_VERSION = "0.0.0"


def _contains_any(text: str, markers) -> bool:
    return any(marker in text for marker in markers)


def detect_platform(user_agent: str) -> Platform:
    if _contains_any(user_agent, DESKTOP_MARKERS):
        return Platform.DESKTOP
    if _contains_any(user_agent, MOBILE_MARKERS):
        return Platform.MOBILE
    return Platform.UNKNOWN


def _full_version(match: Optional[re.Match]) -> str:
    return match.group(1) if match else UNKNOWN_VERSION


def _major_minor_version(match: Optional[re.Match]) -> str:
    return f"{match.group(1)}.0" if match else UNKNOWN_VERSION


@dataclass(frozen=True)
class DetectionRule:
    kind: BrowserKind
    condition: Callable[[str], bool]
    version_pattern: re.Pattern
    version_processor: Callable[[Optional[re.Match]], str] = _full_version

    def version_from(self, user_agent: str) -> str:
        return self.version_processor(self.version_pattern.search(user_agent))


# Order matters: Safari must exclude Chrome (Chrome UAs mention Safari),
# and LINE's in-app browser looks like Chrome or Safari otherwise.
DETECTION_RULES: List[DetectionRule] = [
    DetectionRule(
        kind=BrowserKind.LINE,
        condition=lambda ua: (
            "Line" in ua
            and ("Chrome" in ua or "Safari" in ua)
            and not _contains_any(ua, CHROMIUM_FORK_MARKERS)
        ),
        version_pattern=re.compile(r"Line/(\d+\.\d+\.\d+)"),
    ),
    DetectionRule(
        kind=BrowserKind.SAFARI,
        condition=lambda ua: "Safari" in ua and "Chrome" not in ua,
        version_pattern=re.compile(r"Version/(\d+\.\d+)"),
        version_processor=_major_minor_version,
    ),
    DetectionRule(
        kind=BrowserKind.CHROME,
        condition=lambda ua: "Chrome" in ua and not _contains_any(ua, CHROMIUM_FORK_MARKERS),
        version_pattern=re.compile(r"Chrome/(\d+\.\d+\.\d+)"),
    ),
    DetectionRule(
        kind=BrowserKind.EDGE,
        condition=lambda ua: "Edg/" in ua,
        version_pattern=re.compile(r"Edg/(\d+\.\d+\.\d+)"),
    ),
    DetectionRule(
        kind=BrowserKind.FIREFOX,
        condition=lambda ua: "Firefox" in ua,
        version_pattern=re.compile(r"Firefox/(\d+\.\d+)"),
        version_processor=_major_minor_version,
    ),
    DetectionRule(
        kind=BrowserKind.SAMSUNG,
        condition=lambda ua: "SamsungBrowser" in ua,
        version_pattern=re.compile(r"SamsungBrowser/(\d+\.\d+)"),
        version_processor=_major_minor_version,
    ),
]


def detect_browser(user_agent: str) -> Tuple[BrowserKind, str]:
    for rule in DETECTION_RULES:
        if rule.condition(user_agent):
            return rule.kind, rule.version_from(user_agent)
    return BrowserKind.UNKNOWN, UNKNOWN_VERSION


# Brand matchers in priority order; the first matcher that hits any brand wins.
BRAND_MATCHERS: List[Tuple[BrowserKind, Callable[[str], bool]]] = [
    (BrowserKind.EDGE, lambda name: "edge" in name),
    (BrowserKind.SAMSUNG, lambda name: "samsung" in name),
    (BrowserKind.CHROME, lambda name: "chrome" in name and "chromium" not in name),
    (BrowserKind.FIREFOX, lambda name: "firefox" in name),
]


def detect_browser_from_hints(hints: ClientHints) -> Optional[Tuple[BrowserKind, str]]:
    if not hints.brands:
        return None

    lowered = [(entry.brand.lower(), entry.version) for entry in hints.brands]
    for kind, matches in BRAND_MATCHERS:
        for name, version in lowered:
            if matches(name):
                return kind, version

    # A bare Chromium brand means some Chromium fork we do not support
    # (Brave, Vivaldi, ...), not Chrome.
    for name, version in lowered:
        if "chromium" in name:
            return BrowserKind.UNKNOWN, version

    return None


def detect_platform_from_hints(hints: ClientHints) -> Optional[Platform]:
    if hints.platform:
        platform = hints.platform.lower()
        if "windows" in platform or "mac" in platform or "linux" in platform:
            return Platform.DESKTOP
        if "android" in platform or "ios" in platform:
            return Platform.MOBILE

    if isinstance(hints.mobile, bool):
        return Platform.MOBILE if hints.mobile else Platform.DESKTOP

    return None


class IdentityExtractor:
    """Produces a BrowserIdentity from a host environment's signals."""

    def extract(self, environment: HostEnvironment) -> BrowserIdentity:
        user_agent = environment.user_agent() or ""

        from_hints = self._from_hints(environment, user_agent)
        if from_hints is not None:
            return from_hints

        kind, version = detect_browser(user_agent)
        return BrowserIdentity(
            kind=kind,
            version=version,
            platform=detect_platform(user_agent),
            user_agent=user_agent,
        )

    def _from_hints(self, environment: HostEnvironment, user_agent: str) -> Optional[BrowserIdentity]:
        try:
            hints = environment.client_hints()
            if hints is None:
                return None
            detected = detect_browser_from_hints(hints)
        except Exception as e:
            logger.warning(f"Client hints detection failed: {e}")
            return None

        if detected is None:
            return None

        try:
            platform = detect_platform_from_hints(hints)
        except Exception as e:
            logger.warning(f"Client hints platform detection failed: {e}")
            platform = None

        kind, version = detected
        return BrowserIdentity(
            kind=kind,
            version=version,
            platform=platform or detect_platform(user_agent),
            user_agent=user_agent,
        )
