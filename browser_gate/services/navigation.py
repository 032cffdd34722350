"""Navigation policy: decide whether a client proceeds, is handed off, or is redirected.

One pass per page load:

    Idle -> NoAction                   marker present, or gate disabled
    Idle -> ExternalHandoffRequested   LINE in-app browser (replace navigation)
    Idle -> ErrorRedirectRequested     unsupported kind or version (assign navigation)
    Idle -> NoAction                   supported
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..core.models import BrowserKind, CompatibilityConfig, CompatibilityVerdict, DEFAULT_COMPATIBILITY_CONFIG
from .compatibility import evaluate
from .detection import IdentityExtractor
from .environment import HostEnvironment, NavigationMode


logger = logging.getLogger(__name__)

# Set on the URL handed to the external browser so the round trip back into
# the page does not trigger another handoff.
EXTERNAL_BROWSER_PARAM = "openExternalBrowser"
EXTERNAL_BROWSER_VALUE = "1"
DEFAULT_ERROR_PATH = "/browser-error"


class PolicyState(str, Enum):
    IDLE = "idle"
    EXTERNAL_HANDOFF_REQUESTED = "external_handoff_requested"
    ERROR_REDIRECT_REQUESTED = "error_redirect_requested"
    NO_ACTION = "no_action"


@dataclass(frozen=True)
class PolicyOutcome:
    state: PolicyState
    verdict: Optional[CompatibilityVerdict] = None
    target_url: Optional[str] = None
    mode: Optional[NavigationMode] = None


def has_loop_marker(url: str) -> bool:
    query = urlsplit(url).query
    return any(name == EXTERNAL_BROWSER_PARAM for name, _ in parse_qsl(query, keep_blank_values=True))


def external_handoff_url(url: str) -> str:
    parts = urlsplit(url)
    params = [
        (name, value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if name != EXTERNAL_BROWSER_PARAM
    ]
    params.append((EXTERNAL_BROWSER_PARAM, EXTERNAL_BROWSER_VALUE))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def error_page_url(url: str, error_path: str = DEFAULT_ERROR_PATH) -> str:
    """Same origin, fixed error path, original query string copied verbatim."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, error_path, parts.query, ""))


class NavigationPolicy:
    def __init__(
        self,
        config: Optional[CompatibilityConfig] = None,
        extractor: Optional[IdentityExtractor] = None,
        error_path: str = DEFAULT_ERROR_PATH,
    ):
        self.config = config or DEFAULT_COMPATIBILITY_CONFIG
        self.extractor = extractor or IdentityExtractor()
        self.error_path = error_path

    def decide(self, environment: HostEnvironment) -> PolicyOutcome:
        current_url = environment.current_url()

        if has_loop_marker(current_url):
            return PolicyOutcome(PolicyState.NO_ACTION)
        if not self.config.enabled:
            return PolicyOutcome(PolicyState.NO_ACTION)

        identity = self.extractor.extract(environment)
        verdict = evaluate(identity, self.config)

        if identity.kind is BrowserKind.LINE:
            return PolicyOutcome(
                PolicyState.EXTERNAL_HANDOFF_REQUESTED,
                verdict=verdict,
                target_url=external_handoff_url(current_url),
                mode=NavigationMode.REPLACE,
            )

        if not verdict.is_supported:
            return PolicyOutcome(
                PolicyState.ERROR_REDIRECT_REQUESTED,
                verdict=verdict,
                target_url=error_page_url(current_url, self.error_path),
                mode=NavigationMode.ASSIGN,
            )

        return PolicyOutcome(PolicyState.NO_ACTION, verdict=verdict)

    def run(self, environment: HostEnvironment) -> PolicyOutcome:
        outcome = self.decide(environment)
        if outcome.state is PolicyState.NO_ACTION:
            return outcome

        identity = outcome.verdict.identity
        if outcome.state is PolicyState.EXTERNAL_HANDOFF_REQUESTED:
            logger.info(f"LINE in-app browser {identity.version} detected, handing off to external browser")
        elif outcome.verdict.minimum_constraint is None:
            logger.info(f"Unsupported browser {identity.kind.value} {identity.version}, redirecting to error page")
        else:
            logger.info(
                f"Unsupported {identity.kind.value} version {identity.version} "
                f"(requires {outcome.verdict.minimum_constraint}), redirecting to error page"
            )

        environment.navigate(outcome.target_url, outcome.mode)
        return outcome


def browser_info(environment: HostEnvironment, extractor: Optional[IdentityExtractor] = None) -> Dict[str, Any]:
    """Currently detected identity plus the cookie flag, for diagnostics. No side effects."""
    identity = (extractor or IdentityExtractor()).extract(environment)
    info: Dict[str, Any] = identity.to_dict()
    info["cookie_enabled"] = environment.cookie_enabled()
    return info


class BrowserCompatibilityService:
    """Runs the navigation policy once, on construction, for one page load."""

    def __init__(
        self,
        environment: HostEnvironment,
        config: Optional[CompatibilityConfig] = None,
        error_path: str = DEFAULT_ERROR_PATH,
    ):
        self.environment = environment
        self.config = config or DEFAULT_COMPATIBILITY_CONFIG
        self.extractor = IdentityExtractor()
        self.policy = NavigationPolicy(self.config, self.extractor, error_path)
        self.outcome = self.policy.run(environment)

    def get_browser_info(self) -> Dict[str, Any]:
        return browser_info(self.environment, self.extractor)
