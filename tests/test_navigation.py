import pytest

from browser_gate.core.models import BrowserKind, CompatibilityConfig, DEFAULT_COMPATIBILITY_CONFIG
from browser_gate.services.environment import NavigationMode
from browser_gate.services.navigation import (
    BrowserCompatibilityService,
    NavigationPolicy,
    PolicyState,
    error_page_url,
    external_handoff_url,
    has_loop_marker,
)

from conftest import CHROME_OLD, CHROME_WINDOWS, CURL, LINE_IPHONE, FakeEnvironment, hints


def test_has_loop_marker():
    assert has_loop_marker("https://example.com/?openExternalBrowser=1")
    assert has_loop_marker("https://example.com/?a=1&openExternalBrowser=0")
    assert has_loop_marker("https://example.com/?openExternalBrowser")
    assert not has_loop_marker("https://example.com/?a=1")
    assert not has_loop_marker("https://example.com/openExternalBrowser")


def test_external_handoff_url():
    assert external_handoff_url("https://example.com/shop?item=42") == (
        "https://example.com/shop?item=42&openExternalBrowser=1"
    )
    assert external_handoff_url("https://example.com/") == "https://example.com/?openExternalBrowser=1"


def test_error_page_url_copies_query_verbatim():
    url = "https://example.com/shop/cart?lang=zh-TW&ref=a%20b#top"
    assert error_page_url(url) == "https://example.com/browser-error?lang=zh-TW&ref=a%20b"
    assert error_page_url("https://example.com/shop") == "https://example.com/browser-error"
    assert error_page_url("https://example.com/?x=1", "/unsupported") == "https://example.com/unsupported?x=1"


def test_line_hands_off_with_replace(config):
    environment = FakeEnvironment(url="https://example.com/shop?item=42", user_agent=LINE_IPHONE)
    service = BrowserCompatibilityService(environment, config)

    assert service.outcome.state is PolicyState.EXTERNAL_HANDOFF_REQUESTED
    assert environment.navigations == [
        ("https://example.com/shop?item=42&openExternalBrowser=1", NavigationMode.REPLACE),
    ]


def test_line_round_trip_does_nothing(config):
    environment = FakeEnvironment(url="https://example.com/shop?openExternalBrowser=1", user_agent=LINE_IPHONE)
    service = BrowserCompatibilityService(environment, config)

    assert service.outcome.state is PolicyState.NO_ACTION
    assert environment.navigations == []


def test_loop_marker_suppresses_error_redirect(config):
    environment = FakeEnvironment(url="https://example.com/?openExternalBrowser=1", user_agent=CURL)
    BrowserCompatibilityService(environment, config)
    assert environment.navigations == []


def test_outdated_version_redirects_to_error_page(config):
    environment = FakeEnvironment(url="https://example.com/pay?lang=en&order=7", user_agent=CHROME_OLD)
    service = BrowserCompatibilityService(environment, config)

    assert service.outcome.state is PolicyState.ERROR_REDIRECT_REQUESTED
    assert service.outcome.verdict.reason == "unsupported_version"
    assert environment.navigations == [
        ("https://example.com/browser-error?lang=en&order=7", NavigationMode.ASSIGN),
    ]


def test_unknown_browser_redirects_to_error_page(config):
    environment = FakeEnvironment(url="https://example.com/", user_agent=CURL)
    service = BrowserCompatibilityService(environment, config)

    assert service.outcome.verdict.identity.kind is BrowserKind.UNKNOWN
    assert service.outcome.verdict.minimum_constraint is None
    assert environment.navigations == [("https://example.com/browser-error", NavigationMode.ASSIGN)]


def test_chromium_fork_redirects_to_error_page(config):
    environment = FakeEnvironment(
        user_agent=CHROME_WINDOWS,
        client_hints=hints(("Chromium", "120"), ("Brave", "120")),
    )
    service = BrowserCompatibilityService(environment, config)
    assert service.outcome.state is PolicyState.ERROR_REDIRECT_REQUESTED


def test_supported_browser_takes_no_action(config):
    environment = FakeEnvironment(user_agent=CHROME_WINDOWS)
    service = BrowserCompatibilityService(environment, config)

    assert service.outcome.state is PolicyState.NO_ACTION
    assert service.outcome.verdict.is_supported
    assert environment.navigations == []


@pytest.mark.parametrize("user_agent", [LINE_IPHONE, CURL, CHROME_OLD])
def test_disabled_gate_takes_no_action(disabled_config, user_agent):
    environment = FakeEnvironment(user_agent=user_agent)
    service = BrowserCompatibilityService(environment, disabled_config)

    assert service.outcome.state is PolicyState.NO_ACTION
    assert environment.navigations == []


def test_default_config_is_used_when_omitted():
    service = BrowserCompatibilityService(FakeEnvironment(user_agent=CHROME_WINDOWS))
    assert service.config is DEFAULT_COMPATIBILITY_CONFIG


def test_custom_error_path():
    environment = FakeEnvironment(url="https://example.com/?a=1", user_agent=CURL)
    BrowserCompatibilityService(environment, error_path="/unsupported")
    assert environment.navigations == [("https://example.com/unsupported?a=1", NavigationMode.ASSIGN)]


def test_decide_has_no_side_effects(config):
    environment = FakeEnvironment(user_agent=CURL)
    outcome = NavigationPolicy(config).decide(environment)

    assert outcome.state is PolicyState.ERROR_REDIRECT_REQUESTED
    assert outcome.mode is NavigationMode.ASSIGN
    assert environment.navigations == []


def test_get_browser_info(config):
    environment = FakeEnvironment(user_agent=CHROME_WINDOWS, cookie_enabled=False)
    service = BrowserCompatibilityService(environment, config)

    assert service.get_browser_info() == {
        "name": "chrome",
        "version": "120.0.0",
        "platform": "desktop",
        "user_agent": CHROME_WINDOWS,
        "cookie_enabled": False,
    }
    # Reading the info never navigates
    assert environment.navigations == []


def test_stricter_config_rejects_current_chrome():
    config = CompatibilityConfig(
        enabled=True,
        minimum_versions={**DEFAULT_COMPATIBILITY_CONFIG.minimum_versions, BrowserKind.CHROME: ">=121"},
    )
    environment = FakeEnvironment(user_agent=CHROME_WINDOWS)
    assert BrowserCompatibilityService(environment, config).outcome.state is PolicyState.ERROR_REDIRECT_REQUESTED
