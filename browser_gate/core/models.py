"""Shared data types for browser detection and compatibility gating.

Everything here is immutable. Identities and verdicts are computed fresh
for every request and thrown away once the gate has acted on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


class BrowserKind(str, Enum):
    """Browsers the gate knows about. Everything else collapses to UNKNOWN."""

    CHROME = "chrome"
    FIREFOX = "firefox"
    SAFARI = "safari"
    EDGE = "edge"
    SAMSUNG = "samsung"
    LINE = "line"
    UNKNOWN = "unknown"


class Platform(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    UNKNOWN = "unknown"


class ConstraintOperator(str, Enum):
    AT_LEAST = ">="
    CARET = "^"
    TILDE = "~"


# Kinds that are gated by version. LINE is handed off to an external
# browser and UNKNOWN is always rejected, so neither may appear here.
GATED_KINDS = (
    BrowserKind.CHROME,
    BrowserKind.FIREFOX,
    BrowserKind.SAFARI,
    BrowserKind.EDGE,
    BrowserKind.SAMSUNG,
)


@dataclass(frozen=True, order=True)
class Version:
    major: int = 0
    minor: int = 0
    patch: int = 0

    def as_tuple(self):
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class VersionConstraint:
    operator: ConstraintOperator
    version: Version
    text: str = ""

    def __str__(self) -> str:
        return self.text or f"{self.operator.value}{self.version}"


@dataclass(frozen=True)
class BrandVersion:
    """One entry of a Sec-CH-UA brand list."""

    brand: str
    version: str


@dataclass(frozen=True)
class ClientHints:
    """Structured browser hints (User-Agent Client Hints)."""

    brands: List[BrandVersion] = field(default_factory=list)
    platform: Optional[str] = None
    mobile: Optional[bool] = None


@dataclass(frozen=True)
class BrowserIdentity:
    kind: BrowserKind
    version: str
    platform: Platform
    user_agent: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.kind.value,
            "version": self.version,
            "platform": self.platform.value,
            "user_agent": self.user_agent,
        }


@dataclass(frozen=True)
class CompatibilityVerdict:
    """Outcome of evaluating an identity against the minimum-version table.

    ``minimum_constraint`` is None exactly when the browser kind has no entry
    in the table, i.e. the browser itself is unsupported rather than out of date.
    """

    identity: BrowserIdentity
    is_supported: bool
    minimum_constraint: Optional[VersionConstraint] = None

    @property
    def reason(self) -> str:
        if self.is_supported:
            return "supported"
        if self.minimum_constraint is None:
            return "unsupported_browser"
        return "unsupported_version"


@dataclass(frozen=True)
class CompatibilityConfig:
    enabled: bool
    minimum_versions: Mapping[BrowserKind, str]

    def minimum_for(self, kind: BrowserKind) -> Optional[str]:
        return self.minimum_versions.get(kind)

    def validate(self) -> None:
        for kind in (BrowserKind.LINE, BrowserKind.UNKNOWN):
            if kind in self.minimum_versions:
                raise ValueError(f"{kind.value} must not have a minimum version entry")
        missing = [k.value for k in GATED_KINDS if k not in self.minimum_versions]
        if missing:
            raise ValueError(f"Missing minimum version for: {', '.join(missing)}")
        for kind, constraint in self.minimum_versions.items():
            if not isinstance(constraint, str):
                raise ValueError(f"Minimum version for {BrowserKind(kind).value} must be a string")

    def to_dict(self) -> Dict[str, object]:
        return {
            "enabled": self.enabled,
            "minimum_versions": {BrowserKind(k).value: v for k, v in self.minimum_versions.items()},
        }


DEFAULT_COMPATIBILITY_CONFIG = CompatibilityConfig(
    enabled=True,
    minimum_versions=MappingProxyType({
        BrowserKind.CHROME: ">=90.0.0",
        BrowserKind.FIREFOX: ">=88.0.0",
        BrowserKind.SAFARI: ">=14.0.0",
        BrowserKind.EDGE: ">=90.0.0",
        BrowserKind.SAMSUNG: ">=14.0.0",
    }),
)
