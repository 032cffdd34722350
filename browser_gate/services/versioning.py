"""Version parsing and range comparison.

Constraints use a small subset of npm-style range syntax:

    ">=90.0.0"   at least 90.0.0
    "^14.1.0"    same major, at least 14.1.0 within it (higher majors pass)
    "~14.1.0"    same major.minor, at least patch 0 (higher minors pass)
    "14.1.0~"    trailing tilde, same as leading
    "90"         no operator, treated as ">="
"""

import logging
import re
from typing import Union

from ..core.models import ConstraintOperator, Version, VersionConstraint


logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")


def _parse_fragment(fragment: str) -> int:
    digits = _NON_DIGITS.sub("", fragment)
    if not digits:
        return 0
    try:
        return int(digits)
    except ValueError:
        # Past the interpreter's int string conversion limit
        return 0


def clean_version(text: str) -> str:
    """Strip a leading "v" and pad/truncate to three dotted components."""
    if not text:
        return "0.0.0"
    parts = text[1:].split(".") if text.startswith("v") else text.split(".")
    while len(parts) < 3:
        parts.append("0")
    return ".".join(parts[:3])


def parse_version(text: str) -> Version:
    parts = [_parse_fragment(fragment) for fragment in text.split(".")]
    while len(parts) < 3:
        parts.append(0)
    return Version(*parts[:3])


def parse_constraint(text: str) -> VersionConstraint:
    raw = text.strip()
    operator = ConstraintOperator.AT_LEAST
    remainder = raw

    if raw.startswith(">="):
        remainder = raw[2:].strip()
    elif raw.startswith("^"):
        operator = ConstraintOperator.CARET
        remainder = raw[1:].strip()
    elif raw.startswith("~"):
        operator = ConstraintOperator.TILDE
        remainder = raw[1:].strip()
    elif raw.endswith("~"):
        operator = ConstraintOperator.TILDE
        remainder = raw[:-1].strip()

    return VersionConstraint(operator=operator, version=parse_version(remainder), text=raw)


def satisfies(current: Version, constraint: VersionConstraint) -> bool:
    minimum = constraint.version

    if constraint.operator is ConstraintOperator.CARET:
        if current.major != minimum.major:
            return current.major > minimum.major
        return (current.minor, current.patch) >= (minimum.minor, minimum.patch)

    if constraint.operator is ConstraintOperator.TILDE:
        if (current.major, current.minor) != (minimum.major, minimum.minor):
            return (current.major, current.minor) > (minimum.major, minimum.minor)
        return current.patch >= minimum.patch

    return current.as_tuple() >= minimum.as_tuple()


def is_version_supported(current: str, constraint: Union[str, VersionConstraint, None]) -> bool:
    """Compare a raw version string against a constraint, failing open.

    A comparison that blows up must never lock a user out, so any error is
    logged and the client is treated as supported.
    """
    if not constraint:
        return True

    try:
        if not isinstance(constraint, VersionConstraint):
            constraint = parse_constraint(constraint)
        return satisfies(parse_version(clean_version(current)), constraint)
    except Exception as e:
        logger.warning(f"Browser version comparison failed ({current!r} vs {constraint!r}): {e}")
        return True
