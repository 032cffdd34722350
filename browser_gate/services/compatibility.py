import logging

from ..core.models import (
    BrowserIdentity,
    CompatibilityConfig,
    CompatibilityVerdict,
    ConstraintOperator,
    Version,
    VersionConstraint,
)
from .versioning import is_version_supported, parse_constraint


logger = logging.getLogger(__name__)


def evaluate(identity: BrowserIdentity, config: CompatibilityConfig) -> CompatibilityVerdict:
    """Classify an identity as supported, unsupported by version, or unsupported by kind.

    Kinds missing from the table are always rejected. Kinds present in the
    table fail open when their version cannot be compared.
    """
    raw_constraint = config.minimum_for(identity.kind)
    if raw_constraint is None:
        return CompatibilityVerdict(identity=identity, is_supported=not config.enabled)

    try:
        constraint = parse_constraint(raw_constraint)
    except Exception as e:
        logger.warning(f"Invalid minimum version {raw_constraint!r} for {identity.kind.value}: {e}")
        constraint = VersionConstraint(ConstraintOperator.AT_LEAST, Version(), text=str(raw_constraint))
        return CompatibilityVerdict(identity=identity, is_supported=True, minimum_constraint=constraint)

    if not config.enabled:
        return CompatibilityVerdict(identity=identity, is_supported=True, minimum_constraint=constraint)

    return CompatibilityVerdict(
        identity=identity,
        is_supported=is_version_supported(identity.version, constraint),
        minimum_constraint=constraint,
    )
