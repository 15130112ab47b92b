"""Role-gated manual target overrides."""

import logging
from collections.abc import Collection

from opsmetrics.domains.shift.models import TargetOverride

logger = logging.getLogger(__name__)


def is_override_authorized(
    override: TargetOverride | None,
    authorized_roles: Collection[str],
) -> bool:
    """Single authorization predicate for target overrides.

    An override counts only when its actor holds one of the authorized roles,
    the value is positive and a non-blank audit reason is attached.
    """
    if override is None:
        return False
    if override.actor_role not in authorized_roles:
        return False
    if override.value is None or override.value <= 0:
        return False
    return bool(override.reason and override.reason.strip())


def resolve_target(
    calculated: int,
    override: TargetOverride | None,
    authorized_roles: Collection[str],
) -> int:
    if override is None:
        return calculated
    if not is_override_authorized(override, authorized_roles):
        logger.debug(
            f"Ignoring target override {override.value} by {override.approved_by} "
            f"(role={override.actor_role})"
        )
        return calculated
    return override.value
