"""Web ACL scope resolution."""

from typing import Optional, Union

from wafpolicy.core.models import PolicyScope
from wafpolicy.errors import EdgeScopeRegionError
from wafpolicy.utils.logging import get_logger
from wafpolicy.waf.region import EDGE_REGION, Region, RegionKind, parse_region

logger = get_logger(__name__)


def scope_from_region(region: Union[str, Region, None]) -> PolicyScope:
    """Determine the default scope for a region.

    Only the literal edge region maps to CLOUDFRONT. Unresolved and
    unspecified regions default to REGIONAL.

    Args:
        region: Region string or parsed Region.

    Returns:
        CLOUDFRONT for us-east-1, otherwise REGIONAL.
    """
    if parse_region(region).is_edge:
        return PolicyScope.CLOUDFRONT
    return PolicyScope.REGIONAL


def resolve_scope(
    explicit_scope: Optional[PolicyScope],
    region: Union[str, Region, None],
) -> PolicyScope:
    """Resolve and validate the scope of a web ACL.

    Args:
        explicit_scope: Scope requested by the caller, if any.
        region: Target deployment region.

    Returns:
        The resolved scope.

    Raises:
        EdgeScopeRegionError: CLOUDFRONT requested for a region that is
            neither us-east-1 nor a deploy-time token, including a missing one.
    """
    parsed = parse_region(region)

    if explicit_scope is None:
        scope = scope_from_region(parsed)
        logger.debug("Scope %s derived from region %s", scope.value, parsed)
        return scope

    explicit_scope = PolicyScope(explicit_scope)

    if explicit_scope == PolicyScope.CLOUDFRONT:
        if parsed.kind == RegionKind.UNRESOLVED:
            logger.warning(
                "Cannot verify CLOUDFRONT scope for %s region %s; it must resolve to %s",
                parsed.kind.value,
                parsed,
                EDGE_REGION,
            )
        elif not parsed.is_edge:
            raise EdgeScopeRegionError(str(parsed))

    return explicit_scope
